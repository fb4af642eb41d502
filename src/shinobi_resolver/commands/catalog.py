"""Commands: list registered component types and show their schemas."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from shinobi_resolver.commands._base import ResolverCommand

if TYPE_CHECKING:
    from shinobi_resolver.commands._context import AppContext


@click.command(
    cls=ResolverCommand,
    examples="""\
  shinobi-resolve components
  shinobi-resolve --json components
  shinobi-resolve -q components""",
)
@click.pass_obj
def components(app: AppContext) -> None:
    """List registered component types."""
    app.emit(app.resolver().list_components())


@click.command(
    cls=ResolverCommand,
    examples="""\
  shinobi-resolve schema auto-scaling-group
  shinobi-resolve -v schema opensearch-domain
  shinobi-resolve --json schema cloudfront-distribution""",
)
@click.argument("component_type")
@click.pass_obj
def schema(app: AppContext, component_type: str) -> None:
    """Show the schema and layer defaults for COMPONENT_TYPE."""
    app.emit(app.resolver().describe_schema(component_type))
