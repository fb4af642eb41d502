"""Command: resolve every component declared in a service manifest."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from shinobi_resolver.commands._base import ResolverCommand

if TYPE_CHECKING:
    from shinobi_resolver.commands._context import AppContext


@click.command(
    cls=ResolverCommand,
    examples="""\
  shinobi-resolve plan service.yml
  shinobi-resolve plan service.yml --env prod
  shinobi-resolve -v plan service.yml
  shinobi-resolve --json plan service.yml""",
)
@click.argument("manifest", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--env", "environment", default=None, help="Override the manifest environment.")
@click.pass_obj
def plan(app: AppContext, manifest: Path, environment: str | None) -> None:
    """Resolve all components in MANIFEST; fails if any component is invalid."""
    app.emit(app.resolver().plan_manifest(manifest, environment=environment))
