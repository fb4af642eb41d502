"""Subcommand modules for shinobi-resolve.

Provides register_commands() which uses deferred imports to keep
``shinobi-resolve --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from shinobi_resolver.commands.catalog import components, schema
    from shinobi_resolver.commands.plan import plan
    from shinobi_resolver.commands.resolve import explain, resolve

    cli.add_command(components)
    cli.add_command(schema)
    cli.add_command(resolve)
    cli.add_command(explain)
    cli.add_command(plan)
