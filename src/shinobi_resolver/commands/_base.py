"""Click base classes for shinobi-resolve commands.

Every command and the root group take an ``examples`` text. ``--examples``
prints it and exits before argument parsing, so ``resolve --examples``
works without TYPE and NAME. Commands with a ``component_type`` argument
also list the component types registered at that moment.
"""

from __future__ import annotations

from typing import Any

import click


class _ExamplesMixin:
    """Installs the eager ``--examples`` option on a command or group."""

    examples: str | None = None
    params: list[click.Parameter]

    def _install_examples(self, examples: str | None) -> None:
        self.examples = examples
        if not examples:
            return
        self.params.append(
            click.Option(
                ["--examples"],
                is_flag=True,
                expose_value=False,
                is_eager=True,
                callback=_show_examples,
                help="Show usage examples.",
            )
        )

    def takes_component_type(self) -> bool:
        return any(p.name == "component_type" for p in self.params)


def _show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    command = ctx.command
    assert isinstance(command, _ExamplesMixin)
    click.echo(f"Examples for '{ctx.command_path}':\n")
    click.echo(command.examples)
    if command.takes_component_type():
        from shinobi_resolver.components import list_components

        types = ", ".join(d.component_type for d in list_components())
        click.echo(f"\nRegistered component types: {types}")
    ctx.exit(0)


class ResolverCommand(_ExamplesMixin, click.Command):
    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._install_examples(examples)


class ResolverGroup(_ExamplesMixin, click.Group):
    """Root group; subcommands default to :class:`ResolverCommand`."""

    command_class = ResolverCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._install_examples(examples)
