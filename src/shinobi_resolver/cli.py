"""Root CLI group for shinobi-resolve with global flags and command registration."""

from __future__ import annotations

import click

from shinobi_resolver import __version__
from shinobi_resolver.commands import register_commands
from shinobi_resolver.commands._base import ResolverGroup
from shinobi_resolver.commands._context import AppContext
from shinobi_resolver.config.settings import ResolverSettings


@click.group(
    cls=ResolverGroup,
    invoke_without_command=True,
    examples="""\
  shinobi-resolve components
  shinobi-resolve resolve auto-scaling-group web --framework fedramp-high
  shinobi-resolve -c ./shinobi.toml plan service.yml""",
)
@click.version_option(version=__version__, prog_name="shinobi-resolve")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override settings file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
) -> None:
    """shinobi-resolve — layered configuration resolution for platform components."""
    ctx.ensure_object(dict)
    settings = ResolverSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
