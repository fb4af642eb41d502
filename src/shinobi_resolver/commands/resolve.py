"""Commands: resolve one component and explain where each value came from."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from shinobi_resolver.commands._base import ResolverCommand
from shinobi_resolver.domain.types import ComplianceFramework

if TYPE_CHECKING:
    from shinobi_resolver.commands._context import AppContext

FRAMEWORK_CHOICE = click.Choice([fw.value for fw in ComplianceFramework])


def resolution_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the options shared by ``resolve`` and ``explain``."""
    options = [
        click.option(
            "-f",
            "--file",
            "overrides_path",
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
            default=None,
            help="YAML file with the component's user overrides.",
        ),
        click.option(
            "--set",
            "assignments",
            multiple=True,
            metavar="PATH=VALUE",
            help="Override one field (repeatable), e.g. --set capacity.min=2.",
        ),
        click.option(
            "--framework",
            type=FRAMEWORK_CHOICE,
            default=None,
            help="Compliance framework (default from settings).",
        ),
        click.option("--env", "environment", default=None, help="Deployment environment."),
        click.option("--service", "service_name", default=None, help="Owning service name."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.command(
    cls=ResolverCommand,
    examples="""\
  shinobi-resolve resolve auto-scaling-group web
  shinobi-resolve resolve auto-scaling-group web --framework fedramp-high --set capacity.min=1
  shinobi-resolve resolve opensearch-domain search -f search.yaml --env prod
  shinobi-resolve --json resolve cloudfront-distribution cdn --service checkout""",
)
@click.argument("component_type")
@click.argument("component_name")
@resolution_options
@click.pass_obj
def resolve(
    app: AppContext,
    component_type: str,
    component_name: str,
    overrides_path: Path | None,
    assignments: tuple[str, ...],
    framework: str | None,
    environment: str | None,
    service_name: str | None,
) -> None:
    """Resolve COMPONENT_TYPE for COMPONENT_NAME and print the final configuration."""
    app.emit(
        app.resolver().resolve_component(
            component_type,
            component_name,
            overrides_path=overrides_path,
            assignments=assignments,
            service_name=service_name,
            framework=framework,
            environment=environment,
        )
    )


@click.command(
    cls=ResolverCommand,
    examples="""\
  shinobi-resolve explain auto-scaling-group web --framework fedramp-moderate
  shinobi-resolve -v explain opensearch-domain search -f search.yaml
  shinobi-resolve --json explain cloudfront-distribution cdn""",
)
@click.argument("component_type")
@click.argument("component_name")
@resolution_options
@click.pass_obj
def explain(
    app: AppContext,
    component_type: str,
    component_name: str,
    overrides_path: Path | None,
    assignments: tuple[str, ...],
    framework: str | None,
    environment: str | None,
    service_name: str | None,
) -> None:
    """Show which layer supplied every field of the resolved configuration."""
    app.emit(
        app.resolver().explain_component(
            component_type,
            component_name,
            overrides_path=overrides_path,
            assignments=assignments,
            service_name=service_name,
            framework=framework,
            environment=environment,
        )
    )
