"""Parametrized help tests for all CLI commands."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from shinobi_resolver.cli import cli

# (CLI args, expected keywords in output)
HELP_COMMANDS: list[tuple[list[str], list[str]]] = [
    (["components", "--help"], ["List registered component types"]),
    (["schema", "--help"], ["COMPONENT_TYPE"]),
    (["resolve", "--help"], ["COMPONENT_NAME", "--file", "--set", "--framework", "--env"]),
    (["explain", "--help"], ["--service", "--framework"]),
    (["plan", "--help"], ["MANIFEST", "--env"]),
]


@pytest.mark.usefixtures("_isolated_project")
@pytest.mark.parametrize(
    "args,expected_keywords",
    HELP_COMMANDS,
    ids=[args[0] for args, _ in HELP_COMMANDS],
)
def test_help(cli_runner: CliRunner, args: list[str], expected_keywords: list[str]) -> None:
    result = cli_runner.invoke(cli, args)
    assert result.exit_code == 0
    for kw in expected_keywords:
        assert kw in result.output
