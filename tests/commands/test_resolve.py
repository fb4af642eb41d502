"""Tests for the resolve and explain commands."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from shinobi_resolver.cli import cli

_TAG_PLUGIN_SRC = """\
import pluggy

hookimpl = pluggy.HookimplMarker("shinobi")


class CostCenterTags:
    @hookimpl
    def policy_overrides(self, component_type, environment):
        return {"tags": {"costCenter": "cc-" + environment}}
"""


@pytest.mark.usefixtures("_isolated_project")
class TestResolve:
    def test_json_config(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli,
            [
                "--json",
                "resolve",
                "auto-scaling-group",
                "web",
                "--framework",
                "fedramp-high",
                "--set",
                "capacity.min=1",
            ],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)["data"]
        assert data["framework"] == "fedramp-high"
        assert data["config"]["capacity"] == {"min": 1, "max": 10, "desired": 1}

    def test_rich_tree(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["resolve", "opensearch-domain", "search"])
        assert result.exit_code == 0, result.output
        assert "search (opensearch-domain)" in result.output
        assert 'domainName: "service-search"' in result.output

    def test_overrides_file(self, cli_runner: CliRunner, project_root: Path) -> None:
        (project_root / "web.yml").write_text("capacity:\n  min: 2\n  max: 2\n")
        result = cli_runner.invoke(
            cli, ["--json", "resolve", "auto-scaling-group", "web", "-f", "web.yml"]
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["data"]["config"]["capacity"]["max"] == 2

    def test_missing_overrides_file(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["resolve", "auto-scaling-group", "web", "-f", "no.yml"])
        assert result.exit_code == 2

    def test_invalid_value_fails(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["resolve", "cloudfront-distribution", "cdn", "--set", "logging.enabled=yes"]
        )
        assert result.exit_code == 1
        assert "logging.enabled" in result.output
        assert "expected boolean" in result.output

    def test_unknown_framework_is_usage_error(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["resolve", "auto-scaling-group", "web", "--framework", "iso-27001"]
        )
        assert result.exit_code == 2

    def test_settings_file_feeds_context(
        self, cli_runner: CliRunner, project_root: Path
    ) -> None:
        (project_root / "shinobi.toml").write_text(
            '[context]\nservice_name = "billing"\n\n'
            "[environments.prod.auto-scaling-group]\n"
            "capacity = { max = 5 }\n"
        )
        result = cli_runner.invoke(
            cli, ["--json", "resolve", "auto-scaling-group", "web", "--env", "prod"]
        )
        assert result.exit_code == 0, result.output
        config = json.loads(result.output)["data"]["config"]
        assert config["name"] == "billing-web"
        assert config["capacity"]["max"] == 5

    def test_superseded_value_warns(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli,
            [
                "resolve",
                "cloudfront-distribution",
                "cdn",
                "--framework",
                "fedramp-moderate",
                "--set",
                "logging.enabled=false",
            ],
        )
        assert result.exit_code == 0, result.output
        assert "WARNING: logging.enabled: user value False superseded by True" in result.output

    def test_local_plugin_policy(self, cli_runner: CliRunner, project_root: Path) -> None:
        plugin_dir = project_root / ".shinobi" / "plugins"
        (plugin_dir / "tags.py").write_text(_TAG_PLUGIN_SRC, encoding="utf-8")
        result = cli_runner.invoke(
            cli, ["--json", "resolve", "opensearch-domain", "search", "--env", "prod"]
        )
        assert result.exit_code == 0, result.output
        tags = json.loads(result.output)["data"]["config"]["tags"]
        assert tags == {"costCenter": "cc-prod"}


@pytest.mark.usefixtures("_isolated_project")
class TestExplain:
    def test_sources(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["explain", "auto-scaling-group", "web", "--set", "capacity.max=4"]
        )
        assert result.exit_code == 0, result.output
        assert "user-overrides" in result.output
        assert "compliance-defaults:commercial" in result.output
        assert "normalizer" in result.output

    def test_json(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["--json", "explain", "auto-scaling-group", "web", "--set", "capacity.max=4"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)["data"]
        sources = {f["path"]: f["source"] for f in data["fields"]}
        assert sources["capacity.max"] == "user-overrides"
        assert sources["capacity.min"] == "compliance-defaults:commercial"
