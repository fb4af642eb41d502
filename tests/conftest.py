"""Shared pytest fixtures for shinobi-resolver tests."""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from shinobi_resolver.components import COMPONENT_REGISTRY
from shinobi_resolver.config.settings import ResolverSettings
from shinobi_resolver.domain.context import ResolutionContext
from shinobi_resolver.domain.types import ComplianceFramework


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Undo ``configure_logging`` calls made by CLI invocations."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    ours = logging.getLogger("shinobi_resolver")
    our_level = ours.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    ours.setLevel(our_level)


@pytest.fixture(autouse=True)
def _no_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's SHINOBI_* environment out of the tests."""
    monkeypatch.delenv("SHINOBI_CONFIG", raising=False)


@pytest.fixture
def registry() -> Generator[dict]:
    """Snapshot the component registry and restore it after the test."""
    snapshot = dict(COMPONENT_REGISTRY)
    try:
        yield COMPONENT_REGISTRY
    finally:
        COMPONENT_REGISTRY.clear()
        COMPONENT_REGISTRY.update(snapshot)


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Temporary project directory with an empty local plugin directory."""
    (tmp_path / ".shinobi" / "plugins").mkdir(parents=True)
    return tmp_path


@pytest.fixture
def settings(project_root: Path) -> ResolverSettings:
    """Settings with code defaults rooted at a temporary project."""
    return ResolverSettings.from_cli(project_root=project_root)


@pytest.fixture
def _isolated_project(project_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp project so the CLI discovers no stray settings.

    Use via ``@pytest.mark.usefixtures("_isolated_project")`` on command
    test classes.
    """
    monkeypatch.chdir(project_root)


@pytest.fixture
def make_context() -> Callable[..., ResolutionContext]:
    """Factory for ResolutionContext objects with test defaults."""

    def _make(
        component_type: str = "component",
        component_name: str = "web",
        *,
        framework: ComplianceFramework = ComplianceFramework.COMMERCIAL,
        service_name: str = "checkout",
        **kwargs: Any,
    ) -> ResolutionContext:
        return ResolutionContext(
            service_name=service_name,
            component_name=component_name,
            component_type=component_type,
            framework=framework,
            **kwargs,
        )

    return _make
