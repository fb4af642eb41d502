"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``SHINOBI_*`` prefix, ``__`` for nested keys
  3. TOML file    — ``shinobi.toml`` discovered via walk-up
  4. Code defaults — baked into the section models

The settings file also feeds two resolution layers: the
``[environments.<env>.<component-type>]`` tables become the environment
layer and ``[policy.<component-type>]`` tables become a governance policy
layer.
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any, ClassVar

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from shinobi_resolver.config.discovery import find_config
from shinobi_resolver.config.models import (
    ContextConfig,
    EnvironmentTable,
    OutputConfig,
    PluginsConfig,
    PolicyTable,
)
from shinobi_resolver.domain.context import ResolutionContext
from shinobi_resolver.domain.types import ComplianceFramework

SETTINGS_POLICY_SOURCE = "settings"


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``shinobi.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class ResolverSettings(BaseSettings):
    """Unified settings for the shinobi-resolve CLI.

    Stored in ``click.Context.obj`` at the CLI root level.

    Attributes:
        project_root: Directory holding ``shinobi.toml`` (or CWD if none).
        config_path: The settings file actually loaded, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "SHINOBI_",
        "env_nested_delimiter": "__",
    }

    project_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    context: ContextConfig = Field(default_factory=ContextConfig)
    environments: EnvironmentTable = Field(default_factory=dict)
    policy: PolicyTable = Field(default_factory=dict)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    _toml_path: ClassVar[Path | None] = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        project_root: Path | None = None,
        **cli_flags: Any,
    ) -> ResolverSettings:
        """Construct settings from a CLI invocation.

        Discovers ``shinobi.toml`` via walk-up (or explicit *config_path*)
        and merges CLI flags as highest-priority overrides.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if not p.is_file():
                msg = f"Settings file not found: {config_path}"
                raise click.ClickException(msg)
            toml_path = p
        else:
            toml_path = find_config(project_root)

        resolved_root = project_root
        if resolved_root is None:
            resolved_root = toml_path.parent if toml_path else Path.cwd()

        _tls.toml_path = toml_path
        try:
            return cls(project_root=resolved_root, config_path=toml_path, **cli_flags)
        finally:
            _tls.toml_path = None

    # ------------------------------------------------------------------
    # Resolution context
    # ------------------------------------------------------------------

    @property
    def plugin_dir(self) -> Path:
        local = Path(self.plugins.local_dir)
        return local if local.is_absolute() else self.project_root / local

    def environment_values(self, environment: str, component_type: str) -> dict[str, Any]:
        return dict(self.environments.get(environment, {}).get(component_type, {}))

    def context_for(
        self,
        component_type: str,
        component_name: str,
        *,
        service_name: str | None = None,
        framework: ComplianceFramework | str | None = None,
        environment: str | None = None,
        plugin_policies: dict[str, dict[str, Any]] | None = None,
    ) -> ResolutionContext:
        """Build the per-call context, explicit arguments winning over settings.

        Policy sources are ordered: the settings-file table first, then
        plugin policies in the order given.
        """
        env = environment or self.context.environment
        policies: dict[str, dict[str, Any]] = {}
        settings_policy = self.policy.get(component_type)
        if settings_policy:
            policies[SETTINGS_POLICY_SOURCE] = dict(settings_policy)
        policies.update(plugin_policies or {})
        return ResolutionContext(
            service_name=service_name or self.context.service_name,
            component_name=component_name,
            component_type=component_type,
            framework=ComplianceFramework(framework or self.context.framework),
            environment=env,
            region=self.context.region,
            environment_values=self.environment_values(env, component_type),
            policy_overrides=policies,
        )
