"""Pydantic models for the shinobi.toml sections.

Sparse TOML contract: defaults baked here, shinobi.toml only contains
overrides. An empty file resolves every component with commercial
defaults in the ``dev`` environment.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from shinobi_resolver.domain.types import ComplianceFramework


class ContextConfig(BaseModel):
    """[context] section."""

    model_config = {"frozen": True}

    service_name: str = "service"
    framework: ComplianceFramework = ComplianceFramework.COMMERCIAL
    environment: str = "dev"
    region: str = "us-east-1"


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    local_dir: str = ".shinobi/plugins"


EnvironmentTable = dict[str, dict[str, dict[str, Any]]]
"""``[environments.<env>.<component-type>]`` → partial configuration."""

PolicyTable = dict[str, dict[str, Any]]
"""``[policy.<component-type>]`` → partial configuration."""


class OutputConfig(BaseModel):
    """[output] section."""

    model_config = {"frozen": True}

    show_provenance: bool = Field(default=False, description="Include layer provenance in output")
