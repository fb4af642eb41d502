"""ResolutionContext — everything a resolution call needs besides user input.

Carries the active compliance framework (exactly one per resolution), the
environment-scoped values, and the ordered governance policy sources.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from shinobi_resolver.domain.types import ComplianceFramework


class ResolutionContext(BaseModel):
    """Frozen per-call context handed to layer providers and derivation."""

    model_config = ConfigDict(frozen=True)

    service_name: str
    component_name: str
    component_type: str = "component"
    framework: ComplianceFramework = ComplianceFramework.COMMERCIAL
    environment: str = "dev"
    region: str = "us-east-1"
    environment_values: dict[str, Any] = Field(default_factory=dict)
    policy_overrides: dict[str, dict[str, Any]] = Field(default_factory=dict)
