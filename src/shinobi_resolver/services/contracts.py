"""Typed payload contracts for service boundaries.

These models validate operation payload shapes before they leave the
service layer, so a renamed key fails in tests rather than in a pipeline
consuming ``--json`` output.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T", bound=BaseModel)


def dump_validated(model_cls: type[T], data: dict[str, Any]) -> dict[str, Any]:
    """Validate *data* against *model_cls* and return a normalized payload dict."""
    model = model_cls.model_validate(data)
    return model.model_dump(mode="python")


class ComponentSummary(BaseModel):
    component_type: str
    description: str
    frameworks: list[str]


class ComponentListData(BaseModel):
    """Payload contract for ``ResolveService.list_components``."""

    count: int
    items: list[ComponentSummary]


class SchemaData(BaseModel):
    """Payload contract for ``ResolveService.describe_schema``."""

    component_type: str
    description: str
    definition: dict[str, Any]
    fallbacks: dict[str, Any]
    compliance_defaults: dict[str, dict[str, Any]]
    guardrails: dict[str, dict[str, Any]]


class ViolationItem(BaseModel):
    """One violation as reported in error details."""

    kind: str
    path: str
    reason: str
    expected: str | None = None
    actual: Any = None
    layer: str | None = None


class AdjustmentItem(BaseModel):
    path: str
    original: Any
    adjusted: Any
    reason: str


class ResolveResultData(BaseModel):
    """Payload contract for ``ResolveService.resolve_component``."""

    model_config = ConfigDict(extra="allow")

    component_type: str
    component_name: str
    framework: str
    environment: str
    config: dict[str, Any]
    adjustments: list[AdjustmentItem]


class LayerItem(BaseModel):
    rank: int
    name: str
    values: dict[str, Any]


class FieldSource(BaseModel):
    path: str
    value: Any
    source: str


class OverrideItem(BaseModel):
    path: str
    previous_layer: str
    previous_value: Any
    layer: str
    value: Any


class ExplainResultData(BaseModel):
    """Payload contract for ``ResolveService.explain_component``."""

    component_type: str
    component_name: str
    framework: str
    environment: str
    layers: list[LayerItem]
    fields: list[FieldSource]
    overrides: list[OverrideItem]
    conflicts: list[ViolationItem]
    adjustments: list[AdjustmentItem]


class PlannedComponent(BaseModel):
    name: str
    type: str
    config: dict[str, Any]


class PlanResultData(BaseModel):
    """Payload contract for ``ResolveService.plan_manifest``."""

    service: str
    owner: str | None = None
    framework: str
    environment: str
    count: int
    components: list[PlannedComponent]
