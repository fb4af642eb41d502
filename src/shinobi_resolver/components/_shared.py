"""Schema fragments and derivation helpers shared by component definitions."""

from __future__ import annotations

from typing import Any

from shinobi_resolver.domain.schema import (
    FieldSpec,
    array_of,
    boolean,
    number,
    object_of,
    one_of,
    string,
    string_map,
)
from shinobi_resolver.domain.types import BoundsPolicy
from shinobi_resolver.engine.normalize import Adjustment

COMPARISON_OPERATORS = ("gt", "gte", "lt", "lte")
MISSING_DATA_TREATMENTS = ("breaching", "not-breaching", "ignore", "missing")
REMOVAL_POLICIES = ("retain", "destroy")


def alarm_schema(
    *,
    enabled: bool | None = False,
    threshold: float | None = 0,
    comparison: str = "gte",
    statistic: str = "Average",
    evaluation_periods: int = 2,
    period_minutes: int = 5,
    treat_missing_data: str = "not-breaching",
    description: str = "",
) -> FieldSpec:
    """CloudWatch alarm block with per-alarm defaults.

    *enabled* or *threshold* of ``None`` leaves that value to derivation. Evaluation
    periods clamp into 1..10.
    """
    return object_of(
        {
            "enabled": boolean() if enabled is None else boolean(default=enabled),
            "threshold": number() if threshold is None else number(default=threshold),
            "evaluationPeriods": number(
                default=evaluation_periods,
                minimum=1,
                maximum=10,
                integer=True,
                bounds=BoundsPolicy.CLAMP,
            ),
            "periodMinutes": number(default=period_minutes, minimum=1, maximum=60, integer=True),
            "comparisonOperator": one_of(*COMPARISON_OPERATORS, default=comparison),
            "treatMissingData": one_of(*MISSING_DATA_TREATMENTS, default=treat_missing_data),
            "statistic": string(default=statistic),
            "tags": string_map(),
        },
        description=description,
    )


def log_schema(
    *,
    retention_days: int = 90,
    removal_policy: str = "destroy",
    description: str = "",
) -> FieldSpec:
    """Log group block. Retention outside 1..3653 days is rejected."""
    return object_of(
        {
            "enabled": boolean(default=False),
            "createLogGroup": boolean(default=True),
            "logGroupName": string(),
            "retentionInDays": number(
                default=retention_days, minimum=1, maximum=3653, integer=True
            ),
            "removalPolicy": one_of(*REMOVAL_POLICIES, default=removal_policy),
            "tags": string_map(),
        },
        description=description,
    )


def string_list(*, default: list[str] | None = None, description: str = "") -> FieldSpec:
    return array_of(string(), default=[] if default is None else default, description=description)


def overwrite(
    node: dict[str, Any],
    key: str,
    value: Any,
    *,
    path: str,
    reason: str,
    adjustments: list[Adjustment],
) -> None:
    """Set ``node[key]``, recording an adjustment if a merged value changes."""
    current = node.get(key)
    if current is not None and current != value:
        adjustments.append(Adjustment(path, current, value, reason))
    node[key] = value


def discard(
    node: dict[str, Any],
    key: str,
    *,
    path: str,
    reason: str,
    adjustments: list[Adjustment],
) -> None:
    """Remove ``node[key]``, recording an adjustment if it held a value."""
    current = node.pop(key, None)
    if current is not None:
        adjustments.append(Adjustment(path, current, None, reason))
