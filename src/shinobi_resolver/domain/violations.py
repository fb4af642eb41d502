"""ConfigViolation and the exceptions raised by the resolver.

Violations are collected, never raised one at a time: a single resolution
attempt reports every problem it found so the configuration author can fix
them all before retrying.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict

from shinobi_resolver.domain.types import ViolationKind

_HARD_KINDS = frozenset({ViolationKind.SCHEMA, ViolationKind.RANGE, ViolationKind.UNKNOWN_FIELD})


class ConfigViolation(BaseModel):
    """One problem found at a field path.

    Attributes:
        kind: Taxonomy bucket (schema, range, unknown_field, conflicting_layer).
        path: Dotted field path, array indices as ``[n]``.
        reason: Human-readable explanation.
        expected: The constraint that was violated, if any.
        actual: The offending value.
        layer: Name of the layer that introduced the value, when known.
    """

    model_config = ConfigDict(frozen=True)

    kind: ViolationKind
    path: str
    reason: str
    expected: str | None = None
    actual: Any = None
    layer: str | None = None

    @property
    def is_error(self) -> bool:
        """Whether this violation fails resolution."""
        return self.kind in _HARD_KINDS

    def describe(self) -> str:
        where = self.path or "<root>"
        text = f"{where}: {self.reason}"
        if self.layer:
            text += f" (from {self.layer})"
        return text


def sort_violations(violations: Iterable[ConfigViolation]) -> list[ConfigViolation]:
    """Order violations by field path, keeping discovery order for ties."""
    return sorted(violations, key=lambda v: v.path)


class ResolutionError(Exception):
    """Resolution failed; carries every violation found in the pass."""

    def __init__(self, component_type: str, violations: Iterable[ConfigViolation]) -> None:
        self.component_type = component_type
        self.violations: list[ConfigViolation] = list(violations)
        count = len(self.violations)
        summary = "; ".join(v.describe() for v in self.violations[:3])
        if count > 3:
            summary += f"; and {count - 3} more"
        super().__init__(
            f"Invalid configuration for {component_type}: {count} violation(s): {summary}"
        )


class UnknownComponentError(KeyError):
    """No component definition is registered for the requested type."""

    def __init__(self, component_type: str) -> None:
        self.component_type = component_type
        super().__init__(component_type)

    def __str__(self) -> str:
        return f"Unknown component type: {self.component_type!r}"
