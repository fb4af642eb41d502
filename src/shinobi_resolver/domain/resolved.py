"""ResolvedConfiguration — the immutable output of one resolution.

The values tree is deep-frozen: mappings become read-only views and lists
become tuples. Resource-wiring code receives this object and performs no
further defaulting or validation of the fields it carries.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from shinobi_resolver.domain.types import ComplianceFramework


def freeze(value: Any) -> Any:
    """Recursively convert dicts to read-only mappings and lists to tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    """Inverse of :func:`freeze`: plain dicts and lists."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [thaw(item) for item in value]
    return value


_UNSET = object()


@dataclass(frozen=True, eq=False)
class ResolvedConfiguration:
    """Fully populated, schema-valid, normalized component configuration."""

    component_type: str
    component_name: str
    framework: ComplianceFramework
    environment: str
    values: Mapping[str, Any] = field(default_factory=dict)
    provenance: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", freeze(self.values))
        object.__setattr__(self, "provenance", MappingProxyType(dict(self.provenance)))

    def __getitem__(self, key: str) -> Any:
        return self.values[key]

    def __contains__(self, key: object) -> bool:
        return key in self.values

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResolvedConfiguration):
            return NotImplemented
        return (
            self.component_type == other.component_type
            and self.component_name == other.component_name
            and self.framework == other.framework
            and self.environment == other.environment
            and self.to_dict() == other.to_dict()
        )

    __hash__ = None  # type: ignore[assignment]

    def get(self, path: str, default: Any = None) -> Any:
        """Read a dotted *path* (``"cluster.instanceCount"``)."""
        node: Any = self.values
        for part in path.split("."):
            if not isinstance(node, Mapping):
                return default
            node = node.get(part, _UNSET)
            if node is _UNSET:
                return default
        return node

    def to_dict(self) -> dict[str, Any]:
        """Return a mutable deep copy of the configuration values."""
        return thaw(self.values)

    def source_of(self, path: str) -> str | None:
        """Name of the layer that supplied the leaf at *path*, if any did."""
        return self.provenance.get(path)
