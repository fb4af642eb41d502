"""ConfigLayer — one ranked, partial source of configuration values.

A layer holds a tree shaped like the target configuration with any subset
of fields present. Absent keys mean "no opinion"; a ``None`` value is
treated the same way by the merge engine.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from shinobi_resolver.domain.types import LAYER_NAMES, LayerRank


@dataclass(frozen=True, eq=False)
class ConfigLayer:
    """Immutable partial configuration tagged with its precedence rank."""

    rank: LayerRank
    values: Mapping[str, Any] = field(default_factory=dict)
    name: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "rank", LayerRank(self.rank))
        if not isinstance(self.values, Mapping):
            msg = f"Layer values must be a mapping, got {type(self.values).__name__}"
            raise TypeError(msg)
        object.__setattr__(self, "values", MappingProxyType(copy.deepcopy(dict(self.values))))
        if not self.name:
            object.__setattr__(self, "name", LAYER_NAMES[self.rank])

    @property
    def is_empty(self) -> bool:
        return not self.values

    def to_dict(self) -> dict[str, Any]:
        """Return a mutable deep copy of the layer values."""
        return copy.deepcopy(dict(self.values))

    def __repr__(self) -> str:
        return f"ConfigLayer(rank={self.rank.name}, name={self.name!r}, keys={sorted(self.values)})"
