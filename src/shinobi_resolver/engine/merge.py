"""Merge engine — fold ranked layers into one configuration tree.

Semantics, applied recursively field by field:

- scalars from a higher-rank layer replace the lower value;
- objects merge key by key (absent keys keep the lower value);
- arrays are replaced wholesale, never concatenated;
- ``None`` means "no opinion" and never overwrites a defined value.

Layers are folded in ascending rank order. The sort is stable, so layers of
the same rank keep the order they were given in and the later one wins.
Such same-rank collisions are reported as ``conflicting_layer`` violations
(warnings, not failures).

INVARIANT: merging never fails and never mutates its inputs.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from shinobi_resolver.domain.layers import ConfigLayer
from shinobi_resolver.domain.schema import join_path
from shinobi_resolver.domain.types import LayerRank, ViolationKind
from shinobi_resolver.domain.violations import ConfigViolation


@dataclass(frozen=True)
class LayerOrigin:
    """Which layer supplied a leaf value."""

    name: str
    rank: LayerRank


@dataclass(frozen=True)
class Override:
    """A leaf set by one layer and replaced by a higher-rank layer."""

    path: str
    previous: LayerOrigin
    current: LayerOrigin
    previous_value: Any
    value: Any


@dataclass
class MergeOutcome:
    """Merged tree plus the bookkeeping gathered while folding."""

    tree: dict[str, Any]
    provenance: dict[str, LayerOrigin] = field(default_factory=dict)
    conflicts: list[ConfigViolation] = field(default_factory=list)
    overrides: list[Override] = field(default_factory=list)

    def provenance_names(self) -> dict[str, str]:
        return {path: origin.name for path, origin in self.provenance.items()}


def order_layers(layers: Sequence[ConfigLayer]) -> list[ConfigLayer]:
    """Stable ascending-rank order (given order is kept within a rank)."""
    return sorted(layers, key=lambda layer: int(layer.rank))


def merge_layers(layers: Sequence[ConfigLayer]) -> MergeOutcome:
    """Fold *layers* left to right into a fresh tree."""
    outcome = MergeOutcome(tree={})
    for layer in order_layers(layers):
        origin = LayerOrigin(name=layer.name, rank=layer.rank)
        _merge_into(outcome.tree, layer.values, "", origin, outcome)
    return outcome


def merge_trees(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge two plain trees with the layer semantics, *override* winning."""
    outcome = MergeOutcome(tree={})
    _merge_into(outcome.tree, base, "", LayerOrigin("base", LayerRank.HARDCODED), outcome)
    _merge_into(outcome.tree, override, "", LayerOrigin("override", LayerRank.POLICY), outcome)
    return outcome.tree


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


def _merge_into(
    target: dict[str, Any],
    source: Mapping[str, Any],
    prefix: str,
    origin: LayerOrigin,
    outcome: MergeOutcome,
) -> None:
    for key, value in source.items():
        if value is None:
            continue
        path = join_path(prefix, key)
        current = target.get(key)

        if isinstance(value, Mapping):
            if not isinstance(current, dict):
                if key in target:
                    _record_replacement(path, current, value, origin, outcome)
                target[key] = {}
            _merge_into(target[key], value, path, origin, outcome)
            continue

        if key in target:
            _record_replacement(path, current, value, origin, outcome)
        target[key] = _copy_leaf(value)
        outcome.provenance[path] = origin


def _copy_leaf(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [copy.deepcopy(item) for item in value]
    return copy.deepcopy(value)


def _record_replacement(
    path: str,
    previous_value: Any,
    value: Any,
    origin: LayerOrigin,
    outcome: MergeOutcome,
) -> None:
    """Note that *origin* replaced whatever an earlier layer put at *path*."""
    previous = outcome.provenance.pop(path, None)
    _drop_descendants(path, outcome.provenance)
    if previous is None:
        return
    if previous.rank == origin.rank:
        outcome.conflicts.append(
            ConfigViolation(
                kind=ViolationKind.CONFLICTING_LAYER,
                path=path,
                reason=(
                    f"layers {previous.name!r} and {origin.name!r} share rank "
                    f"{origin.rank.name} and both set this field; {origin.name!r} wins"
                ),
                actual=copy.deepcopy(value),
                layer=origin.name,
            )
        )
    if previous_value != value:
        outcome.overrides.append(
            Override(
                path=path,
                previous=previous,
                current=origin,
                previous_value=copy.deepcopy(previous_value),
                value=copy.deepcopy(value),
            )
        )


def _drop_descendants(path: str, provenance: dict[str, LayerOrigin]) -> None:
    stale = [p for p in provenance if p.startswith(f"{path}.") or p.startswith(f"{path}[")]
    for p in stale:
        del provenance[p]
