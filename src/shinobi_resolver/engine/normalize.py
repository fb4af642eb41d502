"""Normalizer — turn a validated tree into the final configuration shape.

Runs only after validation succeeded. Stages, in order:

1. fill absent optional fields with schema defaults and materialize every
   object node, so consumers never meet a missing sub-object;
2. run the component's derivation hook (names, dependent sub-objects);
   the hook appends an :class:`Adjustment` for every merged value it
   rewrites or drops;
3. fill defaults again for anything derivation introduced;
4. clamp numbers and truncate strings whose field policy is ``clamp``.

INVARIANT: ``normalize(normalize(x)) == normalize(x)``. Every stage is a
fixpoint on its own output, and derivation hooks must be too.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from shinobi_resolver.domain.context import ResolutionContext
from shinobi_resolver.domain.schema import FieldSpec, is_number, join_path
from shinobi_resolver.domain.types import BoundsPolicy, FieldKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Adjustment:
    """A value changed after merging: clamped, truncated or rewritten by derivation."""

    path: str
    original: Any
    adjusted: Any
    reason: str


@dataclass
class NormalizeOutcome:
    config: dict[str, Any]
    adjustments: list[Adjustment] = field(default_factory=list)


Deriver = Callable[[dict[str, Any], ResolutionContext, list[Adjustment]], dict[str, Any]]


def normalize(
    schema: FieldSpec,
    tree: Mapping[str, Any],
    context: ResolutionContext,
    *,
    derive: Deriver | None = None,
) -> NormalizeOutcome:
    """Apply defaults, derivation and clamping to a validated *tree*."""
    adjustments: list[Adjustment] = []
    config = apply_defaults(schema, tree)
    if derive is not None:
        config = apply_defaults(schema, derive(copy.deepcopy(config), context, adjustments))
    config = _clamp(schema, config, "", adjustments)
    for adjustment in adjustments:
        logger.info(
            "Adjusted %s from %r to %r (%s)",
            adjustment.path,
            adjustment.original,
            adjustment.adjusted,
            adjustment.reason,
            extra={"path": adjustment.path},
        )
    return NormalizeOutcome(config=config, adjustments=adjustments)


def apply_defaults(schema: FieldSpec, tree: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of *tree* with defaults filled and objects materialized.

    Declared keys come first in schema order, undeclared keys of open
    objects follow in their original order.
    """
    return _fill(schema, tree)


def clamp_number(value: float, minimum: float | None, maximum: float | None) -> float:
    if minimum is not None and value < minimum:
        value = minimum
    if maximum is not None and value > maximum:
        value = maximum
    return value


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


def _fill(spec: FieldSpec, value: Any) -> Any:
    if spec.kind is FieldKind.OBJECT and isinstance(value, Mapping):
        filled: dict[str, Any] = {}
        for name, child in spec.children.items():
            current = value.get(name)
            if current is not None:
                filled[name] = _fill(child, current)
            elif child.has_default:
                filled[name] = _fill(child, child.default_value())
            elif child.kind is FieldKind.OBJECT:
                filled[name] = _fill(child, {})
        for key, current in value.items():
            if key in spec.children or current is None:
                continue
            extra = spec.additional_schema
            filled[key] = _fill(extra, current) if extra is not None else copy.deepcopy(current)
        return filled
    if spec.kind is FieldKind.ARRAY and isinstance(value, (list, tuple)):
        assert spec.items is not None
        return [_fill(spec.items, item) for item in value]
    return copy.deepcopy(value)


def _clamp(spec: FieldSpec, value: Any, path: str, out: list[Adjustment]) -> Any:
    match spec.kind:
        case FieldKind.OBJECT if isinstance(value, dict):
            for key in list(value):
                child = spec.child(key)
                if child is not None:
                    value[key] = _clamp(child, value[key], join_path(path, key), out)
            return value
        case FieldKind.ARRAY if isinstance(value, list):
            assert spec.items is not None
            items = spec.items
            return [_clamp(items, item, join_path(path, i), out) for i, item in enumerate(value)]
        case FieldKind.NUMBER if spec.bounds is BoundsPolicy.CLAMP and is_number(value):
            clamped = clamp_number(value, spec.minimum, spec.maximum)
            if clamped != value:
                out.append(Adjustment(path, value, clamped, "clamped into declared range"))
                return int(clamped) if spec.integer else clamped
            return value
        case FieldKind.STRING if spec.bounds is BoundsPolicy.CLAMP and isinstance(value, str):
            if spec.max_length is not None and len(value) > spec.max_length:
                truncated = value[: spec.max_length]
                out.append(Adjustment(path, value, truncated, "truncated to maximum length"))
                return truncated
            return value
    return value
