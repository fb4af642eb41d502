"""Schema validator — check a merged tree against a component schema.

One pass collects every violation instead of stopping at the first:

- undeclared keys in strict objects (``unknown_field``);
- kind mismatches, enum misses, non-integers and missing required fields
  (``schema``);
- numbers or strings outside bounds whose field policy is ``reject``
  (``range``). Fields declared ``clamp`` pass here and are pulled back
  into range by the normalizer.

Absent object nodes are validated as empty objects, because the normalizer
materializes every object node; their required children must therefore be
supplied by some layer.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from shinobi_resolver.domain.schema import FieldSpec, is_number, join_path, same_literal
from shinobi_resolver.domain.types import BoundsPolicy, FieldKind, ViolationKind
from shinobi_resolver.domain.violations import ConfigViolation, sort_violations


def validate_tree(
    schema: FieldSpec,
    tree: Any,
    *,
    partial: bool = False,
) -> list[ConfigViolation]:
    """Validate *tree* against *schema* and return all violations by path.

    With *partial* set, required-field checks are skipped (used for layer
    data that only ever describes part of a configuration).
    """
    violations: list[ConfigViolation] = []
    _validate(schema, tree, "", violations, partial=partial)
    return sort_violations(violations)


def find_unknown_fields(
    schema: FieldSpec,
    values: Mapping[str, Any],
    *,
    layer: str | None = None,
) -> list[ConfigViolation]:
    """Report undeclared keys in *values*, tagging each with *layer*.

    Only walks where the value kind matches the schema; kind mismatches are
    left to :func:`validate_tree`.
    """
    violations: list[ConfigViolation] = []
    _scan_unknown(schema, values, "", violations, layer)
    return sort_violations(violations)


# ---------------------------------------------------------------------------
# Validation walk
# ---------------------------------------------------------------------------


def _validate(
    spec: FieldSpec,
    value: Any,
    path: str,
    out: list[ConfigViolation],
    *,
    partial: bool,
) -> None:
    match spec.kind:
        case FieldKind.OBJECT:
            _validate_object(spec, value, path, out, partial=partial)
        case FieldKind.ARRAY:
            if not isinstance(value, (list, tuple)):
                out.append(_kind_mismatch(path, spec, value))
                return
            assert spec.items is not None
            for index, item in enumerate(value):
                _validate(spec.items, item, join_path(path, index), out, partial=partial)
        case FieldKind.STRING:
            if not isinstance(value, str):
                out.append(_kind_mismatch(path, spec, value))
                return
            if (
                spec.max_length is not None
                and len(value) > spec.max_length
                and spec.bounds is BoundsPolicy.REJECT
            ):
                out.append(
                    ConfigViolation(
                        kind=ViolationKind.RANGE,
                        path=path,
                        reason=f"length {len(value)} exceeds maximum {spec.max_length}",
                        expected=f"maxLength {spec.max_length}",
                        actual=value,
                    )
                )
        case FieldKind.BOOLEAN:
            if not isinstance(value, bool):
                out.append(_kind_mismatch(path, spec, value))
        case FieldKind.NUMBER:
            _validate_number(spec, value, path, out)
        case FieldKind.ENUM:
            if not any(same_literal(value, allowed) for allowed in spec.values):
                allowed_text = ", ".join(repr(v) for v in spec.values)
                out.append(
                    ConfigViolation(
                        kind=ViolationKind.SCHEMA,
                        path=path,
                        reason=f"{value!r} is not one of [{allowed_text}]",
                        expected=f"one of [{allowed_text}]",
                        actual=value,
                    )
                )


def _validate_object(
    spec: FieldSpec,
    value: Any,
    path: str,
    out: list[ConfigViolation],
    *,
    partial: bool,
) -> None:
    if not isinstance(value, Mapping):
        out.append(_kind_mismatch(path, spec, value))
        return

    for key, item in value.items():
        if item is None:
            continue
        child_path = join_path(path, key)
        if key in spec.children:
            _validate(spec.children[key], item, child_path, out, partial=partial)
        elif spec.additional_fields:
            if spec.additional_schema is not None:
                _validate(spec.additional_schema, item, child_path, out, partial=partial)
        else:
            out.append(_unknown(child_path, item, spec))

    for name, child in spec.children.items():
        if value.get(name) is not None:
            continue
        child_path = join_path(path, name)
        if child.required and not partial:
            out.append(
                ConfigViolation(
                    kind=ViolationKind.SCHEMA,
                    path=child_path,
                    reason="required field is missing after all layers were merged",
                    expected=f"required {child.kind}",
                )
            )
        elif child.kind is FieldKind.OBJECT:
            implied = child.default_value() if child.has_default else {}
            _validate(child, implied, child_path, out, partial=partial)


def _validate_number(spec: FieldSpec, value: Any, path: str, out: list[ConfigViolation]) -> None:
    if not is_number(value):
        out.append(_kind_mismatch(path, spec, value))
        return
    if spec.integer and not float(value).is_integer():
        out.append(
            ConfigViolation(
                kind=ViolationKind.SCHEMA,
                path=path,
                reason=f"expected a whole number, got {value!r}",
                expected="integer",
                actual=value,
            )
        )
        return
    if spec.bounds is BoundsPolicy.CLAMP:
        return
    too_low = spec.minimum is not None and value < spec.minimum
    too_high = spec.maximum is not None and value > spec.maximum
    if too_low or too_high:
        low = _bound(spec.minimum, "-inf")
        high = _bound(spec.maximum, "+inf")
        out.append(
            ConfigViolation(
                kind=ViolationKind.RANGE,
                path=path,
                reason=f"{value!r} is outside [{low}, {high}]",
                expected=f"between {low} and {high}",
                actual=value,
            )
        )


# ---------------------------------------------------------------------------
# Unknown-field scan (per layer)
# ---------------------------------------------------------------------------


def _scan_unknown(
    spec: FieldSpec,
    value: Any,
    path: str,
    out: list[ConfigViolation],
    layer: str | None,
) -> None:
    if spec.kind is FieldKind.OBJECT and isinstance(value, Mapping):
        for key, item in value.items():
            if item is None:
                continue
            child_path = join_path(path, key)
            child = spec.child(key)
            if child is not None:
                _scan_unknown(child, item, child_path, out, layer)
            elif not spec.additional_fields:
                out.append(_unknown(child_path, item, spec, layer=layer))
    elif spec.kind is FieldKind.ARRAY and isinstance(value, (list, tuple)):
        assert spec.items is not None
        for index, item in enumerate(value):
            _scan_unknown(spec.items, item, join_path(path, index), out, layer)


# ---------------------------------------------------------------------------
# Violation builders
# ---------------------------------------------------------------------------


def _kind_mismatch(path: str, spec: FieldSpec, value: Any) -> ConfigViolation:
    return ConfigViolation(
        kind=ViolationKind.SCHEMA,
        path=path,
        reason=f"expected {spec.kind}, got {_kind_name(value)} {value!r}",
        expected=str(spec.kind),
        actual=value,
    )


def _unknown(
    path: str, value: Any, parent: FieldSpec, *, layer: str | None = None
) -> ConfigViolation:
    declared = ", ".join(parent.children) or "<none>"
    return ConfigViolation(
        kind=ViolationKind.UNKNOWN_FIELD,
        path=path,
        reason=f"field is not declared by the schema (declared: {declared})",
        actual=value,
        layer=layer,
    )


def _kind_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


def _bound(value: float | None, unbounded: str) -> str:
    return unbounded if value is None else f"{value:g}"
