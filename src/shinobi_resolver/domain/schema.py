"""Schema model — immutable field descriptors for component configuration.

A component schema is a tree of :class:`FieldSpec` nodes built once at
import time with the declarative constructors below::

    SCHEMA = object_of(
        {
            "priceClass": one_of("PriceClass_100", "PriceClass_All", default="PriceClass_100"),
            "logging": object_of({"enabled": boolean(default=False)}),
        }
    )

INVARIANT: descriptors never change after construction. Children are
exposed through a read-only mapping and defaults are deep-copied on use.
"""

from __future__ import annotations

import copy
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Final

from shinobi_resolver.domain.types import BoundsPolicy, FieldKind


class _Missing:
    """Sentinel type for "no default declared"."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()


class SchemaDefinitionError(ValueError):
    """Raised when a field descriptor is internally inconsistent."""


def is_number(value: Any) -> bool:
    """True for ints and finite floats, never for booleans."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and not math.isnan(value)


def same_literal(left: Any, right: Any) -> bool:
    """Compare enum literals without letting ``True == 1`` slip through."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if isinstance(left, str) or isinstance(right, str):
        return isinstance(left, str) and isinstance(right, str) and left == right
    if is_number(left) and is_number(right):
        return left == right
    return False


@dataclass(frozen=True, eq=False)
class FieldSpec:
    """One node of a component configuration schema.

    Attributes:
        kind: The value kind this field accepts.
        required: Whether the field must be present once all layers merged.
        default: Literal filled in by the normalizer when the field is absent.
        values: Allowed literals for ``enum`` fields.
        minimum: Lower bound for ``number`` fields.
        maximum: Upper bound for ``number`` fields.
        integer: Whether a ``number`` field only accepts whole numbers.
        max_length: Maximum length for ``string`` fields.
        bounds: Out-of-range policy for ``minimum``/``maximum``/``max_length``.
        additional_fields: Whether an ``object`` accepts undeclared keys.
        additional_schema: Descriptor every undeclared key's value must satisfy.
        children: Declared keys of an ``object`` field.
        items: Descriptor of each element of an ``array`` field.
        description: Human-readable documentation for the field.
    """

    kind: FieldKind
    required: bool = False
    default: Any = MISSING
    values: tuple[Any, ...] = ()
    minimum: float | None = None
    maximum: float | None = None
    integer: bool = False
    max_length: int | None = None
    bounds: BoundsPolicy = BoundsPolicy.REJECT
    additional_fields: bool = False
    additional_schema: FieldSpec | None = None
    children: Mapping[str, FieldSpec] = field(default_factory=dict)
    items: FieldSpec | None = None
    description: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", MappingProxyType(dict(self.children)))
        object.__setattr__(self, "values", tuple(self.values))
        if self.default is not MISSING:
            object.__setattr__(self, "default", copy.deepcopy(self.default))
        self._check_definition()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    def default_value(self) -> Any:
        """Return a fresh copy of the declared default."""
        return copy.deepcopy(self.default)

    def child(self, name: str) -> FieldSpec | None:
        """Return the descriptor for key *name* of an object field."""
        if name in self.children:
            return self.children[name]
        if self.additional_fields:
            return self.additional_schema
        return None

    def lookup(self, path: str) -> FieldSpec:
        """Resolve a dotted *path* (``"cluster.instanceCount"``) to a descriptor.

        Array segments are traversed transparently (``"rules.port"``).

        Raises:
            KeyError: If any segment is not declared.
        """
        node: FieldSpec = self
        for part in path.split("."):
            while node.kind is FieldKind.ARRAY and node.items is not None:
                node = node.items
            found = node.child(part) if node.kind is FieldKind.OBJECT else None
            if found is None:
                raise KeyError(path)
            node = found
        return node

    def to_dict(self) -> dict[str, Any]:
        """Render as a JSON-Schema-like document."""
        doc: dict[str, Any] = {"type": str(self.kind)}
        if self.description:
            doc["description"] = self.description
        if self.has_default:
            doc["default"] = self.default_value()
        if self.kind is FieldKind.ENUM:
            doc["enum"] = list(self.values)
        if self.kind is FieldKind.NUMBER:
            if self.minimum is not None:
                doc["minimum"] = self.minimum
            if self.maximum is not None:
                doc["maximum"] = self.maximum
            if self.integer:
                doc["integer"] = True
        if self.kind is FieldKind.STRING and self.max_length is not None:
            doc["maxLength"] = self.max_length
        if self._has_bounds():
            doc["outOfRange"] = str(self.bounds)
        if self.kind is FieldKind.OBJECT:
            doc["properties"] = {name: spec.to_dict() for name, spec in self.children.items()}
            required = [name for name, spec in self.children.items() if spec.required]
            if required:
                doc["required"] = required
            if self.additional_schema is not None:
                doc["additionalProperties"] = self.additional_schema.to_dict()
            else:
                doc["additionalProperties"] = self.additional_fields
        if self.kind is FieldKind.ARRAY and self.items is not None:
            doc["items"] = self.items.to_dict()
        return doc

    # ------------------------------------------------------------------
    # Construction checks
    # ------------------------------------------------------------------

    def _has_bounds(self) -> bool:
        return (
            self.minimum is not None or self.maximum is not None or self.max_length is not None
        )

    def _check_definition(self) -> None:
        kind = self.kind
        if kind is FieldKind.ENUM and not self.values:
            raise SchemaDefinitionError("enum field declares no values")
        if kind is not FieldKind.ENUM and self.values:
            raise SchemaDefinitionError(f"{kind} field cannot declare enum values")
        if kind is not FieldKind.OBJECT and (self.children or self.additional_fields):
            raise SchemaDefinitionError(f"{kind} field cannot declare children")
        if self.additional_schema is not None and not self.additional_fields:
            raise SchemaDefinitionError("additional_schema requires additional_fields=True")
        if kind is FieldKind.ARRAY and self.items is None:
            raise SchemaDefinitionError("array field must declare items")
        if kind is not FieldKind.ARRAY and self.items is not None:
            raise SchemaDefinitionError(f"{kind} field cannot declare items")
        if kind is not FieldKind.NUMBER and (
            self.minimum is not None or self.maximum is not None or self.integer
        ):
            raise SchemaDefinitionError(f"{kind} field cannot declare numeric bounds")
        if kind is not FieldKind.STRING and self.max_length is not None:
            raise SchemaDefinitionError(f"{kind} field cannot declare max_length")
        if (
            self.minimum is not None
            and self.maximum is not None
            and self.minimum > self.maximum
        ):
            raise SchemaDefinitionError(f"minimum {self.minimum} exceeds maximum {self.maximum}")
        if self.max_length is not None and self.max_length < 1:
            raise SchemaDefinitionError("max_length must be positive")
        if self.required and self.has_default:
            raise SchemaDefinitionError("required field cannot also declare a default")
        if self.has_default and not self._default_fits():
            raise SchemaDefinitionError(f"default {self.default!r} does not fit {kind} field")

    def _default_fits(self) -> bool:
        value = self.default
        match self.kind:
            case FieldKind.OBJECT:
                return isinstance(value, dict)
            case FieldKind.ARRAY:
                return isinstance(value, list)
            case FieldKind.STRING:
                if not isinstance(value, str):
                    return False
                return self.max_length is None or len(value) <= self.max_length
            case FieldKind.BOOLEAN:
                return isinstance(value, bool)
            case FieldKind.ENUM:
                return any(same_literal(value, allowed) for allowed in self.values)
            case FieldKind.NUMBER:
                if not is_number(value):
                    return False
                if self.minimum is not None and value < self.minimum:
                    return False
                return self.maximum is None or value <= self.maximum
        return False


# ---------------------------------------------------------------------------
# Declarative constructors
# ---------------------------------------------------------------------------


def object_of(
    children: Mapping[str, FieldSpec] | None = None,
    *,
    required: bool = False,
    default: Any = MISSING,
    additional: bool | FieldSpec = False,
    description: str = "",
) -> FieldSpec:
    """Object field. *additional* may be a descriptor for open-map values."""
    additional_schema = additional if isinstance(additional, FieldSpec) else None
    return FieldSpec(
        kind=FieldKind.OBJECT,
        required=required,
        default=default,
        children=dict(children or {}),
        additional_fields=bool(additional),
        additional_schema=additional_schema,
        description=description,
    )


def array_of(
    items: FieldSpec,
    *,
    required: bool = False,
    default: Any = MISSING,
    description: str = "",
) -> FieldSpec:
    """Array field; a higher layer always replaces the whole array."""
    return FieldSpec(
        kind=FieldKind.ARRAY,
        required=required,
        default=default,
        items=items,
        description=description,
    )


def string(
    *,
    required: bool = False,
    default: Any = MISSING,
    max_length: int | None = None,
    bounds: BoundsPolicy = BoundsPolicy.REJECT,
    description: str = "",
) -> FieldSpec:
    return FieldSpec(
        kind=FieldKind.STRING,
        required=required,
        default=default,
        max_length=max_length,
        bounds=bounds,
        description=description,
    )


def number(
    *,
    required: bool = False,
    default: Any = MISSING,
    minimum: float | None = None,
    maximum: float | None = None,
    integer: bool = False,
    bounds: BoundsPolicy = BoundsPolicy.REJECT,
    description: str = "",
) -> FieldSpec:
    return FieldSpec(
        kind=FieldKind.NUMBER,
        required=required,
        default=default,
        minimum=minimum,
        maximum=maximum,
        integer=integer,
        bounds=bounds,
        description=description,
    )


def boolean(*, required: bool = False, default: Any = MISSING, description: str = "") -> FieldSpec:
    return FieldSpec(
        kind=FieldKind.BOOLEAN,
        required=required,
        default=default,
        description=description,
    )


def one_of(
    *values: Any,
    required: bool = False,
    default: Any = MISSING,
    description: str = "",
) -> FieldSpec:
    """Enum field accepting exactly the given literals."""
    return FieldSpec(
        kind=FieldKind.ENUM,
        required=required,
        default=default,
        values=values,
        description=description,
    )


def string_map(*, default: Any = MISSING, description: str = "") -> FieldSpec:
    """Open object whose values must all be strings (tags, headers)."""
    return object_of(
        additional=string(),
        default={} if default is MISSING else default,
        description=description,
    )


def join_path(prefix: str, key: str | int) -> str:
    """Build a field path: ``a.b`` for keys, ``a[0]`` for array indices."""
    if isinstance(key, int):
        return f"{prefix}[{key}]"
    return f"{prefix}.{key}" if prefix else key
