"""Closed enumerations shared by the schema model and the resolver.

Compliance frameworks, field kinds, layer ranks, range policies and
violation kinds are all fixed sets; components pick from them but never
extend them.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum


class ComplianceFramework(StrEnum):
    """Assurance tier selecting which compliance-defaults layer is supplied."""

    COMMERCIAL = "commercial"
    FEDRAMP_MODERATE = "fedramp-moderate"
    FEDRAMP_HIGH = "fedramp-high"


class FieldKind(StrEnum):
    """Kinds a schema field descriptor may declare."""

    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"


class LayerRank(IntEnum):
    """Fixed precedence position of a configuration layer (higher wins)."""

    HARDCODED = 0
    COMPLIANCE = 1
    ENVIRONMENT = 2
    USER = 3
    POLICY = 4


class BoundsPolicy(StrEnum):
    """What happens to a number or string outside its declared bounds.

    ``reject`` fails validation with a range violation. ``clamp`` lets the
    value through validation and the normalizer pulls it back into range.
    """

    REJECT = "reject"
    CLAMP = "clamp"


class ViolationKind(StrEnum):
    """Error taxonomy for resolution problems."""

    SCHEMA = "schema"
    RANGE = "range"
    UNKNOWN_FIELD = "unknown_field"
    CONFLICTING_LAYER = "conflicting_layer"


LAYER_NAMES: dict[LayerRank, str] = {
    LayerRank.HARDCODED: "hardcoded-fallbacks",
    LayerRank.COMPLIANCE: "compliance-defaults",
    LayerRank.ENVIRONMENT: "environment-defaults",
    LayerRank.USER: "user-overrides",
    LayerRank.POLICY: "policy-overrides",
}
