"""ComponentDefinition — schema, layer data and derivation for one component.

A component supplies everything the resolver needs and nothing else:

- ``schema``: the :class:`FieldSpec` tree its configuration must satisfy;
- ``FALLBACKS``: the hardcoded rank-0 layer;
- ``COMPLIANCE_DEFAULTS``: one partial tree per compliance framework;
- ``GUARDRAILS``: policy floors per framework, applied at rank 4 so a user
  override can never silently weaken them;
- ``derive()``: values computed from other values or from the context;
- ``check()``: cross-field rules a per-field schema cannot express.

Subclasses are plain data plus two small hooks; they never branch on the
compliance framework in code.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any, ClassVar

from shinobi_resolver.domain.context import ResolutionContext
from shinobi_resolver.domain.schema import FieldSpec, object_of
from shinobi_resolver.domain.types import ComplianceFramework
from shinobi_resolver.domain.violations import ConfigViolation, sort_violations
from shinobi_resolver.engine.normalize import Adjustment
from shinobi_resolver.engine.validation import validate_tree


class ComponentDefinition:
    """Base class for component definitions."""

    component_type: ClassVar[str] = ""
    description: ClassVar[str] = ""
    schema: ClassVar[FieldSpec] = object_of()

    FALLBACKS: ClassVar[dict[str, Any]] = {}
    COMPLIANCE_DEFAULTS: ClassVar[dict[ComplianceFramework, dict[str, Any]]] = {}
    GUARDRAILS: ClassVar[dict[ComplianceFramework, dict[str, Any]]] = {}

    # ------------------------------------------------------------------
    # Layer data
    # ------------------------------------------------------------------

    def hardcoded_fallbacks(self) -> dict[str, Any]:
        return copy.deepcopy(self.FALLBACKS)

    def compliance_defaults(self, framework: ComplianceFramework) -> dict[str, Any]:
        return copy.deepcopy(self.COMPLIANCE_DEFAULTS.get(framework, {}))

    def compliance_guardrails(self, framework: ComplianceFramework) -> dict[str, Any]:
        return copy.deepcopy(self.GUARDRAILS.get(framework, {}))

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def derive(
        self,
        config: dict[str, Any],
        context: ResolutionContext,
        adjustments: list[Adjustment],
    ) -> dict[str, Any]:
        """Fill values computed from other fields. Must be idempotent.

        Append an :class:`Adjustment` to *adjustments* whenever a value that
        came from the layers is rewritten or dropped.
        """
        return config

    def check(self, config: Mapping[str, Any]) -> list[ConfigViolation]:
        """Cross-field rules on the merged tree. Returns violations."""
        return []

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def self_check(self) -> list[ConfigViolation]:
        """Validate the static layer data against the schema.

        Each tree is checked as a partial configuration: required fields may
        be left to other layers, but every key present must be declared and
        every value must fit its descriptor.
        """
        violations: list[ConfigViolation] = []
        sources: list[tuple[str, Mapping[str, Any]]] = [("fallbacks", self.FALLBACKS)]
        sources += [(f"compliance:{fw}", tree) for fw, tree in self.COMPLIANCE_DEFAULTS.items()]
        sources += [(f"guardrails:{fw}", tree) for fw, tree in self.GUARDRAILS.items()]
        for label, tree in sources:
            for violation in validate_tree(self.schema, tree, partial=True):
                violations.append(violation.model_copy(update={"layer": label}))
        return sort_violations(violations)

    def describe(self) -> dict[str, Any]:
        return {
            "component_type": self.component_type,
            "description": self.description,
            "frameworks": sorted(str(fw) for fw in self.COMPLIANCE_DEFAULTS),
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.component_type!r})"
