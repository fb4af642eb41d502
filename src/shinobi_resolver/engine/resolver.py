"""Resolver — the single entry point from layers to a resolved configuration.

Pipeline::

    gather layers -> validate each layer (partial) -> merge -> validate
    -> component cross-field check -> normalize -> re-validate -> freeze

Resolution is all-or-nothing: either a fully valid
:class:`ResolvedConfiguration` is produced or :class:`ResolutionError` is
raised carrying every violation found. No partial result is ever returned.

The resolver holds no state between calls; concurrent resolutions of
different components share nothing but immutable schemas.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from shinobi_resolver.domain.context import ResolutionContext
from shinobi_resolver.domain.layers import ConfigLayer
from shinobi_resolver.domain.resolved import ResolvedConfiguration
from shinobi_resolver.domain.schema import FieldSpec
from shinobi_resolver.domain.types import LayerRank, ViolationKind
from shinobi_resolver.domain.violations import ConfigViolation, ResolutionError, sort_violations
from shinobi_resolver.engine.merge import Override, merge_layers
from shinobi_resolver.engine.normalize import Adjustment, Deriver, normalize
from shinobi_resolver.engine.providers import (
    LayerProvider,
    LayerSource,
    default_providers,
    gather_layers,
)
from shinobi_resolver.engine.validation import find_unknown_fields, validate_tree

logger = logging.getLogger(__name__)

Checker = Callable[[Mapping[str, Any]], list[ConfigViolation]]


class Resolvable(LayerSource, Protocol):
    """What :func:`resolve` needs from a component definition."""

    component_type: str
    schema: FieldSpec

    def derive(
        self,
        config: dict[str, Any],
        context: ResolutionContext,
        adjustments: list[Adjustment],
    ) -> dict[str, Any]: ...

    def check(self, config: Mapping[str, Any]) -> list[ConfigViolation]: ...


@dataclass
class Resolution:
    """A resolved configuration plus everything learned while producing it."""

    config: ResolvedConfiguration
    layers: list[ConfigLayer] = field(default_factory=list)
    adjustments: list[Adjustment] = field(default_factory=list)
    conflicts: list[ConfigViolation] = field(default_factory=list)
    overrides: list[Override] = field(default_factory=list)

    @property
    def provenance(self) -> Mapping[str, str]:
        return self.config.provenance

    @property
    def superseded(self) -> list[Override]:
        """User values a governance policy replaced."""
        return [
            o
            for o in self.overrides
            if o.previous.rank == LayerRank.USER and o.current.rank == LayerRank.POLICY
        ]

    def warnings(self) -> list[str]:
        """Human-readable non-fatal findings (conflicts, superseded values)."""
        messages = [v.describe() for v in self.conflicts]
        for o in self.superseded:
            messages.append(
                f"{o.path}: user value {o.previous_value!r} superseded by "
                f"{o.value!r} from {o.current.name}"
            )
        return messages


def resolve_layers(
    schema: FieldSpec,
    providers: Sequence[LayerProvider],
    context: ResolutionContext,
    *,
    derive: Deriver | None = None,
    check: Checker | None = None,
    component_type: str | None = None,
) -> Resolution:
    """Run the full pipeline over *providers* for one component.

    Raises:
        ResolutionError: If any schema, range or unknown-field violation is
            found in a layer, in the merged tree or after normalization.
    """
    ctype = component_type or context.component_type
    layers = gather_layers(providers, context)

    violations: list[ConfigViolation] = []
    seen: set[tuple[ViolationKind, str]] = set()

    def collect(found: list[ConfigViolation]) -> None:
        for violation in found:
            if (violation.kind, violation.path) not in seen:
                seen.add((violation.kind, violation.path))
                violations.append(violation)

    for layer in layers:
        collect(find_unknown_fields(schema, layer.values, layer=layer.name))
        collect(
            [
                v.model_copy(update={"layer": layer.name})
                for v in validate_tree(schema, layer.values, partial=True)
            ]
        )

    outcome = merge_layers(layers)
    collect(validate_tree(schema, outcome.tree))
    if not violations and check is not None:
        violations.extend(check(outcome.tree))
    _raise_on_errors(ctype, violations)

    normalized = normalize(schema, outcome.tree, context, derive=derive)
    _raise_on_errors(ctype, validate_tree(schema, normalized.config))

    config = ResolvedConfiguration(
        component_type=ctype,
        component_name=context.component_name,
        framework=context.framework,
        environment=context.environment,
        values=normalized.config,
        provenance=outcome.provenance_names(),
    )
    resolution = Resolution(
        config=config,
        layers=layers,
        adjustments=normalized.adjustments,
        conflicts=outcome.conflicts,
        overrides=outcome.overrides,
    )
    for conflict in resolution.conflicts:
        logger.warning(
            "Layer conflict in %s: %s",
            ctype,
            conflict.describe(),
            extra={"path": conflict.path, "layer": conflict.layer},
        )
    for override in resolution.superseded:
        logger.warning(
            "Policy superseded user value for %s.%s: %r -> %r (%s)",
            ctype,
            override.path,
            override.previous_value,
            override.value,
            override.current.name,
            extra={"path": override.path, "layer": override.current.name},
        )
    logger.debug(
        "Resolved %s %r from %d layer(s) under %s",
        ctype,
        context.component_name,
        len(layers),
        context.framework,
    )
    return resolution


def resolve_detailed(
    definition: Resolvable,
    context: ResolutionContext,
    user_overrides: Mapping[str, Any] | None = None,
) -> Resolution:
    """Resolve *definition* with the standard provider chain."""
    return resolve_layers(
        definition.schema,
        default_providers(definition, user_overrides),
        context,
        derive=definition.derive,
        check=definition.check,
        component_type=definition.component_type,
    )


def resolve(
    definition: Resolvable,
    context: ResolutionContext,
    user_overrides: Mapping[str, Any] | None = None,
) -> ResolvedConfiguration:
    """Resolve *definition* and return only the frozen configuration."""
    return resolve_detailed(definition, context, user_overrides).config


def _raise_on_errors(component_type: str, violations: list[ConfigViolation]) -> None:
    errors = [v for v in violations if v.is_error]
    if errors:
        raise ResolutionError(component_type, sort_violations(errors))
