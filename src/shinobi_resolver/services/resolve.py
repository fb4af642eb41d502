"""ResolveService — list, describe, resolve, explain and plan components.

Wraps the engine for interfaces: builds the resolution context from
settings, CLI options and plugin policy sources, then converts every
engine exception into a ServiceResult error.

Error codes:
    UNKNOWN_COMPONENT     no definition registered for the type
    VALIDATION_FAILED     resolution produced violations (all listed in detail)
    INVALID_MANIFEST      manifest file missing, unparsable or malformed
    INVALID_OVERRIDES     overrides file or ``--set`` assignment unusable
    POLICY_SOURCE_FAILED  a plugin governance policy source failed
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from shinobi_resolver.components import get_component, list_components
from shinobi_resolver.components.base import ComponentDefinition
from shinobi_resolver.config.logging import resolution_scope
from shinobi_resolver.domain.context import ResolutionContext
from shinobi_resolver.domain.schema import join_path
from shinobi_resolver.domain.types import ComplianceFramework
from shinobi_resolver.domain.violations import (
    ConfigViolation,
    ResolutionError,
    UnknownComponentError,
)
from shinobi_resolver.engine.merge import merge_trees
from shinobi_resolver.engine.normalize import Adjustment
from shinobi_resolver.engine.resolver import Resolution, resolve_detailed
from shinobi_resolver.infrastructure.manifest import (
    ManifestError,
    apply_assignments,
    load_manifest,
    load_overrides,
)
from shinobi_resolver.plugins.manager import PolicySourceError
from shinobi_resolver.services.base import BaseService
from shinobi_resolver.services.contracts import (
    ComponentListData,
    ExplainResultData,
    PlanResultData,
    ResolveResultData,
    SchemaData,
    dump_validated,
)
from shinobi_resolver.services.result import ServiceError, ServiceResult

logger = logging.getLogger(__name__)

NORMALIZER_SOURCE = "normalizer"


class ResolveService(BaseService):
    """Resolution operations over the component registry."""

    def list_components(self) -> ServiceResult:
        items = [definition.describe() for definition in list_components()]
        return ServiceResult(
            ok=True,
            op="list_components",
            data=dump_validated(ComponentListData, {"count": len(items), "items": items}),
        )

    def describe_schema(self, component_type: str) -> ServiceResult:
        """Return the schema document and static layer data for a component."""
        op = "describe_schema"
        try:
            definition = get_component(component_type)
        except UnknownComponentError as exc:
            return _unknown_component(op, exc)
        data = {
            "component_type": definition.component_type,
            "description": definition.description,
            "definition": definition.schema.to_dict(),
            "fallbacks": definition.hardcoded_fallbacks(),
            "compliance_defaults": {
                str(fw): definition.compliance_defaults(fw) for fw in ComplianceFramework
            },
            "guardrails": {
                str(fw): definition.compliance_guardrails(fw) for fw in ComplianceFramework
            },
        }
        return ServiceResult(ok=True, op=op, data=dump_validated(SchemaData, data))

    def resolve_component(
        self,
        component_type: str,
        component_name: str,
        *,
        overrides: Mapping[str, Any] | None = None,
        overrides_path: Path | None = None,
        assignments: Sequence[str] = (),
        service_name: str | None = None,
        framework: ComplianceFramework | str | None = None,
        environment: str | None = None,
    ) -> ServiceResult:
        """Resolve one component and return its final configuration."""
        op = "resolve_component"
        outcome = self._run(
            op,
            component_type,
            component_name,
            overrides=overrides,
            overrides_path=overrides_path,
            assignments=assignments,
            service_name=service_name,
            framework=framework,
            environment=environment,
        )
        if isinstance(outcome, ServiceResult):
            return outcome
        resolution, warnings = outcome
        config = resolution.config
        data: dict[str, Any] = {
            "component_type": config.component_type,
            "component_name": config.component_name,
            "framework": str(config.framework),
            "environment": config.environment,
            "config": config.to_dict(),
            "adjustments": [_adjustment(a) for a in resolution.adjustments],
        }
        if self._settings.output.show_provenance:
            data["provenance"] = dict(config.provenance)
        return ServiceResult(
            ok=True,
            op=op,
            data=dump_validated(ResolveResultData, data),
            warnings=warnings,
        )

    def explain_component(
        self,
        component_type: str,
        component_name: str,
        *,
        overrides: Mapping[str, Any] | None = None,
        overrides_path: Path | None = None,
        assignments: Sequence[str] = (),
        service_name: str | None = None,
        framework: ComplianceFramework | str | None = None,
        environment: str | None = None,
    ) -> ServiceResult:
        """Resolve one component and report which layer supplied each field."""
        op = "explain_component"
        outcome = self._run(
            op,
            component_type,
            component_name,
            overrides=overrides,
            overrides_path=overrides_path,
            assignments=assignments,
            service_name=service_name,
            framework=framework,
            environment=environment,
        )
        if isinstance(outcome, ServiceResult):
            return outcome
        resolution, warnings = outcome
        config = resolution.config
        data = {
            "component_type": config.component_type,
            "component_name": config.component_name,
            "framework": str(config.framework),
            "environment": config.environment,
            "layers": [
                {"rank": int(layer.rank), "name": layer.name, "values": layer.to_dict()}
                for layer in resolution.layers
            ],
            "fields": [
                {
                    "path": path,
                    "value": value,
                    "source": config.source_of(path) or NORMALIZER_SOURCE,
                }
                for path, value in flatten_leaves(config.to_dict())
            ],
            "overrides": [
                {
                    "path": o.path,
                    "previous_layer": o.previous.name,
                    "previous_value": o.previous_value,
                    "layer": o.current.name,
                    "value": o.value,
                }
                for o in resolution.overrides
            ],
            "conflicts": [_violation(v) for v in resolution.conflicts],
            "adjustments": [_adjustment(a) for a in resolution.adjustments],
        }
        return ServiceResult(
            ok=True,
            op=op,
            data=dump_validated(ExplainResultData, data),
            warnings=warnings,
        )

    def plan_manifest(self, path: Path, *, environment: str | None = None) -> ServiceResult:
        """Resolve every component a service manifest declares.

        All components are attempted; if any fails, the result fails and
        the error detail lists the violations per component.
        """
        op = "plan_manifest"
        try:
            manifest = load_manifest(path)
        except ManifestError as exc:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="INVALID_MANIFEST", message=str(exc), detail={"path": exc.path}
                ),
            )

        env = environment or manifest.environment or self._settings.context.environment
        planned: list[dict[str, Any]] = []
        failures: dict[str, list[dict[str, Any]]] = {}
        warnings: list[str] = []
        for component in manifest.components:
            outcome = self._run(
                op,
                component.type,
                component.name,
                overrides=component.config,
                service_name=manifest.service,
                framework=manifest.framework,
                environment=env,
            )
            if isinstance(outcome, ServiceResult):
                assert outcome.error is not None
                if outcome.error.code != "VALIDATION_FAILED":
                    return outcome
                failures[component.name] = outcome.error.detail["violations"]
                continue
            resolution, component_warnings = outcome
            warnings.extend(f"{component.name}: {w}" for w in component_warnings)
            planned.append(
                {
                    "name": component.name,
                    "type": component.type,
                    "config": resolution.config.to_dict(),
                }
            )

        if failures:
            count = sum(len(v) for v in failures.values())
            return ServiceResult(
                ok=False,
                op=op,
                warnings=warnings,
                error=ServiceError(
                    code="VALIDATION_FAILED",
                    message=(
                        f"{len(failures)} of {len(manifest.components)} component(s) "
                        f"failed with {count} violation(s)"
                    ),
                    detail={"components": failures},
                ),
            )

        data = {
            "service": manifest.service,
            "owner": manifest.owner,
            "framework": str(manifest.framework),
            "environment": env,
            "count": len(planned),
            "components": planned,
        }
        return ServiceResult(
            ok=True,
            op=op,
            data=dump_validated(PlanResultData, data),
            warnings=warnings,
            meta={"manifest": str(path)},
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run(
        self,
        op: str,
        component_type: str,
        component_name: str,
        *,
        overrides: Mapping[str, Any] | None = None,
        overrides_path: Path | None = None,
        assignments: Sequence[str] = (),
        service_name: str | None = None,
        framework: ComplianceFramework | str | None = None,
        environment: str | None = None,
    ) -> ServiceResult | tuple[Resolution, list[str]]:
        """Shared resolve pipeline; returns an error result or the resolution."""
        try:
            definition = get_component(component_type)
        except UnknownComponentError as exc:
            return _unknown_component(op, exc)

        try:
            user_layer = self._user_overrides(overrides, overrides_path, assignments)
        except (ManifestError, ValueError) as exc:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(code="INVALID_OVERRIDES", message=str(exc)),
            )

        try:
            context = self._context(
                definition, component_name, service_name, framework, environment
            )
        except PolicySourceError as exc:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="POLICY_SOURCE_FAILED",
                    message=str(exc),
                    detail={"plugin": exc.plugin_name},
                ),
            )

        try:
            with resolution_scope(
                definition.component_type, component_name, str(context.framework)
            ):
                resolution = resolve_detailed(definition, context, user_layer)
        except ResolutionError as exc:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="VALIDATION_FAILED",
                    message=str(exc),
                    detail={
                        "component_type": exc.component_type,
                        "component_name": component_name,
                        "violations": [_violation(v) for v in exc.violations],
                    },
                ),
            )

        warnings = resolution.warnings()
        self._notify_resolved(
            definition.component_type, component_name, resolution.config.to_dict(), warnings
        )
        return resolution, warnings

    @staticmethod
    def _user_overrides(
        overrides: Mapping[str, Any] | None,
        overrides_path: Path | None,
        assignments: Sequence[str],
    ) -> dict[str, Any]:
        layer: dict[str, Any] = {}
        if overrides_path is not None:
            layer = load_overrides(overrides_path)
        if overrides:
            layer = merge_trees(layer, overrides)
        return apply_assignments(layer, list(assignments))

    def _context(
        self,
        definition: ComponentDefinition,
        component_name: str,
        service_name: str | None,
        framework: ComplianceFramework | str | None,
        environment: str | None,
    ) -> ResolutionContext:
        settings = self._settings
        fw = ComplianceFramework(framework or settings.context.framework)
        env = environment or settings.context.environment
        return settings.context_for(
            definition.component_type,
            component_name,
            service_name=service_name,
            framework=fw,
            environment=env,
            plugin_policies=self._plugin_policies(definition.component_type, str(fw), env),
        )


def flatten_leaves(tree: Mapping[str, Any], prefix: str = "") -> list[tuple[str, Any]]:
    """List ``(path, value)`` for every leaf; arrays and empty objects are leaves."""
    leaves: list[tuple[str, Any]] = []
    for key, value in tree.items():
        path = join_path(prefix, key)
        if isinstance(value, Mapping) and value:
            leaves.extend(flatten_leaves(value, path))
        else:
            leaves.append((path, value))
    return leaves


def _unknown_component(op: str, exc: UnknownComponentError) -> ServiceResult:
    known = sorted(d.component_type for d in list_components())
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(
            code="UNKNOWN_COMPONENT",
            message=str(exc),
            detail={"component_type": exc.component_type, "known": known},
        ),
    )


def _violation(violation: ConfigViolation) -> dict[str, Any]:
    return violation.model_dump(mode="json")


def _adjustment(adjustment: Adjustment) -> dict[str, Any]:
    return {
        "path": adjustment.path,
        "original": adjustment.original,
        "adjusted": adjustment.adjusted,
        "reason": adjustment.reason,
    }
