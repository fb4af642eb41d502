"""Component catalog — built-in definitions and the registry plugins extend.

Built-ins are registered at import time. Plugins add more through the
``register_components`` hook; every registration runs the definition's
``self_check()`` so broken layer data is caught before any resolution.
"""

from __future__ import annotations

from shinobi_resolver.components.auto_scaling_group import AutoScalingGroup
from shinobi_resolver.components.base import ComponentDefinition
from shinobi_resolver.components.cloudfront_distribution import CloudFrontDistribution
from shinobi_resolver.components.opensearch_domain import OpenSearchDomain
from shinobi_resolver.domain.violations import ResolutionError, UnknownComponentError

# Populated by _register_builtins() at module load time.
COMPONENT_REGISTRY: dict[str, ComponentDefinition] = {}


def get_component(component_type: str) -> ComponentDefinition:
    """Look up the registered definition for *component_type*.

    Raises:
        UnknownComponentError: If nothing is registered under that name.
    """
    try:
        return COMPONENT_REGISTRY[component_type]
    except KeyError:
        raise UnknownComponentError(component_type) from None


def list_components() -> list[ComponentDefinition]:
    """All registered definitions, sorted by component type."""
    return [COMPONENT_REGISTRY[name] for name in sorted(COMPONENT_REGISTRY)]


def register_component(
    definition: ComponentDefinition | type[ComponentDefinition],
) -> ComponentDefinition:
    """Register a component definition (class or instance).

    Built-in names are reserved and cannot be overridden by plugins.
    Re-registering the same definition class is a no-op.

    Raises:
        TypeError: If *definition* is not a ComponentDefinition.
        ValueError: If the type name is empty or taken by another definition.
        ResolutionError: If the definition's layer data does not fit its schema.
    """
    if isinstance(definition, type):
        if not issubclass(definition, ComponentDefinition):
            msg = f"{definition.__name__} must extend ComponentDefinition"
            raise TypeError(msg)
        definition = definition()
    elif not isinstance(definition, ComponentDefinition):
        msg = f"{type(definition).__name__} must extend ComponentDefinition"
        raise TypeError(msg)

    name = definition.component_type.strip()
    if not name:
        msg = f"{type(definition).__name__} does not declare a component_type"
        raise ValueError(msg)

    existing = COMPONENT_REGISTRY.get(name)
    if existing is not None:
        if type(existing) is type(definition):
            return existing
        if name in _builtin_map():
            msg = f"Component type {name!r} conflicts with a built-in registration"
        else:
            msg = f"Component type {name!r} is already registered"
        raise ValueError(msg)

    problems = definition.self_check()
    if problems:
        raise ResolutionError(name, problems)

    COMPONENT_REGISTRY[name] = definition
    return definition


def _builtin_map() -> dict[str, type[ComponentDefinition]]:
    return {
        AutoScalingGroup.component_type: AutoScalingGroup,
        CloudFrontDistribution.component_type: CloudFrontDistribution,
        OpenSearchDomain.component_type: OpenSearchDomain,
    }


def _register_builtins() -> None:
    for definition_cls in _builtin_map().values():
        register_component(definition_cls)


_register_builtins()

__all__ = [
    "COMPONENT_REGISTRY",
    "ComponentDefinition",
    "get_component",
    "list_components",
    "register_component",
]
