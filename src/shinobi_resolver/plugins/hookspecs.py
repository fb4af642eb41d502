"""Pluggy hook specifications for shinobi-resolver extensions.

Three extension points:

- ``register_components``: contribute extra component definitions at load time;
- ``policy_overrides``: contribute a governance policy layer (rank 4) per resolution;
- ``post_resolve``: observe each successfully resolved configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pluggy

if TYPE_CHECKING:
    from shinobi_resolver.components.base import ComponentDefinition

hookspec = pluggy.HookspecMarker("shinobi")


class ShinobiHookSpec:
    """Hook specifications for the shinobi plugin system."""

    @hookspec
    def register_components(
        self,
    ) -> list[ComponentDefinition | type[ComponentDefinition]] | None:
        """Return component definitions to add to the registry."""

    @hookspec
    def policy_overrides(
        self,
        component_type: str,
        framework: str,
        environment: str,
    ) -> dict[str, Any] | None:
        """Return a partial configuration enforced at policy rank, or None."""

    @hookspec
    def post_resolve(
        self,
        component_type: str,
        component_name: str,
        config: dict[str, Any],
    ) -> None:
        """Called after a component configuration resolved successfully."""
