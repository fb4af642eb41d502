"""BaseService — shared foundation for resolver services.

Every service receives the unified settings and, optionally, a loaded
plugin manager. Services hold no other state, so one instance can serve
any number of resolutions.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from shinobi_resolver.config.settings import ResolverSettings
    from shinobi_resolver.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class BaseService:
    """Base for all service-layer classes."""

    def __init__(self, settings: ResolverSettings, plugins: PluginManager | None = None) -> None:
        self._settings = settings
        self._plugins = plugins

    @property
    def settings(self) -> ResolverSettings:
        return self._settings

    def _plugin_policies(
        self,
        component_type: str,
        framework: str,
        environment: str,
    ) -> dict[str, dict[str, Any]]:
        """Policy layers contributed by plugins (empty without plugins).

        Raises:
            PolicySourceError: If any plugin policy source fails.
        """
        if self._plugins is None:
            return {}
        return {
            f"plugin:{name}": values
            for name, values in self._plugins.collect_policy_overrides(
                component_type, framework, environment
            ).items()
        }

    def _notify_resolved(
        self,
        component_type: str,
        component_name: str,
        config: dict[str, Any],
        warnings: list[str],
    ) -> None:
        """Dispatch ``post_resolve``. No-op without plugins.

        INVARIANT: Observer failures are warnings, never errors.
        """
        if self._plugins is None:
            return
        warnings.extend(self._plugins.notify_post_resolve(component_type, component_name, config))

