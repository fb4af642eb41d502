"""Plugin discovery and loading.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints,
plus local directory discovery (``.shinobi/plugins/`` by default).
Capabilities: extra component definitions, governance policy layers and
post-resolution observers.

Component registration and ``post_resolve`` failures are warnings. A policy
source that fails raises :class:`PolicySourceError`: resolving without a
governance layer would silently weaken it.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from pathlib import Path
from typing import Any

import pluggy
from pluggy import HookImpl

from shinobi_resolver.plugins.hookspecs import ShinobiHookSpec

PROJECT_NAME = "shinobi"
ENTRY_POINT_GROUP = "shinobi.plugins"

logger = logging.getLogger(__name__)


class PolicySourceError(RuntimeError):
    """A plugin policy source raised or returned something unusable."""

    def __init__(self, plugin_name: str, message: str) -> None:
        self.plugin_name = plugin_name
        super().__init__(f"Policy source {plugin_name!r} failed: {message}")


class PluginManager:
    """Manages plugin discovery, loading, and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(ShinobiHookSpec)
        self._loaded: bool = False

    def discover_and_load(self, *, local_dir: Path | None = None) -> list[str]:
        """Discover plugins from entry points and an optional local directory.

        Returns a list of loaded plugin names.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._normalize_plugin_instances()
        if local_dir is not None:
            self._discover_local(local_dir)
        for plugin in self._pm.get_plugins():
            self._register_plugin_components(plugin, self._name_of(plugin))
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        if self._loaded:
            self._register_plugin_components(plugin, resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def get_plugins(self) -> list[object]:
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        """Return names of all registered plugins, sorted."""
        return sorted(self._name_of(p) for p in self._pm.get_plugins())

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def collect_policy_overrides(
        self,
        component_type: str,
        framework: str,
        environment: str,
    ) -> dict[str, dict[str, Any]]:
        """Ask every plugin for a policy layer, in plugin-name order.

        Raises:
            PolicySourceError: If a plugin raises or returns a non-dict.
        """
        collected: dict[str, dict[str, Any]] = {}
        kwargs = {
            "component_type": component_type,
            "framework": framework,
            "environment": environment,
        }
        for impl in self._sorted_impls("policy_overrides"):
            name = impl.plugin_name
            try:
                values = _call_impl(impl, kwargs)
            except Exception as exc:
                raise PolicySourceError(name, str(exc) or type(exc).__name__) from exc
            if values is None:
                continue
            if not isinstance(values, dict):
                raise PolicySourceError(name, f"returned {type(values).__name__}, expected dict")
            if values:
                collected[name] = values
        return collected

    def notify_post_resolve(
        self,
        component_type: str,
        component_name: str,
        config: dict[str, Any],
    ) -> list[str]:
        """Dispatch ``post_resolve`` to each plugin; failures become warnings."""
        warnings: list[str] = []
        kwargs = {
            "component_type": component_type,
            "component_name": component_name,
            "config": config,
        }
        for impl in self._sorted_impls("post_resolve"):
            name = impl.plugin_name
            try:
                _call_impl(impl, kwargs)
            except Exception:
                logger.warning("post_resolve failed in plugin %s", name, exc_info=True)
                warnings.append(f"Plugin {name} failed in post_resolve")
        return warnings

    # ------------------------------------------------------------------
    # Local directory discovery
    # ------------------------------------------------------------------

    def _discover_local(self, local_dir: Path) -> None:
        """Scan *local_dir* for single-file Python plugins.

        Each ``*.py`` file (excluding ``_``-prefixed names) is loaded as a
        module and every class in it carrying hookimpl-decorated methods is
        instantiated and registered. Errors are logged as warnings.
        """
        if not local_dir.is_dir():
            return

        for py_file in sorted(local_dir.glob("*.py")):
            if py_file.name.startswith("_"):
                continue
            module_name = f"shinobi_local_plugin_{py_file.stem}"
            try:
                spec = importlib.util.spec_from_file_location(module_name, py_file)
                if spec is None or spec.loader is None:
                    logger.warning("Could not create module spec for %s", py_file)
                    continue
                module = importlib.util.module_from_spec(spec)
                sys.modules[module_name] = module
                spec.loader.exec_module(module)
            except Exception:
                logger.warning("Failed to load local plugin %s", py_file, exc_info=True)
                sys.modules.pop(module_name, None)
                continue

            for _attr_name, obj in inspect.getmembers(module, inspect.isclass):
                if obj.__module__ != module_name:
                    continue
                if not self._has_hook_impls(obj):
                    continue
                try:
                    self.register_plugin(obj(), name=f"{py_file.stem}.{obj.__name__}")
                except Exception:
                    logger.warning(
                        "Failed to instantiate plugin class %s from %s",
                        obj.__name__,
                        py_file,
                        exc_info=True,
                    )

    def _normalize_plugin_instances(self) -> None:
        """Replace plugin classes registered by entry points with instances."""
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin) or not self._has_hook_impls(plugin):
                continue

            plugin_name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)
            try:
                instance = plugin()
            except Exception:
                logger.warning(
                    "Failed to instantiate entry-point plugin %s", plugin_name, exc_info=True
                )
                continue
            self._pm.register(instance, name=plugin_name)

    @staticmethod
    def _register_plugin_components(plugin: object, plugin_name: str) -> None:
        from shinobi_resolver.components import register_component
        from shinobi_resolver.domain.violations import ResolutionError

        hook = getattr(plugin, "register_components", None)
        if hook is None:
            return
        try:
            definitions = hook()
        except Exception:
            logger.warning(
                "Failed to collect components from plugin %s", plugin_name, exc_info=True
            )
            return
        if definitions is None:
            return
        if not isinstance(definitions, (list, tuple)):
            logger.warning("Plugin %s returned non-list component registrations", plugin_name)
            return

        for definition in definitions:
            try:
                registered = register_component(definition)
            except (TypeError, ValueError, ResolutionError):
                logger.warning(
                    "Skipping component registration %r from plugin %s",
                    definition,
                    plugin_name,
                    exc_info=True,
                )
                continue
            logger.debug(
                "Registered component %s from plugin %s", registered.component_type, plugin_name
            )

    def _sorted_impls(self, hook_name: str) -> list[HookImpl]:
        caller = getattr(self._pm.hook, hook_name)
        return sorted(caller.get_hookimpls(), key=lambda impl: impl.plugin_name)

    def _name_of(self, plugin: object) -> str:
        return self._pm.get_name(plugin) or plugin.__class__.__name__

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        """Check whether *cls* has any methods decorated with ``@hookimpl``.

        Pluggy's ``HookimplMarker("shinobi")`` sets a ``shinobi_impl``
        attribute on decorated methods.
        """
        for name in dir(cls):
            if name.startswith("_"):
                continue
            method = getattr(cls, name, None)
            if callable(method) and getattr(method, f"{PROJECT_NAME}_impl", None):
                return True
        return False


def _call_impl(impl: HookImpl, kwargs: dict[str, Any]) -> Any:
    """Call a hookimpl with only the arguments it declares."""
    return impl.function(*(kwargs[arg] for arg in impl.argnames))
