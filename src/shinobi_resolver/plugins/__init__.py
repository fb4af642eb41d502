"""Extension layer — plugin system via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints,
plus single-file plugins from a local directory.
INVARIANT: Plugin failures are warnings, except failing policy sources.
"""

import pluggy

from shinobi_resolver.plugins.manager import PluginManager, PolicySourceError

hookimpl = pluggy.HookimplMarker("shinobi")

__all__ = ["PluginManager", "PolicySourceError", "hookimpl"]
