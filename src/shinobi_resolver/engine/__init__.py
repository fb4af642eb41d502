"""Engine layer — merge, validation, normalization and resolution.

Depends only on ``domain``. Component definitions plug in through the
:class:`~shinobi_resolver.engine.providers.LayerSource` protocol.
"""

from shinobi_resolver.engine.resolver import Resolution, resolve, resolve_detailed, resolve_layers

__all__ = ["Resolution", "resolve", "resolve_detailed", "resolve_layers"]
