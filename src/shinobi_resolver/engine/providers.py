"""Layer providers — one source of configuration per precedence rank.

Each provider turns a :class:`ResolutionContext` into zero or more
:class:`ConfigLayer` objects of its own rank. Providers never see each
other's output; combining layers is the merge engine's job.

Component-backed providers accept any object satisfying
:class:`LayerSource`, so this module does not depend on ``components``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

from shinobi_resolver.domain.context import ResolutionContext
from shinobi_resolver.domain.layers import ConfigLayer
from shinobi_resolver.domain.types import ComplianceFramework, LayerRank


class LayerSource(Protocol):
    """Static layer data a component definition exposes."""

    def hardcoded_fallbacks(self) -> dict[str, Any]: ...

    def compliance_defaults(self, framework: ComplianceFramework) -> dict[str, Any]: ...

    def compliance_guardrails(self, framework: ComplianceFramework) -> dict[str, Any]: ...


@runtime_checkable
class LayerProvider(Protocol):
    rank: LayerRank

    def layers(self, context: ResolutionContext) -> list[ConfigLayer]: ...


class HardcodedFallbackProvider:
    """Rank 0: the component's last-resort defaults."""

    rank = LayerRank.HARDCODED

    def __init__(self, source: LayerSource) -> None:
        self._source = source

    def layers(self, context: ResolutionContext) -> list[ConfigLayer]:
        return [ConfigLayer(self.rank, self._source.hardcoded_fallbacks())]


class ComplianceDefaultsProvider:
    """Rank 1: defaults selected purely by the active compliance framework."""

    rank = LayerRank.COMPLIANCE

    def __init__(self, source: LayerSource) -> None:
        self._source = source

    def layers(self, context: ResolutionContext) -> list[ConfigLayer]:
        values = self._source.compliance_defaults(context.framework)
        return [ConfigLayer(self.rank, values, name=f"compliance-defaults:{context.framework}")]


class EnvironmentDefaultsProvider:
    """Rank 2: values scoped to the deployment environment."""

    rank = LayerRank.ENVIRONMENT

    def layers(self, context: ResolutionContext) -> list[ConfigLayer]:
        if not context.environment_values:
            return []
        name = f"environment-defaults:{context.environment}"
        return [ConfigLayer(self.rank, context.environment_values, name=name)]


class UserOverridesProvider:
    """Rank 3: the component's configuration block from the service manifest."""

    rank = LayerRank.USER

    def __init__(self, overrides: Mapping[str, Any] | None = None) -> None:
        self._overrides = dict(overrides or {})

    def layers(self, context: ResolutionContext) -> list[ConfigLayer]:
        if not self._overrides:
            return []
        return [ConfigLayer(self.rank, self._overrides)]


class PolicyOverridesProvider:
    """Rank 4: compliance guardrails first, then each governance policy source.

    Policy sources share a rank and are applied in the order the context
    lists them, so a later source wins a collision.
    """

    rank = LayerRank.POLICY

    def __init__(self, source: LayerSource) -> None:
        self._source = source

    def layers(self, context: ResolutionContext) -> list[ConfigLayer]:
        result: list[ConfigLayer] = []
        guardrails = self._source.compliance_guardrails(context.framework)
        if guardrails:
            result.append(
                ConfigLayer(
                    self.rank, guardrails, name=f"compliance-guardrails:{context.framework}"
                )
            )
        for name, values in context.policy_overrides.items():
            if values:
                result.append(ConfigLayer(self.rank, values, name=f"policy:{name}"))
        return result


def default_providers(
    source: LayerSource,
    user_overrides: Mapping[str, Any] | None = None,
) -> list[LayerProvider]:
    """The standard five-rank provider chain for a component."""
    return [
        HardcodedFallbackProvider(source),
        ComplianceDefaultsProvider(source),
        EnvironmentDefaultsProvider(),
        UserOverridesProvider(user_overrides),
        PolicyOverridesProvider(source),
    ]


def gather_layers(
    providers: Iterable[LayerProvider],
    context: ResolutionContext,
) -> list[ConfigLayer]:
    """Collect every provider's layers in ascending rank order.

    Provider order is kept within a rank.
    """
    collected: list[ConfigLayer] = []
    for provider in sorted(providers, key=lambda p: int(p.rank)):
        for layer in provider.layers(context):
            if layer.rank != provider.rank:
                msg = (
                    f"{type(provider).__name__} produced a {layer.rank.name} layer "
                    f"but provides rank {provider.rank.name}"
                )
                raise ValueError(msg)
            collected.append(layer)
    return collected
