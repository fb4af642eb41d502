"""Tests for PluginManager dispatch."""

from __future__ import annotations

from typing import Any

import pytest

from shinobi_resolver.components.base import ComponentDefinition
from shinobi_resolver.domain.schema import number, object_of
from shinobi_resolver.plugins import PluginManager, PolicySourceError, hookimpl


class Cache(ComponentDefinition):
    component_type = "cache"
    schema = object_of({"nodes": number(minimum=1, maximum=6)})
    FALLBACKS = {"nodes": 1}


class TaggingPolicy:
    @hookimpl
    def policy_overrides(self, component_type: str, framework: str) -> dict[str, Any] | None:
        if component_type != "auto-scaling-group":
            return None
        return {"tags": {"framework": framework}}


class EmptyPolicy:
    @hookimpl
    def policy_overrides(self, component_type: str) -> dict[str, Any]:
        return {}


class RaisingPolicy:
    @hookimpl
    def policy_overrides(self, component_type: str) -> dict[str, Any]:
        raise RuntimeError("policy store unreachable")


class ListPolicy:
    @hookimpl
    def policy_overrides(self, component_type: str) -> list[str]:
        return ["nope"]


class Recorder:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    @hookimpl
    def post_resolve(self, component_type: str, component_name: str, config: dict) -> None:
        self.calls.append((component_type, component_name, config))


class BrokenObserver:
    @hookimpl
    def post_resolve(self, component_type: str) -> None:
        raise ValueError("boom")


class CacheProvider:
    @hookimpl
    def register_components(self) -> list[type[ComponentDefinition]]:
        return [Cache]


class TestRegistration:
    def test_register_and_list(self) -> None:
        pm = PluginManager()
        pm.register_plugin(TaggingPolicy())
        pm.register_plugin(Recorder(), name="zz-recorder")
        assert pm.list_plugin_names() == ["TaggingPolicy", "zz-recorder"]
        assert pm.is_loaded is False

    def test_unregister(self) -> None:
        pm = PluginManager()
        plugin = TaggingPolicy()
        pm.register_plugin(plugin)
        pm.unregister(plugin)
        assert pm.get_plugins() == []

    def test_discover_without_plugins(self) -> None:
        pm = PluginManager()
        assert pm.discover_and_load() == []
        assert pm.is_loaded is True


class TestPolicyOverrides:
    def test_collected_in_name_order(self) -> None:
        pm = PluginManager()
        pm.register_plugin(TaggingPolicy(), name="b-tags")
        pm.register_plugin(EmptyPolicy(), name="a-empty")
        pm.register_plugin(Recorder())
        collected = pm.collect_policy_overrides("auto-scaling-group", "fedramp-high", "prod")
        assert collected == {"b-tags": {"tags": {"framework": "fedramp-high"}}}

    def test_none_means_no_opinion(self) -> None:
        pm = PluginManager()
        pm.register_plugin(TaggingPolicy())
        assert pm.collect_policy_overrides("opensearch-domain", "commercial", "dev") == {}

    def test_raising_source_is_an_error(self) -> None:
        pm = PluginManager()
        pm.register_plugin(RaisingPolicy(), name="governance")
        with pytest.raises(PolicySourceError, match="policy store unreachable") as excinfo:
            pm.collect_policy_overrides("cache", "commercial", "dev")
        assert excinfo.value.plugin_name == "governance"

    def test_non_dict_is_an_error(self) -> None:
        pm = PluginManager()
        pm.register_plugin(ListPolicy())
        with pytest.raises(PolicySourceError, match="returned list"):
            pm.collect_policy_overrides("cache", "commercial", "dev")


class TestPostResolve:
    def test_observers_called(self) -> None:
        pm = PluginManager()
        recorder = Recorder()
        pm.register_plugin(recorder)
        assert pm.notify_post_resolve("cache", "hot", {"nodes": 2}) == []
        assert recorder.calls == [("cache", "hot", {"nodes": 2})]

    def test_failures_become_warnings(self) -> None:
        pm = PluginManager()
        recorder = Recorder()
        pm.register_plugin(BrokenObserver())
        pm.register_plugin(recorder)
        warnings = pm.notify_post_resolve("cache", "hot", {})
        assert warnings == ["Plugin BrokenObserver failed in post_resolve"]
        assert len(recorder.calls) == 1


class TestRegisterComponents:
    def test_components_registered_on_load(self, registry: dict) -> None:
        pm = PluginManager()
        pm.register_plugin(CacheProvider())
        pm.discover_and_load()
        assert isinstance(registry["cache"], Cache)

    def test_late_registration_after_load(self, registry: dict) -> None:
        pm = PluginManager()
        pm.discover_and_load()
        pm.register_plugin(CacheProvider())
        assert "cache" in registry

    def test_conflicting_component_is_skipped(self, registry: dict) -> None:
        class Impostor(ComponentDefinition):
            component_type = "opensearch-domain"

        class ImpostorProvider:
            @hookimpl
            def register_components(self) -> list[type[ComponentDefinition]]:
                return [Impostor]

        pm = PluginManager()
        pm.register_plugin(ImpostorProvider())
        pm.discover_and_load()
        assert not isinstance(registry["opensearch-domain"], Impostor)
