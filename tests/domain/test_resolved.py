"""Tests for ResolvedConfiguration."""

from __future__ import annotations

import pytest

from shinobi_resolver.domain.resolved import ResolvedConfiguration, freeze, thaw
from shinobi_resolver.domain.types import ComplianceFramework


def _config(**values: object) -> ResolvedConfiguration:
    return ResolvedConfiguration(
        component_type="demo",
        component_name="web",
        framework=ComplianceFramework.COMMERCIAL,
        environment="dev",
        values=values,
        provenance={"capacity.min": "compliance-defaults:commercial"},
    )


class TestResolvedConfiguration:
    def test_values_are_deeply_frozen(self) -> None:
        config = _config(capacity={"min": 1}, policies=["Default"])
        with pytest.raises(TypeError):
            config.values["capacity"]["min"] = 2  # type: ignore[index]
        assert config["policies"] == ("Default",)

    def test_cannot_reassign_attributes(self) -> None:
        config = _config(a=1)
        with pytest.raises(AttributeError):
            config.component_name = "other"  # type: ignore[misc]

    def test_get_dotted_path(self) -> None:
        config = _config(capacity={"min": 1})
        assert config.get("capacity.min") == 1
        assert config.get("capacity.max", 9) == 9
        assert config.get("capacity.min.deeper") is None

    def test_to_dict_round_trips_to_plain_types(self) -> None:
        config = _config(capacity={"min": 1}, policies=["Default"])
        plain = config.to_dict()
        assert plain == {"capacity": {"min": 1}, "policies": ["Default"]}
        plain["capacity"]["min"] = 5
        assert config.get("capacity.min") == 1

    def test_source_of(self) -> None:
        config = _config(capacity={"min": 1})
        assert config.source_of("capacity.min") == "compliance-defaults:commercial"
        assert config.source_of("capacity.max") is None

    def test_equality_by_content(self) -> None:
        assert _config(a=1) == _config(a=1)
        assert _config(a=1) != _config(a=2)
        assert "a" in _config(a=1)


def test_freeze_thaw() -> None:
    tree = {"a": [{"b": 1}]}
    assert thaw(freeze(tree)) == tree
