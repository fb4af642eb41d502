"""Tests for ConfigViolation and resolver exceptions."""

from __future__ import annotations

from shinobi_resolver.domain.types import ViolationKind
from shinobi_resolver.domain.violations import (
    ConfigViolation,
    ResolutionError,
    UnknownComponentError,
    sort_violations,
)


def _v(path: str, kind: ViolationKind = ViolationKind.SCHEMA) -> ConfigViolation:
    return ConfigViolation(kind=kind, path=path, reason="bad")


class TestConfigViolation:
    def test_error_kinds(self) -> None:
        assert _v("a").is_error
        assert _v("a", ViolationKind.RANGE).is_error
        assert _v("a", ViolationKind.UNKNOWN_FIELD).is_error
        assert not _v("a", ViolationKind.CONFLICTING_LAYER).is_error

    def test_describe(self) -> None:
        violation = ConfigViolation(
            kind=ViolationKind.UNKNOWN_FIELD,
            path="x",
            reason="not declared",
            layer="user-overrides",
        )
        assert violation.describe() == "x: not declared (from user-overrides)"
        assert _v("").describe() == "<root>: bad"

    def test_sort_by_path(self) -> None:
        ordered = sort_violations([_v("b"), _v("a.c"), _v("a")])
        assert [v.path for v in ordered] == ["a", "a.c", "b"]


class TestResolutionError:
    def test_carries_all_violations(self) -> None:
        violations = [_v(f"f{i}") for i in range(5)]
        exc = ResolutionError("demo", violations)
        assert exc.component_type == "demo"
        assert len(exc.violations) == 5
        assert "5 violation(s)" in str(exc)
        assert "and 2 more" in str(exc)


class TestUnknownComponentError:
    def test_message(self) -> None:
        exc = UnknownComponentError("nope")
        assert exc.component_type == "nope"
        assert str(exc) == "Unknown component type: 'nope'"
        assert isinstance(exc, KeyError)
