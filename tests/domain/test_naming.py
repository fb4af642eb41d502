"""Tests for identifier sanitizing."""

from __future__ import annotations

import pytest

from shinobi_resolver.domain.naming import derive_resource_name, sanitize_identifier


class TestSanitizeIdentifier:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("My Custom Name!", "my-custom-name"),
            ("42-search", "a42-search"),
            ("!!!", "resource"),
            ("--lead", "lead"),
            ("already-fine", "already-fine"),
        ],
    )
    def test_examples(self, raw: str, expected: str) -> None:
        assert sanitize_identifier(raw, max_length=28) == expected

    def test_truncates_and_strips_trailing_hyphen(self) -> None:
        result = sanitize_identifier("abcdefghij-klmnop", max_length=11)
        assert result == "abcdefghij"

    def test_long_name_fits_limit(self) -> None:
        result = sanitize_identifier("x" * 60, max_length=28)
        assert len(result) == 28

    def test_idempotent(self) -> None:
        once = sanitize_identifier("Checkout Search Cluster #1", max_length=28)
        assert sanitize_identifier(once, max_length=28) == once

    def test_custom_alphabet_without_letter_start(self) -> None:
        result = sanitize_identifier(
            "9.Logs_Bucket", max_length=63, allowed="a-z0-9.-", letter_start=False
        )
        assert result == "9.logs-bucket"


def test_derive_resource_name() -> None:
    assert derive_resource_name("checkout", "web") == "checkout-web"
