"""Identifier sanitizing and derived resource names.

Cloud resource names accept a narrow character set and length. Free text
from manifests is folded into that form deterministically, so applying
the sanitizer twice gives the same result as applying it once.
"""

from __future__ import annotations

import re
import unicodedata

DEFAULT_ALLOWED = "a-z0-9-"


def sanitize_identifier(
    text: str,
    *,
    max_length: int,
    allowed: str = DEFAULT_ALLOWED,
    letter_start: bool = True,
    fallback: str = "resource",
) -> str:
    """Fold *text* into a lower-case identifier of at most *max_length* chars.

    Disallowed characters become hyphens, leading hyphens are dropped, a
    letter prefix is added when *letter_start* demands one, and trailing
    hyphens left by truncation are removed.

    Examples:
        >>> sanitize_identifier("My Custom Name!", max_length=28)
        'my-custom-name'
        >>> sanitize_identifier("42-search", max_length=28)
        'a42-search'
        >>> sanitize_identifier("!!!", max_length=28)
        'resource'
    """
    folded = unicodedata.normalize("NFKC", text).lower()
    folded = re.sub(f"[^{allowed}]", "-", folded)
    folded = folded.lstrip("-")
    if letter_start and folded and not folded[0].isalpha():
        folded = f"a{folded}"
    folded = folded[:max_length].rstrip("-")
    return folded or fallback[:max_length]


def derive_resource_name(service_name: str, component_name: str) -> str:
    """Default resource identifier: ``{service}-{component}``."""
    return f"{service_name}-{component_name}"
