"""Rich Console factory and theme for shinobi-resolve output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract.  In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

SHINOBI_THEME = Theme(
    {
        "shinobi.ok": "bold green",
        "shinobi.error": "bold red",
        "shinobi.warning": "bold yellow",
        "shinobi.op": "bold cyan",
        "shinobi.key": "dim",
        "shinobi.path": "bold blue",
        "shinobi.layer.hardcoded": "dim",
        "shinobi.layer.compliance": "green",
        "shinobi.layer.environment": "cyan",
        "shinobi.layer.user": "yellow",
        "shinobi.layer.policy": "magenta",
    }
)

# Layer names carry their rank as a prefix (e.g. "compliance-defaults:fedramp-high").
_LAYER_STYLES: dict[str, str] = {
    "hardcoded-fallbacks": "shinobi.layer.hardcoded",
    "compliance-defaults": "shinobi.layer.compliance",
    "environment-defaults": "shinobi.layer.environment",
    "user-overrides": "shinobi.layer.user",
    "compliance-guardrails": "shinobi.layer.policy",
    "policy-overrides": "shinobi.layer.policy",
    "policy": "shinobi.layer.policy",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=SHINOBI_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_layer(layer_name: str) -> str:
    """Return the Rich style name for a layer name."""
    return _LAYER_STYLES.get(layer_name.split(":", 1)[0], "")
