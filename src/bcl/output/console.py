"""Rich Console factory and theme for bcl output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract. In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

BCL_THEME = Theme(
    {
        "bcl.ok": "bold green",
        "bcl.error": "bold red",
        "bcl.warning": "bold yellow",
        "bcl.op": "bold cyan",
        "bcl.key": "dim",
        "bcl.id": "bold blue",
        "bcl.dyn": "bold magenta",
        "bcl.date": "cyan",
        "bcl.tag": "green",
        "bcl.amount": "bold",
        "bcl.lub.ok": "green",
        "bcl.lub.warn": "yellow",
        "bcl.lub.alert": "bold red",
    }
)

_LUB_STYLES: dict[str, str] = {
    "ok": "bcl.lub.ok",
    "warn": "bcl.lub.warn",
    "alert": "bcl.lub.alert",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=BCL_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_lub_level(level: str) -> str:
    """Return the Rich style name for a lubrication level."""
    return _LUB_STYLES.get(level, "")
