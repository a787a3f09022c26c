"""Rich Console factory and theme for fundctl output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract.  In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

FUND_THEME = Theme(
    {
        "fund.ok": "bold green",
        "fund.error": "bold red",
        "fund.warning": "bold yellow",
        "fund.op": "bold cyan",
        "fund.key": "dim",
        "fund.address": "bold blue",
        "fund.signature": "dim",
        "fund.amount": "magenta",
        "fund.dry_run": "bold yellow",
        "fund.status.funded": "green",
        "fund.status.unfunded": "yellow",
        "fund.status.succeeded": "green",
        "fund.status.failed": "red",
        "fund.status.skipped": "dim",
    }
)

_STATUS_STYLES: dict[str, str] = {
    "funded": "fund.status.funded",
    "unfunded": "fund.status.unfunded",
    "succeeded": "fund.status.succeeded",
    "failed": "fund.status.failed",
    "skipped": "fund.status.skipped",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=FUND_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_status(status: str) -> str:
    """Return the Rich style name for a classification or disbursement status."""
    return _STATUS_STYLES.get(status, "")
