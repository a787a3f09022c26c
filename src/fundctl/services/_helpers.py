"""Shared service-layer helper functions."""

from __future__ import annotations

from datetime import UTC, datetime


def now_utc() -> datetime:
    """Current UTC time, timezone-aware (the verifier's default clock)."""
    return datetime.now(UTC)


def now_iso() -> str:
    """Current UTC time as standard ISO 8601 (for run reports)."""
    return now_utc().isoformat()


def progress(index: int, total: int) -> str:
    """Render a ``[3/10]`` progress marker."""
    return f"[{index}/{total}]"
