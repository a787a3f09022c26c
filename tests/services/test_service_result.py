"""Tests for the ServiceResult contract."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from fundctl.services.result import ServiceResult


def test_failed_builds_error() -> None:
    result = ServiceResult.failed("run", "INVALID_CONFIG", "bad amount", field="amount")
    assert result.ok is False
    assert result.error is not None
    assert result.error.code == "INVALID_CONFIG"
    assert result.error.detail == {"field": "amount"}
    assert result.exit_code == 1


def test_success_exit_code() -> None:
    assert ServiceResult(ok=True, op="verify").exit_code == 0


def test_frozen() -> None:
    result = ServiceResult(ok=True, op="verify")
    with pytest.raises(ValidationError):
        result.ok = False  # type: ignore[misc]
