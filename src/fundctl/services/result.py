"""ServiceResult and ServiceError — the contract between services and the CLI.

INVARIANT: Every operation the CLI invokes returns a ServiceResult.
Fatal run errors (configuration, rosters) are ``ok=False`` with a
ServiceError; contained per-wallet errors are ``warnings`` on an
``ok=True`` result.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Universal return type for CLI-facing service operations.

    Attributes:
        ok: Whether the operation could run to completion.
        op: Name of the operation (e.g. ``"run"``, ``"verify"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (timing, telemetry).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failed(cls, op: str, code: str, message: str, **detail: Any) -> ServiceResult:
        """An ``ok=False`` result for a run that could not start."""
        return cls(ok=False, op=op, error=ServiceError(code=code, message=message, detail=detail))

    @property
    def exit_code(self) -> int:
        """Process exit status: 1 only when the operation could not run."""
        return 0 if self.ok else 1
