"""Run policy: the immutable thresholds one invocation is evaluated against.

INVARIANT: A Policy is frozen. Nothing downstream of construction may
change the amounts, the window, or the operation cap mid-run.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Self

from pydantic import BaseModel, Field, ValidationError, field_validator

from fundctl.domain.errors import ConfigurationError

DEFAULT_FEE_RESERVE = Decimal("0.001")


class Policy(BaseModel):
    """Thresholds and safety limits for a single verify/fund run.

    Attributes:
        min_transfer_amount: Smallest received amount that counts as funding.
        lookback_window: How far back a qualifying transfer may lie.
        funding_amount: Amount sent to each unfunded recipient.
        max_operations: Cap on disbursements attempted in one run.
        simulate_only: Dry run; compute and report but never submit.
        fee_reserve: Buffer a donor must hold on top of ``funding_amount``.
    """

    model_config = {"frozen": True}

    min_transfer_amount: Decimal = Field(gt=0)
    lookback_window: timedelta
    funding_amount: Decimal = Field(gt=0)
    max_operations: int = Field(gt=0)
    simulate_only: bool = True
    fee_reserve: Decimal = Field(default=DEFAULT_FEE_RESERVE, ge=0)

    @field_validator("lookback_window")
    @classmethod
    def _window_positive(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            msg = "must be a positive duration"
            raise ValueError(msg)
        return value

    @classmethod
    def create(cls, **values: Any) -> Self:
        """Validate *values* into a Policy, raising ConfigurationError on failure."""
        try:
            return cls(**values)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'policy'}: {err['msg']}"
                for err in exc.errors()
            )
            raise ConfigurationError(f"Invalid policy: {problems}") from exc

    @property
    def required_donor_balance(self) -> Decimal:
        """Minimum balance a donor needs to be eligible."""
        return self.funding_amount + self.fee_reserve

    def cutoff(self, now: datetime) -> datetime:
        """Oldest block time that still falls inside the lookback window."""
        try:
            return now - self.lookback_window
        except OverflowError:
            return datetime.min.replace(tzinfo=now.tzinfo)

    def describe(self) -> dict[str, Any]:
        """JSON-friendly summary for reports."""
        return {
            "min_transfer_amount": str(self.min_transfer_amount),
            "lookback_hours": self.lookback_window.total_seconds() / 3600,
            "funding_amount": str(self.funding_amount),
            "max_operations": self.max_operations,
            "fee_reserve": str(self.fee_reserve),
            "dry_run": self.simulate_only,
        }
