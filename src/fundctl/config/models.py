"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, fundctl.toml only contains
overrides. Values are deliberately unconstrained at this layer: the
funding section is validated when it is turned into a
:class:`~fundctl.domain.policy.Policy`, so bad amounts surface as a
ConfigurationError from the run rather than a settings crash.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from fundctl.domain.errors import ConfigurationError
from fundctl.domain.policy import DEFAULT_FEE_RESERVE, Policy

# --- fundctl.toml sections ---


class LedgerConfig(BaseModel):
    """[ledger] section."""

    model_config = {"frozen": True}

    rpc_url: str | None = None
    helius_api_key: str | None = Field(default=None, repr=False)
    commitment: Literal["processed", "confirmed", "finalized"] = "confirmed"
    timeout: float = 30.0
    confirm_timeout: float = 60.0
    poll_interval: float = 1.0
    history_limit: int = 100


class FundingConfig(BaseModel):
    """[funding] section."""

    model_config = {"frozen": True}

    min_amount: Decimal = Decimal("0.1")
    lookback_hours: float = 24
    amount: Decimal = Decimal("0.05")
    max_operations: int = 10
    fee_reserve: Decimal = DEFAULT_FEE_RESERVE
    dry_run: bool = True

    def to_policy(self) -> Policy:
        """Validate this section into a run Policy (raises ConfigurationError)."""
        try:
            window = timedelta(hours=self.lookback_hours)
        except (ValueError, OverflowError) as exc:
            msg = f"Invalid policy: lookback_hours: {self.lookback_hours} is not a usable duration"
            raise ConfigurationError(msg) from exc
        return Policy.create(
            min_transfer_amount=self.min_amount,
            lookback_window=window,
            funding_amount=self.amount,
            max_operations=self.max_operations,
            simulate_only=self.dry_run,
            fee_reserve=self.fee_reserve,
        )


class RosterConfig(BaseModel):
    """[roster] section."""

    model_config = {"frozen": True}

    donors: str = "donors.csv"
    recipients: str = "recipients.csv"


class PacingConfig(BaseModel):
    """[pacing] section."""

    model_config = {"frozen": True}

    verify_every: int = 10
    verify_delay: float = 0.5
    fund_every: int = 5
    fund_delay: float = 1.0


class VerifyConfig(BaseModel):
    """[verify] section."""

    model_config = {"frozen": True}

    max_workers: int = 1

