"""Per-run outcomes produced by the verifier and the distributor.

Both reports are built once per run and handed to the reporting
boundary. ``to_dict()`` methods produce the JSON-friendly shapes that
end up in ``ServiceResult.data``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from fundctl.domain.transfers import TransferRecord
from fundctl.domain.types import DisbursementStatus, FundingStatus, SkipReason
from fundctl.domain.units import format_sol
from fundctl.domain.wallets import AvailableDonor, Recipient

# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RecipientOutcome:
    """Classification of one recipient.

    ``evidence`` is the first qualifying transfer when funded. ``error``
    is set when the history lookup failed and the recipient was
    classified unfunded as a precaution.
    """

    recipient: Recipient
    status: FundingStatus
    evidence: TransferRecord | None = None
    error: str | None = None

    @property
    def funded(self) -> bool:
        return self.status is FundingStatus.FUNDED

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "address": self.recipient.address,
            "status": str(self.status),
        }
        if self.evidence is not None:
            data["signature"] = self.evidence.signature
            data["amount"] = format_sol(self.evidence.amount_received)
            data["from"] = self.evidence.sender_address
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class VerificationReport:
    """All recipient outcomes for a run, in input order."""

    outcomes: tuple[RecipientOutcome, ...]
    cutoff: datetime

    @property
    def unfunded(self) -> list[Recipient]:
        """Recipients to fund, order-preserving relative to the input."""
        return [o.recipient for o in self.outcomes if not o.funded]

    @property
    def funded_count(self) -> int:
        return sum(1 for o in self.outcomes if o.funded)

    @property
    def unfunded_count(self) -> int:
        return len(self.outcomes) - self.funded_count

    @property
    def warnings(self) -> list[str]:
        return [f"{o.recipient.address}: {o.error}" for o in self.outcomes if o.error]


# ---------------------------------------------------------------------------
# Distribution
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Disbursement:
    """What happened to one recipient during distribution."""

    recipient: Recipient
    status: DisbursementStatus
    donor_address: str | None = None
    signature: str | None = None
    simulated: bool = False
    reason: SkipReason | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "address": self.recipient.address,
            "status": str(self.status),
        }
        if self.donor_address is not None:
            data["donor"] = self.donor_address
        if self.signature is not None:
            data["signature"] = self.signature
        if self.simulated:
            data["simulated"] = True
        if self.reason is not None:
            data["reason"] = str(self.reason)
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class DistributionResult:
    """Aggregate and per-recipient results of a distribution pass."""

    disbursements: tuple[Disbursement, ...] = ()
    available_donors: tuple[AvailableDonor, ...] = ()
    truncated: int = 0
    warnings: tuple[str, ...] = ()

    def _count(self, status: DisbursementStatus) -> int:
        return sum(1 for d in self.disbursements if d.status is status)

    @property
    def success(self) -> int:
        return self._count(DisbursementStatus.SUCCEEDED)

    @property
    def failed(self) -> int:
        return self._count(DisbursementStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(DisbursementStatus.SKIPPED)

    def counts(self) -> dict[str, int]:
        return {"success": self.success, "failed": self.failed, "skipped": self.skipped}
