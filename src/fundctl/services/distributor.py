"""FundingDistributor — send compensating transfers to unfunded recipients.

Pipeline: CAP → RESOLVE DONORS → ASSIGN (round-robin) → SEND or SIMULATE

INVARIANT: At most ``policy.max_operations`` recipients are attempted.
INVARIANT: A donor is only used if its balance covers
``funding_amount + fee_reserve`` when checked at the start of the pass.
INVARIANT: Disbursements run strictly one after another. A donor's
balance is not re-checked between its assignments, so concurrent sends
from one donor could over-commit it.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog

from fundctl.domain.errors import SubmissionError
from fundctl.domain.outcomes import Disbursement, DistributionResult
from fundctl.domain.types import DisbursementStatus, SkipReason
from fundctl.domain.units import format_sol
from fundctl.domain.wallets import AvailableDonor, Donor, Recipient, unique_by_address
from fundctl.services._helpers import progress
from fundctl.services.base import BaseService
from fundctl.services.pacing import NO_PACING, Pacer

if TYPE_CHECKING:
    from fundctl.domain.policy import Policy
    from fundctl.infrastructure.ledger import LedgerClient

logger = structlog.get_logger(__name__)


class FundingDistributor(BaseService):
    """Allocate donors to unfunded recipients and execute or simulate transfers."""

    def __init__(self, ledger: LedgerClient, *, pacer: Pacer = NO_PACING) -> None:
        super().__init__(ledger)
        self._pacer = pacer

    def distribute(
        self,
        unfunded: Sequence[Recipient],
        donors: Sequence[Donor],
        policy: Policy,
    ) -> DistributionResult:
        """Fund up to ``policy.max_operations`` recipients, one transfer each."""
        if not unfunded:
            logger.info("fund.nothing_to_do")
            return DistributionResult()

        warnings: list[str] = []
        batch = list(unfunded[: policy.max_operations])
        overflow = [
            Disbursement(r, DisbursementStatus.SKIPPED, reason=SkipReason.OPERATION_CAP)
            for r in unfunded[policy.max_operations :]
        ]
        if overflow:
            self._warn(
                warnings,
                "fund.capped",
                f"Limited to the first {policy.max_operations} recipients; "
                f"{len(overflow)} skipped",
                cap=policy.max_operations,
            )

        logger.info(
            "fund.start",
            recipients=len(batch),
            amount=format_sol(policy.funding_amount),
            dry_run=policy.simulate_only,
        )

        available = self.available_donors(donors, policy, warnings)
        if not available:
            self._warn(
                warnings,
                "fund.no_donors",
                "No donors with private keys and sufficient balance found",
                required=format_sol(policy.required_donor_balance),
            )
            skipped = [
                Disbursement(r, DisbursementStatus.SKIPPED, reason=SkipReason.NO_AVAILABLE_DONORS)
                for r in batch
            ]
            return DistributionResult(
                disbursements=(*skipped, *overflow),
                truncated=len(overflow),
                warnings=tuple(warnings),
            )

        attempted: list[Disbursement] = []
        sent = 0
        for index, recipient in enumerate(batch):
            donor = available[index % len(available)]
            position = progress(index + 1, len(batch))
            disbursement = self._disburse(recipient, donor, policy, warnings, position=position)
            attempted.append(disbursement)

            if disbursement.simulated or disbursement.status is DisbursementStatus.SKIPPED:
                continue
            sent += 1
            if index + 1 < len(batch):
                self._pacer.tick(sent)

        result = DistributionResult(
            disbursements=(*attempted, *overflow),
            available_donors=tuple(available),
            truncated=len(overflow),
            warnings=tuple(warnings),
        )
        logger.info("fund.complete", **result.counts())
        return result

    def available_donors(
        self,
        donors: Sequence[Donor],
        policy: Policy,
        warnings: list[str],
    ) -> list[AvailableDonor]:
        """Donors holding a credential and at least the required balance, in roster order."""
        required = policy.required_donor_balance
        available: list[AvailableDonor] = []
        for donor in unique_by_address(donors):
            log = logger.bind(donor=donor.address)
            if not donor.can_sign:
                log.info("fund.donor_excluded", reason="no_private_key")
                continue
            try:
                balance = self._ledger.get_balance(donor.address)
            except LookupError as exc:
                self._warn(
                    warnings,
                    "fund.donor_balance_failed",
                    f"{donor.address}: {exc}",
                    donor=donor.address,
                )
                continue
            if balance < required:
                log.info(
                    "fund.donor_excluded",
                    reason="insufficient_balance",
                    balance=format_sol(balance),
                    required=format_sol(required),
                )
                continue
            log.info("fund.donor_available", balance=format_sol(balance))
            available.append(AvailableDonor(donor=donor, balance=balance))
        return available

    def _disburse(
        self,
        recipient: Recipient,
        donor: AvailableDonor,
        policy: Policy,
        warnings: list[str],
        *,
        position: str,
    ) -> Disbursement:
        log = logger.bind(recipient=recipient.address, donor=donor.address, position=position)

        if donor.address == recipient.address:
            log.warning("fund.self_transfer_skipped")
            warnings.append(f"{recipient.address}: donor and recipient are the same wallet")
            return Disbursement(
                recipient,
                DisbursementStatus.SKIPPED,
                donor_address=donor.address,
                reason=SkipReason.SELF_TRANSFER,
            )

        if policy.simulate_only:
            log.info("fund.simulated", amount=format_sol(policy.funding_amount))
            return Disbursement(
                recipient,
                DisbursementStatus.SUCCEEDED,
                donor_address=donor.address,
                simulated=True,
            )

        credential = donor.donor.signing_credential
        assert credential is not None  # available donors always hold one
        try:
            receipt = self._ledger.submit_transfer(
                credential, recipient.address, policy.funding_amount
            )
        except SubmissionError as exc:
            self._warn(
                warnings,
                "fund.failed",
                f"{recipient.address}: {exc}",
                recipient=recipient.address,
                donor=donor.address,
            )
            return Disbursement(
                recipient,
                DisbursementStatus.FAILED,
                donor_address=donor.address,
                error=str(exc),
            )

        log.info(
            "fund.disbursed",
            amount=format_sol(policy.funding_amount),
            signature=receipt.signature,
        )
        return Disbursement(
            recipient,
            DisbursementStatus.SUCCEEDED,
            donor_address=donor.address,
            signature=receipt.signature,
        )
