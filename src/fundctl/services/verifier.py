"""FundingVerifier — classify recipients as funded or unfunded.

A recipient is funded when its recent history holds a successful
transaction, inside the lookback window, where its own balance rose by
at least the policy minimum while some donor's balance fell.

Two accepted approximations, both deliberate:

* Only the ``history_limit`` most recent signatures are inspected. A
  busy account can push an in-window qualifying transfer past that
  limit; it will then be reported unfunded.
* A failed history lookup classifies the recipient as unfunded. Funding
  someone twice is cheaper than silently missing them, so uncertainty
  is resolved toward funding.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import TYPE_CHECKING

import structlog

from fundctl.domain.outcomes import RecipientOutcome, VerificationReport
from fundctl.domain.transfers import TransferRecord, derive_transfer
from fundctl.domain.types import FundingStatus
from fundctl.domain.units import format_sol
from fundctl.domain.wallets import Donor, Recipient, unique_by_address
from fundctl.services._helpers import now_utc, progress
from fundctl.services.base import BaseService
from fundctl.services.pacing import NO_PACING, Pacer

if TYPE_CHECKING:
    from fundctl.domain.policy import Policy
    from fundctl.infrastructure.ledger import LedgerClient

logger = structlog.get_logger(__name__)

DEFAULT_HISTORY_LIMIT = 100


class FundingVerifier(BaseService):
    """Classify recipients against their recent transaction history.

    Parameters:
        ledger: Read-only use: history and transaction detail lookups.
        history_limit: Most-recent signatures fetched per recipient.
        pacer: Pause cadence for the sequential loop.
        max_workers: Above 1, recipients are checked in a bounded thread
            pool instead of sequentially (pacing then does not apply).
        clock: Source of "now" for the lookback cutoff.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        *,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        pacer: Pacer = NO_PACING,
        max_workers: int = 1,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        super().__init__(ledger)
        self._history_limit = history_limit
        self._pacer = pacer
        self._max_workers = max(1, max_workers)
        self._clock = clock

    def classify(
        self,
        donors: Sequence[Donor],
        recipients: Sequence[Recipient],
        policy: Policy,
    ) -> VerificationReport:
        """Classify every recipient; the report preserves input order."""
        cutoff = policy.cutoff(self._clock())
        donor_addresses = frozenset(d.address for d in donors)
        unique = unique_by_address(recipients)
        total = len(unique)

        logger.info(
            "verify.start",
            recipients=total,
            donors=len(donor_addresses),
            min_amount=str(policy.min_transfer_amount),
            cutoff=cutoff.isoformat(),
        )

        def check(item: tuple[int, Recipient]) -> RecipientOutcome:
            index, recipient = item
            return self.check_recipient(
                recipient, donor_addresses, policy, cutoff, position=progress(index, total)
            )

        numbered = list(enumerate(unique, start=1))
        if self._max_workers > 1 and total > 1:
            with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
                outcomes = tuple(pool.map(check, numbered))
        else:
            results: list[RecipientOutcome] = []
            for item in numbered:
                results.append(check(item))
                if item[0] < total:
                    self._pacer.tick(item[0])
            outcomes = tuple(results)

        report = VerificationReport(outcomes=outcomes, cutoff=cutoff)
        logger.info(
            "verify.complete",
            funded=report.funded_count,
            unfunded=report.unfunded_count,
        )
        return report

    def check_recipient(
        self,
        recipient: Recipient,
        donor_addresses: Collection[str],
        policy: Policy,
        cutoff: datetime,
        *,
        position: str = "",
    ) -> RecipientOutcome:
        """Classify a single recipient. Lookup failures classify it unfunded."""
        log = logger.bind(address=recipient.address, position=position)
        try:
            evidence = self._first_qualifying(recipient.address, donor_addresses, policy, cutoff)
        except LookupError as exc:
            log.warning("verify.lookup_failed", error=str(exc))
            return RecipientOutcome(recipient, FundingStatus.UNFUNDED, error=str(exc))

        if evidence is None:
            log.info("verify.unfunded")
            return RecipientOutcome(recipient, FundingStatus.UNFUNDED)

        log.info(
            "verify.funded",
            amount=format_sol(evidence.amount_received),
            sender=evidence.sender_address,
            signature=evidence.signature,
        )
        return RecipientOutcome(recipient, FundingStatus.FUNDED, evidence=evidence)

    def _first_qualifying(
        self,
        address: str,
        donor_addresses: Collection[str],
        policy: Policy,
        cutoff: datetime,
    ) -> TransferRecord | None:
        records = self._transfer_records(address, donor_addresses, cutoff)
        minimum = policy.min_transfer_amount
        return next((r for r in records if r.qualifies(min_amount=minimum, cutoff=cutoff)), None)

    def _transfer_records(
        self,
        address: str,
        donor_addresses: Collection[str],
        cutoff: datetime,
    ) -> Iterator[TransferRecord]:
        """Lazily yield in-window transfer records for *address*, newest first.

        Transaction details are fetched one at a time, so the caller's
        early exit stops further lookups. A failed history listing
        propagates; a failed detail lookup skips that transaction only.
        """
        history = self._ledger.get_recent_transactions(address, self._history_limit)
        for summary in history:
            if summary.failed or summary.block_time is None or summary.block_time < cutoff:
                continue
            try:
                detail = self._ledger.get_transaction_detail(summary.signature)
            except LookupError as exc:
                logger.warning(
                    "verify.detail_failed",
                    address=address,
                    signature=summary.signature,
                    error=str(exc),
                )
                continue
            if detail is None:
                continue
            record = derive_transfer(
                detail, address, donor_addresses, timestamp=summary.block_time
            )
            if record is not None:
                yield record
