"""Ledger transaction views and the transfer records derived from them.

The ledger client produces :class:`TransactionSummary` (history listing)
and :class:`TransactionDetail` (per-account balance snapshots). The
verifier reduces a detail to a :class:`TransferRecord` from the point of
view of one recipient, then asks the record whether it qualifies.
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class TransactionSummary:
    """One entry of an account's signature history (most recent first)."""

    signature: str
    block_time: datetime | None
    failed: bool = False


@dataclass(frozen=True)
class Participant:
    """An account touched by a transaction, with its balance before and after."""

    address: str
    pre_balance: Decimal
    post_balance: Decimal

    @property
    def delta(self) -> Decimal:
        return self.post_balance - self.pre_balance


@dataclass(frozen=True)
class TransactionDetail:
    """Outcome and balance movements of a single transaction."""

    signature: str
    success: bool
    participants: tuple[Participant, ...] = ()
    block_time: datetime | None = None

    def participant(self, address: str) -> Participant | None:
        """First participant entry for *address*, or None if it was not involved."""
        for entry in self.participants:
            if entry.address == address:
                return entry
        return None


@dataclass(frozen=True)
class TransferRecord:
    """A transaction seen from one recipient's account position.

    ``sender_address`` is the first donor whose balance decreased in the
    same transaction, or None when no donor paid anything.
    """

    signature: str
    recipient_address: str
    amount_received: Decimal
    sender_address: str | None
    timestamp: datetime | None
    succeeded: bool

    def qualifies(self, *, min_amount: Decimal, cutoff: datetime) -> bool:
        """True when this record proves the recipient was funded by a donor."""
        if not self.succeeded:
            return False
        if self.timestamp is None or self.timestamp < cutoff:
            return False
        if self.amount_received <= 0 or self.amount_received < min_amount:
            return False
        return self.sender_address is not None


@dataclass(frozen=True)
class TransferReceipt:
    """Confirmation of a submitted transfer."""

    signature: str
    from_address: str
    to_address: str
    amount: Decimal


def derive_transfer(
    detail: TransactionDetail,
    recipient_address: str,
    donor_addresses: Collection[str],
    *,
    timestamp: datetime | None = None,
) -> TransferRecord | None:
    """Reduce *detail* to a TransferRecord for *recipient_address*.

    Returns None when the recipient does not appear among the participants.
    *timestamp* overrides the detail's own block time (history listings
    carry it even when the detail payload does not).
    """
    recipient = detail.participant(recipient_address)
    if recipient is None:
        return None

    sender = next(
        (
            p.address
            for p in detail.participants
            if p.address != recipient_address and p.address in donor_addresses and p.delta < 0
        ),
        None,
    )
    return TransferRecord(
        signature=detail.signature,
        recipient_address=recipient_address,
        amount_received=recipient.delta,
        sender_address=sender,
        timestamp=timestamp if timestamp is not None else detail.block_time,
        succeeded=detail.success,
    )
