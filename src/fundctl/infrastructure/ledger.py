"""LedgerClient — the boundary between the funding core and the network.

The verifier and distributor only ever talk to this protocol. The real
implementation is :class:`fundctl.infrastructure.rpc.SolanaRpcClient`;
tests substitute an in-memory ledger.

Error contract:
    * Lookups raise :class:`~fundctl.domain.errors.LedgerLookupError`.
    * ``submit_transfer`` raises :class:`~fundctl.domain.errors.SubmissionError`
      or its subclass :class:`~fundctl.domain.errors.ConfirmationTimeoutError`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from decimal import Decimal

    from fundctl.domain.transfers import TransactionDetail, TransactionSummary, TransferReceipt


@runtime_checkable
class LedgerClient(Protocol):
    """Read history and balances, and submit single transfers."""

    def get_balance(self, address: str) -> Decimal:
        """Current balance of *address* in native units."""
        ...

    def get_recent_transactions(self, address: str, limit: int) -> list[TransactionSummary]:
        """Up to *limit* most recent transactions touching *address*, newest first."""
        ...

    def get_transaction_detail(self, signature: str) -> TransactionDetail | None:
        """Balance movements of one transaction, or None if the ledger has no record."""
        ...

    def submit_transfer(
        self, from_credential: str, to_address: str, amount: Decimal
    ) -> TransferReceipt:
        """Send *amount* and block until the transfer is confirmed."""
        ...
