"""Shared pytest fixtures and test helpers for fundctl tests."""

from __future__ import annotations

import itertools
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from pathlib import Path

import base58
import pytest
from click.testing import CliRunner
from solders.keypair import Keypair

from fundctl.domain.errors import LedgerLookupError, SubmissionError
from fundctl.domain.policy import Policy
from fundctl.domain.transfers import (
    Participant,
    TransactionDetail,
    TransactionSummary,
    TransferReceipt,
)
from fundctl.domain.wallets import Donor, Recipient
from fundctl.infrastructure.keys import derive_address

FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class FakeLedger:
    """In-memory LedgerClient.

    Histories are kept newest first. Every call is recorded in ``calls``
    so tests can assert on what was (or was not) asked of the ledger.
    """

    def __init__(self) -> None:
        self.balances: dict[str, Decimal] = {}
        self.histories: dict[str, list[TransactionSummary]] = {}
        self.details: dict[str, TransactionDetail] = {}
        self.failing_balances: set[str] = set()
        self.failing_histories: set[str] = set()
        self.failing_details: set[str] = set()
        self.failing_transfers: set[str] = set()
        self.transfers: list[tuple[str, str, Decimal]] = []
        self.calls: list[tuple[str, str]] = []
        self._signatures = itertools.count(1)

    # -- LedgerClient -------------------------------------------------

    def get_balance(self, address: str) -> Decimal:
        self.calls.append(("get_balance", address))
        if address in self.failing_balances:
            raise LedgerLookupError(f"balance lookup failed for {address}")
        return self.balances.get(address, Decimal(0))

    def get_recent_transactions(self, address: str, limit: int) -> list[TransactionSummary]:
        self.calls.append(("get_recent_transactions", address))
        if address in self.failing_histories:
            raise LedgerLookupError(f"history lookup failed for {address}")
        return list(self.histories.get(address, []))[:limit]

    def get_transaction_detail(self, signature: str) -> TransactionDetail | None:
        self.calls.append(("get_transaction_detail", signature))
        if signature in self.failing_details:
            raise LedgerLookupError(f"detail lookup failed for {signature}")
        return self.details.get(signature)

    def submit_transfer(
        self, from_credential: str, to_address: str, amount: Decimal
    ) -> TransferReceipt:
        self.calls.append(("submit_transfer", to_address))
        if to_address in self.failing_transfers:
            raise SubmissionError(f"Transfer to {to_address} failed: simulated outage")
        sender = derive_address(from_credential)
        self.transfers.append((sender, to_address, amount))
        return TransferReceipt(
            signature=f"sent-{next(self._signatures)}",
            from_address=sender,
            to_address=to_address,
            amount=amount,
        )

    # -- Scenario helpers ---------------------------------------------

    def add_transfer(
        self,
        *,
        sender: str,
        recipient: str,
        amount: Decimal | str,
        at: datetime,
        success: bool = True,
        signature: str | None = None,
    ) -> str:
        """Record a sender -> recipient transfer in the recipient's history."""
        amount = Decimal(amount)
        signature = signature or f"tx-{next(self._signatures)}"
        fee = Decimal("0.000005")
        self.details[signature] = TransactionDetail(
            signature=signature,
            success=success,
            participants=(
                Participant(sender, Decimal(10), Decimal(10) - amount - fee),
                Participant(recipient, Decimal(0), amount),
            ),
            block_time=at,
        )
        self.add_summary(recipient, signature, at, failed=not success)
        return signature

    def add_summary(
        self, address: str, signature: str, at: datetime | None, *, failed: bool = False
    ) -> None:
        history = self.histories.setdefault(address, [])
        history.append(TransactionSummary(signature=signature, block_time=at, failed=failed))
        history.sort(key=lambda s: s.block_time or datetime.min.replace(tzinfo=UTC), reverse=True)

    def called(self, method: str) -> list[str]:
        return [arg for name, arg in self.calls if name == method]


def new_credential() -> str:
    """A freshly generated base58 secret key."""
    return base58.b58encode(bytes(Keypair())).decode("ascii")


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test in an empty directory with no FUNDCTL_* variables set."""
    import os

    for name in list(os.environ):
        if name.startswith("FUNDCTL_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def make_donor(ledger: FakeLedger) -> Callable[..., Donor]:
    """Factory: a donor with a real keypair and an optional ledger balance."""

    def _make(balance: Decimal | str | None = None, *, with_key: bool = True) -> Donor:
        credential = new_credential()
        donor = Donor(address=derive_address(credential))
        if with_key:
            donor = Donor(address=donor.address, signing_credential=credential)
        if balance is not None:
            ledger.balances[donor.address] = Decimal(balance)
        return donor

    return _make


@pytest.fixture
def make_recipient() -> Callable[[], Recipient]:
    return lambda: Recipient(address=str(Keypair().pubkey()))


@pytest.fixture
def make_policy() -> Callable[..., Policy]:
    """Factory: a valid Policy with overridable fields."""

    def _make(**overrides: object) -> Policy:
        values: dict[str, object] = {
            "min_transfer_amount": Decimal("0.1"),
            "lookback_window": timedelta(hours=24),
            "funding_amount": Decimal("0.05"),
            "max_operations": 10,
            "simulate_only": True,
        }
        values.update(overrides)
        return Policy.create(**values)

    return _make


@pytest.fixture
def policy(make_policy: Callable[..., Policy]) -> Policy:
    return make_policy()
