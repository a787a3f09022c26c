"""Wallet models loaded from the donor and recipient rosters.

A wallet is an address plus, for donors only, an optional signing
credential. The credential is excluded from ``repr`` and equality so it
never leaks into logs or reports.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TypeVar


@dataclass(frozen=True)
class Wallet:
    """A ledger account identified by its base58 address."""

    address: str
    signing_credential: str | None = field(default=None, repr=False, compare=False)

    @property
    def can_sign(self) -> bool:
        return bool(self.signing_credential)


@dataclass(frozen=True)
class Donor(Wallet):
    """A wallet that may fund recipients when it holds a credential."""


@dataclass(frozen=True)
class Recipient(Wallet):
    """A wallet checked for, and possibly receiving, funding."""


@dataclass(frozen=True)
class AvailableDonor:
    """A donor that passed the credential and balance checks for this run."""

    donor: Donor
    balance: Decimal

    @property
    def address(self) -> str:
        return self.donor.address


_W = TypeVar("_W", bound=Wallet)


def unique_by_address(wallets: Iterable[_W]) -> list[_W]:
    """Drop repeated addresses, keeping the first occurrence and input order."""
    seen: set[str] = set()
    result: list[_W] = []
    for wallet in wallets:
        if wallet.address in seen:
            continue
        seen.add(wallet.address)
        result.append(wallet)
    return result
