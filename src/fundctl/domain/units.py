"""Native unit <-> lamport conversion.

Amounts are carried as :class:`~decimal.Decimal` SOL everywhere above the
RPC client. Lamports only appear on the wire.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal

LAMPORTS_PER_SOL = 1_000_000_000


def from_lamports(lamports: int) -> Decimal:
    """Convert integer lamports to SOL."""
    return Decimal(lamports) / LAMPORTS_PER_SOL


def to_lamports(amount: Decimal) -> int:
    """Convert SOL to whole lamports, rounding down."""
    return int((amount * LAMPORTS_PER_SOL).to_integral_value(rounding=ROUND_FLOOR))


def format_sol(amount: Decimal, places: int = 6) -> str:
    """Render an amount with a fixed number of decimals, e.g. ``0.050000``."""
    return f"{amount:.{places}f}"
