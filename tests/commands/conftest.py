"""Fixtures for CLI command tests: a patched ledger and clean global state."""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from fundctl.domain.wallets import Donor, Recipient
from fundctl.infrastructure import rpc
from fundctl.services.telemetry import _active_span, disable_telemetry


@pytest.fixture(autouse=True)
def _restore_global_state() -> Generator[None]:
    """Undo the logging and telemetry setup each CLI invocation performs."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    fund_level = logging.getLogger("fundctl").level
    yield
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("fundctl").setLevel(fund_level)
    disable_telemetry()
    _active_span.set(None)


@pytest.fixture
def patched_ledger(ledger, monkeypatch: pytest.MonkeyPatch):
    """Route the CLI's lazily created ledger client to the in-memory fake."""
    monkeypatch.setattr(rpc, "create_ledger_client", lambda _settings: ledger)
    return ledger


@pytest.fixture
def default_rosters(
    tmp_path: Path,
    ledger,
    make_donor: Callable[..., Donor],
    make_recipient: Callable[[], Recipient],
) -> tuple[Donor, Recipient, Recipient]:
    """donors.csv / recipients.csv in the working directory; R1 already funded."""
    d1 = make_donor("1.0")
    r1, r2 = make_recipient(), make_recipient()
    ledger.add_transfer(
        sender=d1.address,
        recipient=r1.address,
        amount="0.2",
        at=datetime.now(UTC) - timedelta(minutes=10),
    )
    (tmp_path / "donors.csv").write_text(
        f"address,private_key\n{d1.address},{d1.signing_credential}\n"
    )
    (tmp_path / "recipients.csv").write_text(f"address\n{r1.address}\n{r2.address}\n")
    return d1, r1, r2
