"""Command: classify recipients without sending anything."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import click

from fundctl.commands._base import DECIMAL, FundCommand, overrides

if TYPE_CHECKING:
    from fundctl.commands._context import AppContext

_VERIFY_EXAMPLES = """\
  fundctl verify
  fundctl verify -r recipients.json --hours 6
  fundctl -q verify > unfunded.txt"""


@click.command("verify", cls=FundCommand, examples=_VERIFY_EXAMPLES)
@click.option(
    "-a", "--amount", type=DECIMAL, default=None, help="Minimum SOL that counts as funded."
)
@click.option("-h", "--hours", type=float, default=None, help="Lookback window in hours.")
@click.option("-d", "--donors", type=click.Path(dir_okay=False), default=None, help="Donor roster.")
@click.option(
    "-r", "--recipients", type=click.Path(dir_okay=False), default=None, help="Recipient roster."
)
@click.pass_obj
def verify(
    app: AppContext,
    amount: Decimal | None,
    hours: float | None,
    donors: str | None,
    recipients: str | None,
) -> None:
    """Report which recipients were funded by a donor within the lookback window."""
    from fundctl.services.run import FundingRunService

    funding_cfg = app.settings.funding.model_copy(
        update=overrides(min_amount=amount, lookback_hours=hours)
    )
    roster_cfg = app.settings.roster.model_copy(
        update=overrides(donors=donors, recipients=recipients)
    )

    try:
        result = FundingRunService(app.ledger, app.settings).verify(funding_cfg, roster_cfg)
    finally:
        app.close()
    app.emit(result)
