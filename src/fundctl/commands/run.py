"""Command: verify recipients, then fund the unfunded ones."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import click

from fundctl.commands._base import DECIMAL, FundCommand, overrides

if TYPE_CHECKING:
    from fundctl.commands._context import AppContext

_RUN_EXAMPLES = """\
  fundctl run
  fundctl run -d donors.json -r recipients.csv
  fundctl run --amount 0.2 --hours 48 --funding 0.1
  fundctl run --max-ops 25 --execute
  fundctl --json run > report.json"""


@click.command("run", cls=FundCommand, examples=_RUN_EXAMPLES)
@click.option(
    "-a", "--amount", type=DECIMAL, default=None, help="Minimum SOL that counts as funded."
)
@click.option("-h", "--hours", type=float, default=None, help="Lookback window in hours.")
@click.option(
    "-f", "--funding", type=DECIMAL, default=None, help="SOL sent to each unfunded wallet."
)
@click.option("-d", "--donors", type=click.Path(dir_okay=False), default=None, help="Donor roster.")
@click.option(
    "-r", "--recipients", type=click.Path(dir_okay=False), default=None, help="Recipient roster."
)
@click.option("--max-ops", type=int, default=None, help="Cap on transfers attempted this run.")
@click.option("--execute", is_flag=True, help="Send real transactions (disables dry run).")
@click.pass_obj
def run(
    app: AppContext,
    amount: Decimal | None,
    hours: float | None,
    funding: Decimal | None,
    donors: str | None,
    recipients: str | None,
    max_ops: int | None,
    execute: bool,
) -> None:
    """Check recipients for recent funding and fund those without it.

    Runs as a dry run unless --execute is given or funding.dry_run is
    false in the configuration.
    """
    from fundctl.services.run import FundingRunService

    funding_cfg = app.settings.funding.model_copy(
        update=overrides(
            min_amount=amount,
            lookback_hours=hours,
            amount=funding,
            max_operations=max_ops,
            dry_run=False if execute else None,
        )
    )
    roster_cfg = app.settings.roster.model_copy(
        update=overrides(donors=donors, recipients=recipients)
    )

    try:
        result = FundingRunService(app.ledger, app.settings).run(funding_cfg, roster_cfg)
    finally:
        app.close()
    app.emit(result)
