"""Command: show the effective configuration.

Named config_cmd to avoid clashing with the fundctl.config package.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from fundctl.commands._base import FundCommand

if TYPE_CHECKING:
    from fundctl.commands._context import AppContext


@click.command(
    "config",
    cls=FundCommand,
    examples="""\
  fundctl config
  fundctl -c ./fundctl.toml config
  fundctl --json config""",
)
@click.pass_obj
def config_cmd(app: AppContext) -> None:
    """Show merged settings from flags, environment, .env and fundctl.toml."""
    from fundctl.services.config import ConfigService

    app.emit(ConfigService(app.settings).show())
