"""Command: write example donor and recipient roster files."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from fundctl.commands._base import FundCommand

if TYPE_CHECKING:
    from fundctl.commands._context import AppContext


@click.command(
    "examples",
    cls=FundCommand,
    examples="""\
  fundctl examples
  fundctl examples ./rosters
  fundctl examples ./rosters --force""",
)
@click.argument("directory", required=False, default=".", type=click.Path(file_okay=False))
@click.option("--force", is_flag=True, help="Overwrite existing example files.")
@click.pass_obj
def examples(app: AppContext, directory: str, force: bool) -> None:
    """Create example donor/recipient files in JSON and CSV form."""
    from fundctl.services.examples import ExamplesService

    app.emit(ExamplesService().write(Path(directory), force=force))
