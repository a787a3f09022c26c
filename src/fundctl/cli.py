"""Root CLI group for fundctl with global flags and command registration."""

from __future__ import annotations

import click
from pydantic import ValidationError

from fundctl import __version__
from fundctl.commands import register_commands
from fundctl.commands._base import FundGroup
from fundctl.commands._context import AppContext
from fundctl.config.settings import FundSettings


@click.group(
    cls=FundGroup,
    invoke_without_command=True,
    examples="""\
  fundctl examples
  fundctl verify -d donors.csv -r recipients.csv
  fundctl run
  fundctl run --execute
  fundctl --json run""",
)
@click.version_option(version=__version__, prog_name="fundctl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
) -> None:
    """fundctl — verify and top up wallet funding from a donor pool."""
    ctx.ensure_object(dict)
    try:
        settings = FundSettings.from_cli(
            config_path=config_path,
            json_output=json_output,
            quiet=quiet,
            verbose=verbose,
            log_json=log_json,
        )
    except ValidationError as exc:
        msg = f"Invalid configuration: {exc}"
        raise click.ClickException(msg) from exc
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
