"""Subcommand modules for fundctl.

Provides register_commands() which uses deferred imports to keep
``fundctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from fundctl.commands.config_cmd import config_cmd
    from fundctl.commands.examples import examples
    from fundctl.commands.run import run
    from fundctl.commands.verify import verify

    cli.add_command(run)
    cli.add_command(verify)
    cli.add_command(examples)
    cli.add_command(config_cmd)
