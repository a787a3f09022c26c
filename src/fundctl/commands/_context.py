"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Provides lazy ledger client creation and
centralized result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from fundctl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from fundctl.config.settings import FundSettings
    from fundctl.infrastructure.ledger import LedgerClient
    from fundctl.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Subcommands access it via ``@click.pass_obj``.  The ledger client is
    lazily created on first use so ``--help``, ``config`` and ``examples``
    never build an HTTP client.
    """

    def __init__(self, settings: FundSettings) -> None:
        self.settings = settings
        self._ledger: LedgerClient | None = None

        # Configure structured logging
        from fundctl.config.logging import configure_logging

        configure_logging(
            verbose=settings.verbose, log_json=settings.log_json, quiet=settings.quiet
        )

        # Enable telemetry context var when verbose
        if settings.verbose:
            from fundctl.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def ledger(self) -> LedgerClient:
        """The ledger client (created lazily on first access)."""
        if self._ledger is None:
            from fundctl.infrastructure import rpc

            self._ledger = rpc.create_ledger_client(self.settings)
        return self._ledger

    def close(self) -> None:
        """Release the ledger client's connections, if one was created."""
        close = getattr(self._ledger, "close", None)
        if close is not None:
            close()
        self._ledger = None

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            if output:
                click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output and not settings.quiet:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(result.exit_code)
