"""FundingRunService — one verify-then-fund pass over the rosters.

Pipeline: POLICY → LOAD ROSTERS → CLASSIFY → DISTRIBUTE → REPORT

Only configuration and roster errors stop a run; they come back as an
``ok=False`` result before any ledger call is made. Everything that goes
wrong for a single wallet is a warning on an ``ok=True`` result.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from fundctl.domain.errors import ConfigurationError, RosterLoadError
from fundctl.domain.units import format_sol
from fundctl.infrastructure.roster import load_donors, load_recipients
from fundctl.services._helpers import now_iso
from fundctl.services.base import BaseService
from fundctl.services.distributor import FundingDistributor
from fundctl.services.pacing import Pacer
from fundctl.services.result import ServiceResult
from fundctl.services.telemetry import trace_span, traced
from fundctl.services.verifier import FundingVerifier

if TYPE_CHECKING:
    from fundctl.config.models import FundingConfig, RosterConfig
    from fundctl.config.settings import FundSettings
    from fundctl.domain.outcomes import DistributionResult, VerificationReport
    from fundctl.domain.policy import Policy
    from fundctl.domain.wallets import Donor, Recipient
    from fundctl.infrastructure.ledger import LedgerClient

logger = structlog.get_logger(__name__)


class FundingRunService(BaseService):
    """Coordinates the verifier and the distributor for the CLI."""

    def __init__(
        self,
        ledger: LedgerClient,
        settings: FundSettings,
        *,
        verify_pacer: Pacer | None = None,
        fund_pacer: Pacer | None = None,
    ) -> None:
        super().__init__(ledger)
        self._settings = settings
        pacing = settings.pacing
        self._verify_pacer = verify_pacer or Pacer(pacing.verify_every, pacing.verify_delay)
        self._fund_pacer = fund_pacer or Pacer(pacing.fund_every, pacing.fund_delay)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @traced
    def verify(self, funding: FundingConfig, roster: RosterConfig) -> ServiceResult:
        """Classify recipients only. No balances are read, nothing is sent."""
        op = "verify"
        warnings: list[str] = []
        try:
            policy = funding.to_policy()
            donors, recipients = self._load_rosters(roster, warnings)
        except (ConfigurationError, RosterLoadError) as exc:
            return self._failure(op, exc)

        report = self._classify(donors, recipients, policy)
        warnings.extend(report.warnings)

        data = self._header(policy, donors, recipients)
        data.update(self._verification_data(report))
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    @traced
    def run(self, funding: FundingConfig, roster: RosterConfig) -> ServiceResult:
        """Classify recipients, then fund the unfunded ones within the cap."""
        op = "run"
        warnings: list[str] = []
        try:
            policy = funding.to_policy()
            donors, recipients = self._load_rosters(roster, warnings)
        except (ConfigurationError, RosterLoadError) as exc:
            return self._failure(op, exc)

        report = self._classify(donors, recipients, policy)
        warnings.extend(report.warnings)

        with trace_span("distribute") as span:
            distributor = FundingDistributor(self._ledger, pacer=self._fund_pacer)
            distribution = distributor.distribute(report.unfunded, donors, policy)
            if span:
                span.annotate("attempted", len(distribution.disbursements))
        warnings.extend(distribution.warnings)

        data = self._header(policy, donors, recipients)
        data.update(self._verification_data(report))
        data.update(self._distribution_data(distribution))

        logger.info(
            "run.complete",
            dry_run=policy.simulate_only,
            funded=report.funded_count,
            unfunded=report.unfunded_count,
            **distribution.counts(),
        )
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _load_rosters(
        self, roster: RosterConfig, warnings: list[str]
    ) -> tuple[list[Donor], list[Recipient]]:
        with trace_span("load_rosters") as span:
            donors = load_donors(roster.donors, warnings)
            recipients = load_recipients(roster.recipients, warnings)
            if span:
                span.annotate("donors", len(donors))
                span.annotate("recipients", len(recipients))
        return donors, recipients

    def _classify(
        self, donors: list[Donor], recipients: list[Recipient], policy: Policy
    ) -> VerificationReport:
        with trace_span("classify") as span:
            verifier = FundingVerifier(
                self._ledger,
                history_limit=self._settings.ledger.history_limit,
                pacer=self._verify_pacer,
                max_workers=self._settings.verify.max_workers,
            )
            report = verifier.classify(donors, recipients, policy)
            if span:
                span.annotate("unfunded", report.unfunded_count)
        return report

    # ------------------------------------------------------------------
    # Report shaping
    # ------------------------------------------------------------------

    def _header(
        self, policy: Policy, donors: list[Donor], recipients: list[Recipient]
    ) -> dict[str, Any]:
        return {
            "started": now_iso(),
            "dry_run": policy.simulate_only,
            "rpc": getattr(self._ledger, "display_url", None),
            "policy": policy.describe(),
            "donors": len(donors),
            "donors_with_keys": sum(1 for d in donors if d.can_sign),
            "recipients": len(recipients),
        }

    @staticmethod
    def _verification_data(report: VerificationReport) -> dict[str, Any]:
        return {
            "cutoff": report.cutoff.isoformat(),
            "funded": report.funded_count,
            "unfunded": report.unfunded_count,
            "classifications": [o.to_dict() for o in report.outcomes],
        }

    @staticmethod
    def _distribution_data(result: DistributionResult) -> dict[str, Any]:
        return {
            **result.counts(),
            "truncated": result.truncated,
            "available_donors": [
                {"address": d.address, "balance": format_sol(d.balance)}
                for d in result.available_donors
            ],
            "disbursements": [d.to_dict() for d in result.disbursements],
        }

    @staticmethod
    def _failure(op: str, exc: ConfigurationError | RosterLoadError) -> ServiceResult:
        return ServiceResult.failed(op, exc.code, str(exc))
