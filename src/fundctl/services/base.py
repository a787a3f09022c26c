"""BaseService — shared foundation for the verifier, distributor and run services.

Every service receives a :class:`LedgerClient` at construction time and
talks to the network only through it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from fundctl.infrastructure.ledger import LedgerClient

logger = structlog.get_logger(__name__)


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class FundingVerifier(BaseService):
            def classify(self, donors, recipients, policy) -> VerificationReport:
                history = self._ledger.get_recent_transactions(...)
    """

    def __init__(self, ledger: LedgerClient) -> None:
        self._ledger = ledger

    @staticmethod
    def _warn(warnings: list[str], event: str, message: str, **fields: Any) -> None:
        """Log a contained error and record it for the final report.

        INVARIANT: Per-wallet failures are warnings, never errors.
        """
        logger.warning(event, message=message, **fields)
        warnings.append(message)
