"""Exception taxonomy.

Only :class:`ConfigurationError` and :class:`RosterLoadError` ever reach the
run boundary. Lookup and submission errors are contained per wallet and
surface as warnings plus aggregate counts.
"""

from __future__ import annotations

from typing import ClassVar


class FundctlError(Exception):
    """Base class for every error raised by fundctl itself."""

    code: ClassVar[str] = "FUNDCTL_ERROR"


class ConfigurationError(FundctlError):
    """Invalid policy values. Raised before any network activity."""

    code = "INVALID_CONFIG"


class RosterLoadError(FundctlError):
    """A roster file is missing, unreadable, or unparsable."""

    code = "ROSTER_LOAD_FAILED"


class NoValidWalletsError(RosterLoadError):
    """A roster file parsed, but yielded no valid wallet."""

    code = "NO_VALID_WALLETS"


class CredentialError(FundctlError, ValueError):
    """A signing credential is in neither supported format."""

    code = "INVALID_CREDENTIAL"


class LedgerLookupError(FundctlError, LookupError):
    """Balance, history, or transaction lookup failed for one wallet."""

    code = "LEDGER_LOOKUP_FAILED"


class SubmissionError(FundctlError):
    """A transfer could not be built, sent, or landed with an error."""

    code = "SUBMISSION_FAILED"


class ConfirmationTimeoutError(SubmissionError):
    """A sent transfer did not reach the target commitment in time."""

    code = "CONFIRMATION_TIMEOUT"
