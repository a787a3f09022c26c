"""Classification and disbursement enums shared by the verifier and distributor."""

from __future__ import annotations

from enum import StrEnum


class WalletRole(StrEnum):
    """Which roster a wallet was loaded from."""

    DONOR = "donor"
    RECIPIENT = "recipient"


class FundingStatus(StrEnum):
    """Verifier outcome for a single recipient."""

    FUNDED = "funded"
    UNFUNDED = "unfunded"


class DisbursementStatus(StrEnum):
    """Distributor outcome for a single recipient."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class SkipReason(StrEnum):
    """Why a recipient was skipped instead of attempted."""

    OPERATION_CAP = "operation_cap"
    NO_AVAILABLE_DONORS = "no_available_donors"
    SELF_TRANSFER = "self_transfer"
