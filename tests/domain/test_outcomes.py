"""Tests for wallets, units, and the per-run outcome reports."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

from fundctl.domain.outcomes import (
    Disbursement,
    DistributionResult,
    RecipientOutcome,
    VerificationReport,
)
from fundctl.domain.transfers import TransferRecord
from fundctl.domain.types import DisbursementStatus, FundingStatus, SkipReason
from fundctl.domain.units import format_sol, from_lamports, to_lamports
from fundctl.domain.wallets import Donor, Recipient, unique_by_address

CUTOFF = datetime(2026, 1, 1, tzinfo=UTC)


class TestWallets:
    def test_credential_hidden_from_repr(self) -> None:
        donor = Donor(address="A", signing_credential="super-secret")
        assert "super-secret" not in repr(donor)
        assert donor.can_sign

    def test_equality_ignores_credential(self) -> None:
        assert Donor("A", "k1") == Donor("A", "k2")

    def test_without_credential_cannot_sign(self) -> None:
        assert not Donor("A").can_sign

    def test_unique_by_address_keeps_first(self) -> None:
        first = Donor("A", "k1")
        result = unique_by_address([first, Donor("B"), Donor("A", "k2")])
        assert [w.address for w in result] == ["A", "B"]
        assert result[0].signing_credential == "k1"


class TestUnits:
    def test_from_lamports(self) -> None:
        assert from_lamports(1_500_000_000) == Decimal("1.5")

    def test_to_lamports_rounds_down(self) -> None:
        assert to_lamports(Decimal("0.0000000019")) == 1
        assert to_lamports(Decimal("0.05")) == 50_000_000

    def test_format_sol(self) -> None:
        assert format_sol(Decimal("0.05")) == "0.050000"


class TestVerificationReport:
    def test_counts_and_order(self) -> None:
        r1, r2, r3 = Recipient("R1"), Recipient("R2"), Recipient("R3")
        evidence = TransferRecord("sig", "R1", Decimal("0.2"), "D", CUTOFF, True)
        report = VerificationReport(
            outcomes=(
                RecipientOutcome(r1, FundingStatus.FUNDED, evidence=evidence),
                RecipientOutcome(r2, FundingStatus.UNFUNDED),
                RecipientOutcome(r3, FundingStatus.UNFUNDED, error="boom"),
            ),
            cutoff=CUTOFF,
        )
        assert report.funded_count == 1
        assert report.unfunded_count == 2
        assert report.unfunded == [r2, r3]
        assert report.warnings == ["R3: boom"]

    def test_outcome_to_dict(self) -> None:
        evidence = TransferRecord("sig", "R1", Decimal("0.2"), "D", CUTOFF, True)
        data = RecipientOutcome(Recipient("R1"), FundingStatus.FUNDED, evidence=evidence).to_dict()
        assert data == {
            "address": "R1",
            "status": "funded",
            "signature": "sig",
            "amount": "0.200000",
            "from": "D",
        }


class TestDistributionResult:
    def test_empty(self) -> None:
        assert DistributionResult().counts() == {"success": 0, "failed": 0, "skipped": 0}

    def test_counts(self) -> None:
        result = DistributionResult(
            disbursements=(
                Disbursement(Recipient("A"), DisbursementStatus.SUCCEEDED, simulated=True),
                Disbursement(Recipient("B"), DisbursementStatus.FAILED, error="x"),
                Disbursement(
                    Recipient("C"), DisbursementStatus.SKIPPED, reason=SkipReason.OPERATION_CAP
                ),
            )
        )
        assert result.counts() == {"success": 1, "failed": 1, "skipped": 1}

    def test_disbursement_to_dict(self) -> None:
        data = Disbursement(
            Recipient("C"), DisbursementStatus.SKIPPED, reason=SkipReason.SELF_TRANSFER
        ).to_dict()
        assert data == {"address": "C", "status": "skipped", "reason": "self_transfer"}
