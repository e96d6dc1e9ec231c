"""
Tests for transaction models.

Covers kind lookups, wire serialization and lenient parsing of the
submission and status payloads the provider returns.
"""

import pytest

from pawapay.transactions.models import (
    AccountDetails,
    DepositRequest,
    FailureReason,
    LifecycleStatus,
    Party,
    StatusEnvelope,
    SubmissionResult,
    TransactionKind,
    WalletBalances,
)


class TestTransactionKind:
    """Tests for TransactionKind lookups."""

    @pytest.mark.parametrize(
        "kind,path,id_field",
        [
            (TransactionKind.DEPOSIT, "deposits", "depositId"),
            (TransactionKind.PAYOUT, "payouts", "payoutId"),
            (TransactionKind.REFUND, "refunds", "refundId"),
        ],
    )
    def test_resource_path_and_id_field(self, kind, path, id_field):
        assert kind.resource_path == path
        assert kind.id_field == id_field

    @pytest.mark.parametrize("raw", ["payout", "PAYOUT", " Payout ", "payouts"])
    def test_parse_accepts_values_names_and_paths(self, raw):
        assert TransactionKind.parse(raw) is TransactionKind.PAYOUT

    def test_parse_rejects_unknown(self):
        with pytest.raises(ValueError):
            TransactionKind.parse("transfer")


class TestWireFormat:
    """Tests for request serialization."""

    def test_deposit_request_uses_camel_case_and_drops_nulls(self):
        request = DepositRequest(
            deposit_id="d1",
            amount="1000",
            currency="UGX",
            payer=Party(account_details=AccountDetails(phone_number="256700000000", provider="MTN_MOMO_UGA")),
        )

        body = request.to_wire()

        assert body == {
            "depositId": "d1",
            "amount": "1000",
            "currency": "UGX",
            "payer": {
                "type": "MMO",
                "accountDetails": {"phoneNumber": "256700000000", "provider": "MTN_MOMO_UGA"},
            },
        }

    def test_amount_is_kept_verbatim(self):
        """Amounts are opaque strings, formatting included."""
        request = DepositRequest(
            deposit_id="d1",
            amount="1000.50",
            currency="UGX",
            payer=Party(account_details=AccountDetails(phone_number="1", provider="P")),
        )
        assert request.to_wire()["amount"] == "1000.50"


class TestSubmissionResult:
    """Tests for parsing submission answers."""

    def test_prefers_provider_id(self):
        result = SubmissionResult.from_payload(
            TransactionKind.DEPOSIT, {"depositId": "provider-id", "status": "ACCEPTED"}, "ours"
        )
        assert result.id == "provider-id"
        assert result.reference.kind is TransactionKind.DEPOSIT

    def test_falls_back_to_submitted_id(self):
        result = SubmissionResult.from_payload(TransactionKind.PAYOUT, {"status": "accepted"}, "ours")
        assert result.id == "ours"
        assert result.status == "ACCEPTED"

    def test_rejection_carries_reason(self):
        result = SubmissionResult.from_payload(
            TransactionKind.DEPOSIT,
            {
                "depositId": "d1",
                "status": "REJECTED",
                "failureReason": {"failureCode": "INVALID_AMOUNT", "failureMessage": "Amount too small"},
            },
            "d1",
        )
        assert result.is_rejected
        assert result.failure_reason == FailureReason(code="INVALID_AMOUNT", message="Amount too small")


class TestStatusEnvelope:
    """Tests for parsing status lookups."""

    def test_found_envelope(self):
        envelope = StatusEnvelope.from_payload(
            TransactionKind.DEPOSIT,
            {
                "status": "FOUND",
                "data": {"depositId": "d1", "status": "COMPLETED", "amount": "1000", "currency": "UGX"},
            },
        )
        assert not envelope.is_not_found
        assert envelope.lifecycle_status == LifecycleStatus.COMPLETED
        assert envelope.data.reference.id == "d1"
        assert envelope.data.amount == "1000"

    def test_numeric_amount_is_coerced_to_string(self):
        envelope = StatusEnvelope.from_payload(
            TransactionKind.DEPOSIT,
            {"status": "OK", "data": {"depositId": "d1", "status": "COMPLETED", "amount": 1000}},
        )
        assert envelope.data.amount == "1000"

    def test_not_found_has_no_data(self):
        envelope = StatusEnvelope.from_payload(TransactionKind.PAYOUT, {"status": "NOT_FOUND"})
        assert envelope.is_not_found
        assert envelope.data is None
        assert envelope.lifecycle_status is None

    def test_failure_reason_is_parsed(self):
        envelope = StatusEnvelope.from_payload(
            TransactionKind.PAYOUT,
            {
                "status": "OK",
                "data": {
                    "status": "FAILED",
                    "failureReason": {"failureCode": "INSUFFICIENT_FUNDS", "failureMessage": "Not enough money"},
                },
            },
        )
        assert envelope.data.failure_reason.code == "INSUFFICIENT_FUNDS"
        assert envelope.data.failure_reason.message == "Not enough money"

    def test_bare_list_payload(self):
        """Older endpoints answer with a list of status objects."""
        found = StatusEnvelope.from_payload(
            TransactionKind.DEPOSIT, [{"depositId": "d1", "status": "ACCEPTED"}]
        )
        missing = StatusEnvelope.from_payload(TransactionKind.DEPOSIT, [])

        assert found.lifecycle_status == "ACCEPTED"
        assert missing.is_not_found

    def test_bare_object_payload(self):
        envelope = StatusEnvelope.from_payload(
            TransactionKind.REFUND, {"refundId": "r1", "status": "PROCESSING"}
        )
        assert envelope.status == "FOUND"
        assert envelope.data.reference.id == "r1"

    def test_unexpected_payload_raises(self):
        with pytest.raises(ValueError):
            StatusEnvelope.from_payload(TransactionKind.DEPOSIT, "nope")


def test_wallet_balances_parse():
    balances = WalletBalances.model_validate(
        {"balances": [{"country": "UGA", "balance": 1200.5, "currency": "UGX"}]}
    )
    assert balances.balances[0].balance == "1200.5"
    assert balances.balances[0].provider is None
