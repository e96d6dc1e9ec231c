"""
Request builder.

Turns caller intent into provider-shaped submission requests. Every build
mints a fresh idempotency id unless the caller supplies one, so a retried
submission is never mistaken for the original by the provider.
"""

from __future__ import annotations

import uuid
from typing import Optional, Union

from pydantic import ValidationError as PydanticValidationError

from pawapay.transactions.errors import ValidationError
from pawapay.transactions.models import (
    AccountDetails,
    DepositRequest,
    Party,
    PaymentIntent,
    PayoutRequest,
    RefundRequest,
    TransactionKind,
)

SubmissionRequest = Union[DepositRequest, PayoutRequest, RefundRequest]


def generate_submission_id() -> str:
    return str(uuid.uuid4())


def _require(value: Optional[str], field_name: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field_name} must not be empty")
    return value


def _submission_id(intent: PaymentIntent) -> str:
    """The caller's idempotency id, or a fresh one."""
    if intent.submission_id is None:
        return generate_submission_id()
    try:
        uuid.UUID(intent.submission_id)
    except ValueError as e:
        raise ValidationError(
            f"submission_id must be a UUID, got {intent.submission_id!r}"
        ) from e
    return intent.submission_id


def _party(intent: PaymentIntent) -> Party:
    return Party(
        account_details=AccountDetails(
            phone_number=_require(intent.phone_number, "phone_number"),
            provider=_require(intent.provider, "provider"),
        )
    )


def build_deposit_request(intent: PaymentIntent) -> DepositRequest:
    amount = _require(intent.amount, "amount")
    currency = _require(intent.currency, "currency")
    return DepositRequest(
        deposit_id=_submission_id(intent),
        amount=amount,
        currency=currency,
        payer=_party(intent),
        customer_message=intent.description or f"Payment of {amount} {currency}",
        client_reference_id=intent.reference,
    )


def build_payout_request(intent: PaymentIntent) -> PayoutRequest:
    return PayoutRequest(
        payout_id=_submission_id(intent),
        amount=_require(intent.amount, "amount"),
        currency=_require(intent.currency, "currency"),
        recipient=_party(intent),
        customer_message=intent.description,
        client_reference_id=intent.reference,
    )


def build_refund_request(intent: PaymentIntent) -> RefundRequest:
    return RefundRequest(
        refund_id=_submission_id(intent),
        deposit_id=_require(intent.deposit_id, "deposit_id"),
        amount=_require(intent.amount, "amount"),
        currency=intent.currency,
        client_reference_id=intent.reference,
    )


_BUILDERS = {
    TransactionKind.DEPOSIT: build_deposit_request,
    TransactionKind.PAYOUT: build_payout_request,
    TransactionKind.REFUND: build_refund_request,
}


def build_request(kind: TransactionKind, intent: PaymentIntent) -> SubmissionRequest:
    """Build the submission request for ``kind``.

    Raises:
        ValidationError: If a required field is missing or blank.
    """
    try:
        return _BUILDERS[TransactionKind.parse(kind)](intent)
    except PydanticValidationError as e:
        raise ValidationError(str(e)) from e
    except ValueError as e:
        # unknown kind
        raise ValidationError(str(e)) from e
