"""
Value types for provider requests, responses and status payloads.

Wire names are camelCase, attributes are snake_case. Monetary amounts are
strings end to end: they are never parsed as numbers, so whatever the caller
passes is what the provider receives.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TransactionKind(str, Enum):
    """The three transaction types the provider settles asynchronously."""

    DEPOSIT = "deposit"
    PAYOUT = "payout"
    REFUND = "refund"

    @property
    def resource_path(self) -> str:
        return RESOURCE_PATHS[self]

    @property
    def id_field(self) -> str:
        return ID_FIELDS[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, value: "str | TransactionKind") -> "TransactionKind":
        """Accept enum members, values or names in any case ("payout", "PAYOUT")."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for kind in cls:
            if normalized in (kind.value, kind.resource_path):
                return kind
        raise ValueError(f"Unknown transaction kind: {value!r}")


RESOURCE_PATHS: Dict[TransactionKind, str] = {
    TransactionKind.DEPOSIT: "deposits",
    TransactionKind.PAYOUT: "payouts",
    TransactionKind.REFUND: "refunds",
}

ID_FIELDS: Dict[TransactionKind, str] = {
    TransactionKind.DEPOSIT: "depositId",
    TransactionKind.PAYOUT: "payoutId",
    TransactionKind.REFUND: "refundId",
}


class AcceptanceStatus(str, Enum):
    """Initial answer to a submission."""

    ACCEPTED = "ACCEPTED"
    ENQUEUED = "ENQUEUED"
    REJECTED = "REJECTED"
    DUPLICATE_IGNORED = "DUPLICATE_IGNORED"


class LookupStatus(str, Enum):
    """Outer status of a status lookup. Anything else is an error marker."""

    FOUND = "FOUND"
    OK = "OK"
    NOT_FOUND = "NOT_FOUND"


class LifecycleStatus(str, Enum):
    """Status of the transaction itself, carried in ``data.status``."""

    ENQUEUED = "ENQUEUED"  # correspondent unavailable, provider is retrying
    ACCEPTED = "ACCEPTED"
    SUBMITTED = "SUBMITTED"
    PROCESSING = "PROCESSING"
    IN_RECONCILIATION = "IN_RECONCILIATION"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REJECTED = "REJECTED"


TERMINAL_STATUSES = frozenset(
    s.value
    for s in (LifecycleStatus.COMPLETED, LifecycleStatus.FAILED, LifecycleStatus.REJECTED)
)
FAILURE_STATUSES = frozenset(
    s.value for s in (LifecycleStatus.FAILED, LifecycleStatus.REJECTED)
)


class WireModel(BaseModel):
    """Base for everything that crosses the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    def to_wire(self) -> Dict[str, Any]:
        """JSON-ready body with provider field names and no nulls."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TransactionReference(BaseModel):
    """Provider reference of a transaction, whatever field it arrived in."""

    model_config = ConfigDict(frozen=True)

    kind: TransactionKind
    id: str

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"


class FailureReason(WireModel):
    code: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("failureCode", "code")
    )
    message: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("failureMessage", "message")
    )


# --- Requests ---------------------------------------------------------------


class AccountDetails(WireModel):
    phone_number: str
    provider: str


class Party(WireModel):
    """Payer of a deposit or recipient of a payout."""

    type: str = "MMO"
    account_details: AccountDetails


class DepositRequest(WireModel):
    deposit_id: str
    amount: str
    currency: str
    payer: Party
    customer_message: Optional[str] = None
    client_reference_id: Optional[str] = None

    @property
    def kind(self) -> TransactionKind:
        return TransactionKind.DEPOSIT

    @property
    def submission_id(self) -> str:
        return self.deposit_id


class PayoutRequest(WireModel):
    payout_id: str
    amount: str
    currency: str
    recipient: Party
    customer_message: Optional[str] = None
    client_reference_id: Optional[str] = None

    @property
    def kind(self) -> TransactionKind:
        return TransactionKind.PAYOUT

    @property
    def submission_id(self) -> str:
        return self.payout_id


class RefundRequest(WireModel):
    refund_id: str
    deposit_id: str
    amount: str
    currency: Optional[str] = None
    client_reference_id: Optional[str] = None

    @property
    def kind(self) -> TransactionKind:
        return TransactionKind.REFUND

    @property
    def submission_id(self) -> str:
        return self.refund_id


class PaymentIntent(BaseModel):
    """What the caller wants to happen, before it is shaped for the provider."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    amount: Optional[str] = None
    currency: Optional[str] = None
    phone_number: Optional[str] = None
    provider: Optional[str] = None
    description: Optional[str] = None
    reference: Optional[str] = None
    submission_id: Optional[str] = None
    deposit_id: Optional[str] = None  # refunds only


# --- Responses --------------------------------------------------------------


def _reference_from(
    kind: TransactionKind, payload: Dict[str, Any], fallback_id: Optional[str] = None
) -> Optional[TransactionReference]:
    """Resolve the reference id from the kind's own field, then any known field."""
    value = payload.get(kind.id_field)
    if value:
        return TransactionReference(kind=kind, id=str(value))
    for other in TransactionKind:
        value = payload.get(other.id_field)
        if value:
            return TransactionReference(kind=other, id=str(value))
    if fallback_id:
        return TransactionReference(kind=kind, id=fallback_id)
    return None


class SubmissionResult(WireModel):
    reference: TransactionReference
    status: str
    created: Optional[str] = None
    failure_reason: Optional[FailureReason] = None

    @classmethod
    def from_payload(
        cls, kind: TransactionKind, payload: Dict[str, Any], submitted_id: str
    ) -> "SubmissionResult":
        """Parse a submit response, preferring the provider's id over ours."""
        reference = _reference_from(kind, payload, fallback_id=submitted_id)
        return cls.model_validate(
            {
                "reference": reference,
                "status": str(payload.get("status") or "").upper(),
                "created": payload.get("created"),
                "failureReason": payload.get("failureReason") or payload.get("rejectionReason"),
            }
        )

    @property
    def id(self) -> str:
        return self.reference.id

    @property
    def is_rejected(self) -> bool:
        return self.status == AcceptanceStatus.REJECTED


class StatusData(WireModel):
    reference: Optional[TransactionReference] = None
    status: Optional[str] = None
    amount: Optional[str] = None
    currency: Optional[str] = None
    country: Optional[str] = None
    created: Optional[str] = None
    provider_transaction_id: Optional[str] = None
    failure_reason: Optional[FailureReason] = None

    @classmethod
    def from_payload(cls, kind: TransactionKind, payload: Dict[str, Any]) -> "StatusData":
        data = dict(payload)
        data["reference"] = _reference_from(kind, payload)
        if data.get("status") is not None:
            data["status"] = str(data["status"]).upper()
        return cls.model_validate(data)


class StatusEnvelope(WireModel):
    """One status lookup: outer lookup status plus the optional payload."""

    status: str
    data: Optional[StatusData] = None

    @classmethod
    def from_payload(cls, kind: TransactionKind, payload: Any) -> "StatusEnvelope":
        # v1-style endpoints answer with a bare list of status objects
        if isinstance(payload, list):
            if not payload:
                return cls(status=LookupStatus.NOT_FOUND.value)
            return cls(
                status=LookupStatus.FOUND.value,
                data=StatusData.from_payload(kind, payload[0]),
            )
        if not isinstance(payload, dict):
            raise ValueError(f"Unexpected status payload: {payload!r}")
        # bare status object without the envelope
        if "data" not in payload and kind.id_field in payload:
            return cls(
                status=LookupStatus.FOUND.value,
                data=StatusData.from_payload(kind, payload),
            )

        status = str(payload.get("status") or "").upper()
        raw_data = payload.get("data")
        data = None
        if isinstance(raw_data, dict) and status != LookupStatus.NOT_FOUND:
            data = StatusData.from_payload(kind, raw_data)
        return cls(status=status, data=data)

    @property
    def is_not_found(self) -> bool:
        return self.status == LookupStatus.NOT_FOUND

    @property
    def lifecycle_status(self) -> Optional[str]:
        return self.data.status if self.data else None


class WalletBalance(WireModel):
    country: str
    balance: str
    currency: str
    provider: Optional[str] = None


class WalletBalances(WireModel):
    balances: List[WalletBalance] = Field(default_factory=list)


class PredictedProvider(WireModel):
    country: str
    provider: str
    phone_number: str
