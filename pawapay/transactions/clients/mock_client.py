"""
Mock provider client for testing and offline development.

Keeps submitted transactions in memory and simulates the provider's
asynchronous settlement: a new transaction is invisible for a few lookups
(read-after-write lag), then walks through its lifecycle to a final status.
Tests can also script the exact status envelopes to return.
"""

import asyncio
import random
from collections import deque
from typing import Deque, Dict, List, Optional, Union

from pawapay.transactions.clients.base import BaseProviderClient
from pawapay.transactions.errors import TransportError
from pawapay.transactions.models import (
    AcceptanceStatus,
    DepositRequest,
    FailureReason,
    LifecycleStatus,
    LookupStatus,
    PayoutRequest,
    PredictedProvider,
    RefundRequest,
    StatusData,
    StatusEnvelope,
    SubmissionResult,
    TransactionKind,
    TransactionReference,
    WalletBalance,
    WalletBalances,
)

ScriptedStatus = Union[StatusEnvelope, Exception]

# phone prefix -> (country, provider)
PHONE_PREFIXES = {
    "256": ("UGA", "MTN_MOMO_UGA"),
    "254": ("KEN", "MPESA_KEN"),
    "260": ("ZMB", "MTN_MOMO_ZMB"),
    "233": ("GHA", "MTN_MOMO_GHA"),
    "250": ("RWA", "MTN_MOMO_RWA"),
}


def envelope_not_found() -> StatusEnvelope:
    return StatusEnvelope(status=LookupStatus.NOT_FOUND.value)


def envelope_with(
    kind: TransactionKind,
    transaction_id: str,
    status: Union[LifecycleStatus, str],
    amount: Optional[str] = None,
    currency: Optional[str] = None,
    failure_reason: Optional[FailureReason] = None,
) -> StatusEnvelope:
    """Envelope for a FOUND lookup carrying ``status``."""
    return StatusEnvelope(
        status=LookupStatus.FOUND.value,
        data=StatusData(
            reference=TransactionReference(kind=kind, id=transaction_id),
            status=str(getattr(status, "value", status)),
            amount=amount,
            currency=currency,
            failure_reason=failure_reason,
        ),
    )


class MockProviderClient(BaseProviderClient):
    """
    In-memory stand-in for the provider.

    Submissions are accepted (or answered from ``submit_status``). Status
    lookups first drain the script registered for the transaction, then fall
    back to the simulated lifecycle.
    """

    def __init__(
        self,
        submit_status: AcceptanceStatus = AcceptanceStatus.ACCEPTED,
        visibility_delay: int = 0,
        settle_after: int = 1,
        final_status: LifecycleStatus = LifecycleStatus.COMPLETED,
        failure_rate: float = 0.0,
        latency_ms: int = 0,
    ):
        """
        Initialize mock client.

        Args:
            submit_status: Acceptance status returned for every submission
            visibility_delay: Lookups answered NOT_FOUND after a submission
            settle_after: Visible in-flight lookups before the final status
            final_status: Status a simulated transaction settles to
            failure_rate: Probability of a simulated transport failure (0.0 to 1.0)
            latency_ms: Simulated network latency in milliseconds
        """
        self.submit_status = submit_status
        self.visibility_delay = visibility_delay
        self.settle_after = settle_after
        self.final_status = final_status
        self.failure_rate = failure_rate
        self.latency_ms = latency_ms

        self.submitted: List[Union[DepositRequest, PayoutRequest, RefundRequest]] = []
        self.status_calls: List[str] = []
        self._scripts: Dict[str, Deque[ScriptedStatus]] = {}
        self._transactions: Dict[str, dict] = {}
        self._lookups: Dict[str, int] = {}
        self.balances: List[WalletBalance] = [
            WalletBalance(country="UGA", balance="1000000", currency="UGX", provider="MTN_MOMO_UGA"),
            WalletBalance(country="KEN", balance="50000", currency="KES", provider="MPESA_KEN"),
        ]

    def get_source_name(self) -> str:
        return "mock"

    def script_status(self, transaction_id: str, *responses: ScriptedStatus) -> None:
        """Queue envelopes (or exceptions to raise) for the next lookups of an id."""
        self._scripts.setdefault(transaction_id, deque()).extend(responses)

    @property
    def last_request(self) -> Optional[Union[DepositRequest, PayoutRequest, RefundRequest]]:
        return self.submitted[-1] if self.submitted else None

    async def submit_deposit(self, request: DepositRequest) -> SubmissionResult:
        return await self._submit(TransactionKind.DEPOSIT, request, request.currency)

    async def submit_payout(self, request: PayoutRequest) -> SubmissionResult:
        return await self._submit(TransactionKind.PAYOUT, request, request.currency)

    async def submit_refund(self, request: RefundRequest) -> SubmissionResult:
        return await self._submit(TransactionKind.REFUND, request, request.currency)

    async def get_status(self, transaction_id: str, kind: TransactionKind) -> StatusEnvelope:
        await self._simulate_latency()
        self.status_calls.append(transaction_id)
        self._maybe_fail()

        script = self._scripts.get(transaction_id)
        if script:
            scripted = script.popleft()
            if isinstance(scripted, Exception):
                raise scripted
            return scripted

        return self._simulated_status(transaction_id)

    async def get_wallet_balances(self, country: Optional[str] = None) -> WalletBalances:
        await self._simulate_latency()
        self._maybe_fail()
        balances = [b for b in self.balances if country is None or b.country == country]
        return WalletBalances(balances=balances)

    async def predict_provider(self, phone_number: str) -> PredictedProvider:
        await self._simulate_latency()
        self._maybe_fail()
        digits = "".join(ch for ch in phone_number if ch.isdigit())
        for prefix, (country, provider) in PHONE_PREFIXES.items():
            if digits.startswith(prefix):
                return PredictedProvider(country=country, provider=provider, phone_number=digits)
        raise TransportError(
            "HTTP 400",
            status_code=400,
            body='{"failureReason": {"failureCode": "INVALID_PHONE_NUMBER"}}',
        )

    async def _submit(self, kind: TransactionKind, request, currency: Optional[str]) -> SubmissionResult:
        await self._simulate_latency()
        self._maybe_fail()
        self.submitted.append(request)

        transaction_id = request.submission_id
        if self.submit_status != AcceptanceStatus.REJECTED:
            self._transactions[transaction_id] = {
                "kind": kind,
                "amount": request.amount,
                "currency": currency,
            }
            self._lookups[transaction_id] = 0

        failure_reason = None
        if self.submit_status == AcceptanceStatus.REJECTED:
            failure_reason = FailureReason(code="INVALID_PARAMETERS", message="Rejected by mock provider")

        return SubmissionResult(
            reference=TransactionReference(kind=kind, id=transaction_id),
            status=self.submit_status.value,
            failure_reason=failure_reason,
        )

    def _simulated_status(self, transaction_id: str) -> StatusEnvelope:
        tx = self._transactions.get(transaction_id)
        if tx is None:
            return envelope_not_found()

        self._lookups[transaction_id] += 1
        seen = self._lookups[transaction_id]
        if seen <= self.visibility_delay:
            return envelope_not_found()

        visible_for = seen - self.visibility_delay
        status = LifecycleStatus.ACCEPTED
        failure_reason = None
        if visible_for > self.settle_after:
            status = self.final_status
            if status in (LifecycleStatus.FAILED, LifecycleStatus.REJECTED):
                failure_reason = FailureReason(
                    code="PAYER_NOT_FOUND", message="Simulated failure from mock provider"
                )

        return envelope_with(
            tx["kind"],
            transaction_id,
            status,
            amount=tx["amount"],
            currency=tx["currency"],
            failure_reason=failure_reason,
        )

    def _maybe_fail(self) -> None:
        if self.failure_rate and random.random() < self.failure_rate:
            raise TransportError("Simulated API connection failure")

    async def _simulate_latency(self):
        """Simulate network latency."""
        if self.latency_ms > 0:
            await asyncio.sleep(self.latency_ms / 1000.0)
