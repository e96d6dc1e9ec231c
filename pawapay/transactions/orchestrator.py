"""
Transaction orchestrator.

The public entry point of the SDK. Builds requests, submits them through a
provider client, checks status once or resolves it to a final outcome. Every
operation returns an ``Outcome``: exceptions from the layers below are mapped
to classified ``Failure`` values and never cross this boundary.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from pawapay.core.config import Settings, get_settings
from pawapay.transactions.builder import build_request
from pawapay.transactions.clients.base import BaseProviderClient
from pawapay.transactions.clients.http_client import PawaPayClient
from pawapay.transactions.clients.mock_client import MockProviderClient
from pawapay.transactions.config import (
    PollingPolicy,
    get_client_config,
    get_polling_policy,
)
from pawapay.transactions.errors import FailureKind, PawaPayError, ValidationError
from pawapay.transactions.metrics import PollerMetrics
from pawapay.transactions.models import (
    PaymentIntent,
    SubmissionResult,
    TransactionKind,
)
from pawapay.transactions.outcome import Outcome, failure, from_exception, success
from pawapay.transactions.poller import StatusPoller, default_failure_message

logger = structlog.get_logger()


class TransactionOrchestrator:
    """
    Submits transactions and drives them to a final status.

    Stateless apart from the client, the default policy and the metrics
    history, so one orchestrator can serve any number of concurrent calls.
    """

    def __init__(
        self,
        client: BaseProviderClient,
        policy: Optional[PollingPolicy] = None,
        metrics: Optional[PollerMetrics] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            client: Provider client (HTTP or mock)
            policy: Default polling policy for ``resolve``
            metrics: Shared metrics history for resolve runs
        """
        self.client = client
        self.metrics = metrics or PollerMetrics()
        self.poller = StatusPoller(self.check_status, policy=policy, metrics=self.metrics)

    @property
    def policy(self) -> PollingPolicy:
        return self.poller.policy

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "TransactionOrchestrator":
        """Wire a client and polling policy from settings (env / .env)."""
        settings = settings or get_settings()
        client: BaseProviderClient
        if settings.PAWAPAY_CLIENT_TYPE == "mock":
            client = MockProviderClient()
        else:
            client = PawaPayClient(get_client_config(settings))

        logger.info(
            "orchestrator.initialized",
            client_type=client.get_source_name(),
            sandbox=settings.PAWAPAY_SANDBOX,
        )
        return cls(client, policy=get_polling_policy(settings))

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # --- Submission ---------------------------------------------------------

    async def submit(
        self, kind: TransactionKind, intent: Union[PaymentIntent, Dict[str, Any]]
    ) -> Outcome:
        """
        Build and submit one transaction.

        A REJECTED acceptance is still a Success: the provider answered, and
        the caller decides what a rejection means for them.

        Args:
            kind: Deposit, payout or refund
            intent: Amount, currency, party and optional ids (a dict is accepted)

        Returns:
            Success with the SubmissionResult, or a Failure
        """
        try:
            kind = TransactionKind.parse(kind)
            if not isinstance(intent, PaymentIntent):
                intent = PaymentIntent.model_validate(intent)
            request = build_request(kind, intent)
        except ValueError as e:
            return from_exception(ValidationError(str(e)))
        except PawaPayError as e:
            logger.info("submit.invalid", kind=str(kind), error=str(e))
            return from_exception(e)

        submitters = {
            TransactionKind.DEPOSIT: self.client.submit_deposit,
            TransactionKind.PAYOUT: self.client.submit_payout,
            TransactionKind.REFUND: self.client.submit_refund,
        }
        outcome = await self._call(
            "submit", submitters[kind], request, submission_id=request.submission_id
        )
        if outcome.ok:
            result: SubmissionResult = outcome.value
            log = logger.warning if result.is_rejected else logger.info
            log(
                "submit.answered",
                kind=kind.value,
                submission_id=request.submission_id,
                transaction_id=result.id,
                status=result.status,
            )
        return outcome

    async def pay(
        self,
        amount: str,
        phone_number: str,
        currency: str = "UGX",
        provider: str = "MTN_MOMO_UGA",
        description: Optional[str] = None,
        reference: Optional[str] = None,
        deposit_id: Optional[str] = None,
    ) -> Outcome:
        """Collect ``amount`` from a mobile-money wallet (deposit)."""
        return await self._submit_intent(
            TransactionKind.DEPOSIT,
            amount=amount,
            currency=currency,
            phone_number=phone_number,
            provider=provider,
            description=description,
            reference=reference,
            submission_id=deposit_id,
        )

    async def send_payout(
        self,
        amount: str,
        phone_number: str,
        currency: str,
        provider: str,
        description: Optional[str] = None,
        reference: Optional[str] = None,
        payout_id: Optional[str] = None,
    ) -> Outcome:
        """Disburse ``amount`` to a mobile-money wallet (payout)."""
        return await self._submit_intent(
            TransactionKind.PAYOUT,
            amount=amount,
            currency=currency,
            phone_number=phone_number,
            provider=provider,
            description=description,
            reference=reference,
            submission_id=payout_id,
        )

    async def refund(
        self,
        deposit_id: str,
        amount: str,
        currency: Optional[str] = None,
        refund_id: Optional[str] = None,
    ) -> Outcome:
        """Refund all or part of a completed deposit."""
        return await self._submit_intent(
            TransactionKind.REFUND,
            amount=amount,
            currency=currency,
            deposit_id=deposit_id,
            submission_id=refund_id,
        )

    async def _submit_intent(self, kind: TransactionKind, **fields: Any) -> Outcome:
        try:
            intent = PaymentIntent(**fields)
        except PydanticValidationError as e:
            return from_exception(ValidationError(str(e)))
        return await self.submit(kind, intent)

    # --- Status -------------------------------------------------------------

    async def check_status(self, transaction_id: str, kind: TransactionKind) -> Outcome:
        """Look up the status once. Success carries the StatusEnvelope."""
        if not transaction_id or not str(transaction_id).strip():
            return from_exception(ValidationError("transaction_id must not be empty"))
        try:
            kind = TransactionKind.parse(kind)
        except ValueError as e:
            return from_exception(ValidationError(str(e)))

        return await self._call("status", self.client.get_status, transaction_id, kind)

    async def resolve(
        self,
        transaction_id: str,
        kind: TransactionKind,
        policy: Optional[PollingPolicy] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Outcome:
        """
        Poll until the transaction reaches a final status.

        Args:
            transaction_id: Provider reference returned by ``submit``
            kind: Deposit, payout or refund
            policy: Overrides the default polling policy for this call
            cancel_event: Set it to stop observing early

        Returns:
            Success with the COMPLETED envelope, or a classified Failure
        """
        try:
            kind = TransactionKind.parse(kind)
        except ValueError as e:
            return from_exception(ValidationError(str(e)))
        return await self.poller.resolve(
            transaction_id, kind, policy=policy, cancel_event=cancel_event
        )

    async def submit_and_resolve(
        self,
        kind: TransactionKind,
        intent: PaymentIntent,
        policy: Optional[PollingPolicy] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Outcome:
        """
        Submit, then resolve the provider reference.

        A REJECTED submission is final: it is returned as a business
        rejection without a single status lookup.
        """
        submitted = await self.submit(kind, intent)
        if not submitted.ok:
            return submitted

        result: SubmissionResult = submitted.value
        if result.is_rejected:
            reason = result.failure_reason
            message = (
                reason.message
                if reason and reason.message
                else default_failure_message(result.reference.kind, result.status)
            )
            return failure(FailureKind.BUSINESS_REJECTION, message)

        return await self.resolve(
            result.id, result.reference.kind, policy=policy, cancel_event=cancel_event
        )

    # --- Wallets ------------------------------------------------------------

    async def get_wallet_balances(self, country: Optional[str] = None) -> Outcome:
        """Success carries WalletBalances."""
        return await self._call("wallet_balances", self.client.get_wallet_balances, country)

    async def predict_provider(self, phone_number: str) -> Outcome:
        """Success carries the PredictedProvider for ``phone_number``."""
        if not phone_number or not phone_number.strip():
            return from_exception(ValidationError("phone_number must not be empty"))
        return await self._call("predict_provider", self.client.predict_provider, phone_number)

    async def _call(
        self,
        operation: str,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
        **log_context: Any,
    ) -> Outcome:
        """Run one client call and map whatever it raises to a Failure."""
        try:
            return success(await func(*args))
        except PawaPayError as e:
            logger.warning(
                f"{operation}.failed",
                failure_kind=e.kind.value,
                error=str(e),
                **log_context,
            )
            return from_exception(e)
        except Exception as e:
            logger.error(
                f"{operation}.unexpected_error", error=str(e), exc_info=True, **log_context
            )
            return failure(FailureKind.UNEXPECTED, str(e) or type(e).__name__, error=e)

