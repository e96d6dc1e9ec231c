"""
Transaction status poller.

Drives an accepted transaction to a final outcome by looking up its status on
a fixed interval. The provider settles asynchronously and its read path lags
its write path, so a NOT_FOUND on the first few lookups is expected and
ENQUEUED only means the provider is retrying its correspondent.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

import structlog

from pawapay.core.logging import bind_transaction_context, clear_transaction_context
from pawapay.transactions.config import DEFAULT_POLLING_POLICY, PollingPolicy
from pawapay.transactions.errors import FailureKind
from pawapay.transactions.metrics import PollAttempt, PollerMetrics, PollRunMetrics, RunStatus
from pawapay.transactions.models import (
    FAILURE_STATUSES,
    LifecycleStatus,
    StatusEnvelope,
    TransactionKind,
)
from pawapay.transactions.outcome import Failure, Outcome, failure, success

logger = structlog.get_logger()

FetchStatus = Callable[[str, TransactionKind], Awaitable[Outcome]]


class Transition(str, Enum):
    CONTINUE = "continue"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class Decision:
    """Result of evaluating one envelope."""

    transition: Transition
    failure_kind: Optional[FailureKind] = None
    message: Optional[str] = None


CONTINUE = Decision(Transition.CONTINUE)

_RUN_STATUS = {
    FailureKind.BUSINESS_REJECTION: RunStatus.FAILED,
    FailureKind.NOT_FOUND_EXHAUSTED: RunStatus.NOT_FOUND,
    FailureKind.POLL_TIMEOUT: RunStatus.TIMED_OUT,
    FailureKind.CANCELLED: RunStatus.CANCELLED,
}


def default_failure_message(kind: TransactionKind, status: Optional[str]) -> str:
    """Message used when the provider gives no failure reason."""
    if status == LifecycleStatus.REJECTED:
        return f"{kind.label} was rejected by the provider"
    return f"{kind.label} transaction failed"


def not_found_message(transaction_id: str, kind: TransactionKind) -> str:
    return f"Transaction {transaction_id} not found in {kind.value} system"


def timeout_message(transaction_id: str) -> str:
    return f"Timed out waiting for {transaction_id} to reach a final status"


def failure_message(envelope: StatusEnvelope, kind: TransactionKind) -> str:
    """The provider's own failure message when present, else a kind default."""
    data = envelope.data
    if data and data.failure_reason and data.failure_reason.message:
        return data.failure_reason.message
    status = data.status if data else envelope.status
    return default_failure_message(kind, status)


def evaluate_envelope(
    envelope: StatusEnvelope,
    attempt: int,
    policy: PollingPolicy,
    kind: TransactionKind,
    transaction_id: str,
) -> Decision:
    """
    Transition function of the poller, applied once per attempt.

    Args:
        envelope: Latest status lookup
        attempt: 1-based attempt number
        policy: Grace window and limits
        kind: Transaction kind (for messages)
        transaction_id: Reference being resolved (for messages)

    Returns:
        Whether to keep polling, succeed or fail
    """
    if envelope.is_not_found:
        if attempt <= policy.not_found_grace_attempts:
            return CONTINUE
        return Decision(
            Transition.FAILURE,
            FailureKind.NOT_FOUND_EXHAUSTED,
            not_found_message(transaction_id, kind),
        )

    # without a payload the outer status stands in for the lifecycle status
    status = envelope.lifecycle_status or envelope.status
    if status == LifecycleStatus.COMPLETED:
        return Decision(Transition.SUCCESS)
    if status in FAILURE_STATUSES:
        return Decision(
            Transition.FAILURE,
            FailureKind.BUSINESS_REJECTION,
            failure_message(envelope, kind),
        )
    # ENQUEUED, ACCEPTED, SUBMITTED, PROCESSING, IN_RECONCILIATION, ...
    return CONTINUE


def _observed(envelope: StatusEnvelope) -> str:
    return envelope.lifecycle_status or envelope.status or "UNKNOWN"


class StatusPoller:
    """
    Polls one transaction at a time until it reaches a final status.

    Each ``resolve`` call owns its attempt counter and timer, so any number of
    resolves can run concurrently on the same poller.
    """

    def __init__(
        self,
        fetch_status: FetchStatus,
        policy: Optional[PollingPolicy] = None,
        metrics: Optional[PollerMetrics] = None,
    ):
        """
        Initialize the poller.

        Args:
            fetch_status: Single-shot status check returning an Outcome
            policy: Default polling policy
            metrics: Metrics tracker (a private one is created if omitted)
        """
        self.fetch_status = fetch_status
        self.policy = policy or DEFAULT_POLLING_POLICY
        self.metrics = metrics or PollerMetrics()

    async def resolve(
        self,
        transaction_id: str,
        kind: TransactionKind,
        policy: Optional[PollingPolicy] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Outcome:
        """
        Poll until the transaction completes, fails, disappears or time runs out.

        Args:
            transaction_id: Provider reference to poll
            kind: Deposit, payout or refund
            policy: Overrides the poller's default policy for this call
            cancel_event: Set it to stop observing; honoured at the next attempt
                boundary and during the pause between attempts

        Returns:
            Success with the COMPLETED envelope, or a classified Failure
        """
        policy = policy or self.policy
        kind = TransactionKind.parse(kind)
        run = self.metrics.start_run(transaction_id, kind.value)

        bind_transaction_context(transaction_id, kind.value)
        logger.info(
            "poll.started",
            run_id=run.run_id,
            max_attempts=policy.max_attempts,
            interval_seconds=policy.interval_seconds,
            not_found_grace_attempts=policy.not_found_grace_attempts,
        )
        try:
            return await self._poll(transaction_id, kind, policy, cancel_event, run)
        except asyncio.CancelledError:
            logger.info("poll.task_cancelled", run_id=run.run_id, attempts=run.attempts)
            self.metrics.end_run(run, RunStatus.CANCELLED, "task cancelled")
            raise
        finally:
            clear_transaction_context()

    async def _poll(
        self,
        transaction_id: str,
        kind: TransactionKind,
        policy: PollingPolicy,
        cancel_event: Optional[asyncio.Event],
        run: PollRunMetrics,
    ) -> Outcome:
        loop = asyncio.get_running_loop()
        started = loop.time()
        last_envelope: Optional[StatusEnvelope] = None
        last_error: Optional[BaseException] = None

        for attempt in range(1, policy.max_attempts + 1):
            if cancel_event is not None and cancel_event.is_set():
                return self._cancelled(run, last_envelope)
            if (
                policy.deadline_seconds
                and loop.time() - started >= policy.deadline_seconds
            ):
                logger.warning("poll.deadline_reached", attempts=run.attempts)
                break

            call_started = loop.time()
            outcome = await self.fetch_status(transaction_id, kind)
            latency = loop.time() - call_started

            if isinstance(outcome, Failure):
                is_transport = outcome.kind == FailureKind.TRANSPORT
                ends_loop = not is_transport or policy.abort_on_transport_error
                run.record_attempt(
                    PollAttempt(
                        attempt,
                        "transport_error" if is_transport else outcome.kind.value,
                        (Transition.FAILURE if ends_loop else Transition.CONTINUE).value,
                        latency_seconds=latency,
                        error=outcome.message,
                    )
                )
                if is_transport:
                    last_error = outcome.error
                    logger.warning(
                        "poll.transport_error",
                        attempt=attempt,
                        error=outcome.message,
                        abort=policy.abort_on_transport_error,
                    )
                if ends_loop:
                    return self._fail(
                        run,
                        outcome.kind,
                        outcome.message,
                        error=outcome.error,
                        envelope=last_envelope,
                    )
            else:
                envelope = outcome.value
                last_envelope = envelope
                decision = evaluate_envelope(
                    envelope, attempt, policy, kind, transaction_id
                )
                run.record_attempt(
                    PollAttempt(
                        attempt,
                        _observed(envelope),
                        decision.transition.value,
                        latency_seconds=latency,
                    )
                )

                if decision.transition == Transition.SUCCESS:
                    data = envelope.data
                    logger.info(
                        "poll.completed",
                        attempts=attempt,
                        amount=data.amount if data else None,
                        currency=data.currency if data else None,
                    )
                    self.metrics.end_run(run, RunStatus.SUCCESS)
                    return success(envelope, attempts=run.attempts, trace=tuple(run.trace))

                if decision.transition == Transition.FAILURE:
                    return self._fail(
                        run, decision.failure_kind, decision.message, envelope=envelope
                    )

                if envelope.lifecycle_status == LifecycleStatus.ENQUEUED:
                    # provider is retrying its correspondent, nothing is wrong
                    logger.info("poll.enqueued", attempt=attempt)
                else:
                    logger.debug("poll.pending", attempt=attempt, observed=_observed(envelope))

            if attempt < policy.max_attempts:
                if await self._pause(policy, cancel_event, loop.time() - started):
                    return self._cancelled(run, last_envelope)

        return self._fail(
            run,
            FailureKind.POLL_TIMEOUT,
            timeout_message(transaction_id),
            error=last_error,
            envelope=last_envelope,
        )

    def _cancelled(
        self, run: PollRunMetrics, envelope: Optional[StatusEnvelope]
    ) -> Failure:
        return self._fail(
            run, FailureKind.CANCELLED, "Polling cancelled by caller", envelope=envelope
        )

    async def _pause(
        self, policy: PollingPolicy, cancel_event: Optional[asyncio.Event], elapsed: float
    ) -> bool:
        """Wait out the interval. Returns True if the caller cancelled meanwhile."""
        interval = policy.interval_seconds
        if policy.deadline_seconds:
            interval = max(0.0, min(interval, policy.deadline_seconds - elapsed))

        if cancel_event is None:
            await asyncio.sleep(interval)
            return False
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=interval)
        except asyncio.TimeoutError:
            return False
        return True

    def _fail(
        self,
        run: PollRunMetrics,
        kind: FailureKind,
        message: str,
        *,
        error: Optional[BaseException] = None,
        envelope: Optional[StatusEnvelope] = None,
    ) -> Failure:
        logger.warning(
            "poll.failed",
            failure_kind=kind.value,
            message=message,
            attempts=run.attempts,
        )
        self.metrics.end_run(run, _RUN_STATUS.get(kind, RunStatus.FAILED), message)
        return failure(
            kind,
            message,
            error=error,
            envelope=envelope,
            attempts=run.attempts,
            trace=tuple(run.trace),
        )
