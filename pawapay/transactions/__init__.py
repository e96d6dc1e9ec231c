"""
Mobile-money transactions module.

This module handles building and submitting deposits, payouts and refunds,
looking up their status, and polling them to a final outcome while the
provider settles them asynchronously.
"""

from pawapay.transactions.clients.base import BaseProviderClient
from pawapay.transactions.clients.http_client import PawaPayClient
from pawapay.transactions.clients.mock_client import MockProviderClient
from pawapay.transactions.config import ClientConfig, PollingPolicy
from pawapay.transactions.errors import (
    FailureKind,
    PawaPayError,
    TransportError,
    ValidationError,
)
from pawapay.transactions.metrics import PollerMetrics
from pawapay.transactions.models import (
    PaymentIntent,
    StatusEnvelope,
    SubmissionResult,
    TransactionKind,
)
from pawapay.transactions.orchestrator import TransactionOrchestrator
from pawapay.transactions.outcome import Failure, Outcome, Success
from pawapay.transactions.poller import StatusPoller

__all__ = [
    "TransactionOrchestrator",
    "StatusPoller",
    "BaseProviderClient",
    "PawaPayClient",
    "MockProviderClient",
    "ClientConfig",
    "PollingPolicy",
    "PollerMetrics",
    "FailureKind",
    "PawaPayError",
    "TransportError",
    "ValidationError",
    "PaymentIntent",
    "StatusEnvelope",
    "SubmissionResult",
    "TransactionKind",
    "Outcome",
    "Success",
    "Failure",
]
