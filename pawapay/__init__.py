"""Async client SDK for the pawaPay mobile-money API."""

from pawapay.transactions import (
    PaymentIntent,
    PollingPolicy,
    TransactionKind,
    TransactionOrchestrator,
)

__version__ = "0.1.0"

__all__ = ["TransactionOrchestrator", "PollingPolicy", "PaymentIntent", "TransactionKind"]
