"""
Base provider API client interface.

Defines the contract that every client (HTTP, mock) must implement. Clients
are pure transport mappers: one call per operation, no retries, and every
failure surfaces as a ``TransportError``.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pawapay.transactions.models import (
    DepositRequest,
    PayoutRequest,
    PredictedProvider,
    RefundRequest,
    StatusEnvelope,
    SubmissionResult,
    TransactionKind,
    WalletBalances,
)


class BaseProviderClient(ABC):
    """Abstract base class for provider API clients."""

    @abstractmethod
    async def submit_deposit(self, request: DepositRequest) -> SubmissionResult:
        """
        Submit a deposit (collection from the payer's wallet).

        Raises:
            TransportError: On network failure or non-2xx response
        """
        pass

    @abstractmethod
    async def submit_payout(self, request: PayoutRequest) -> SubmissionResult:
        """
        Submit a payout (disbursement to the recipient's wallet).

        Raises:
            TransportError: On network failure or non-2xx response
        """
        pass

    @abstractmethod
    async def submit_refund(self, request: RefundRequest) -> SubmissionResult:
        """
        Submit a refund of an earlier deposit.

        Raises:
            TransportError: On network failure or non-2xx response
        """
        pass

    @abstractmethod
    async def get_status(self, transaction_id: str, kind: TransactionKind) -> StatusEnvelope:
        """
        Look up the current status of a transaction once.

        Args:
            transaction_id: Provider reference (the submission id)
            kind: Which resource to query

        Returns:
            Status envelope; ``data`` is None when the lookup was NOT_FOUND

        Raises:
            TransportError: On network failure or non-2xx response
        """
        pass

    @abstractmethod
    async def get_wallet_balances(self, country: Optional[str] = None) -> WalletBalances:
        """Fetch wallet balances, optionally for one ISO 3166-1 alpha-3 country."""
        pass

    @abstractmethod
    async def predict_provider(self, phone_number: str) -> PredictedProvider:
        """Predict the mobile-money provider (correspondent) for a phone number."""
        pass

    @abstractmethod
    def get_source_name(self) -> str:
        """
        Get the name of this client.

        Returns:
            Source identifier (e.g., 'pawapay', 'mock')
        """
        pass

    async def aclose(self) -> None:
        """Release transport resources. Nothing to do by default."""
        return None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
