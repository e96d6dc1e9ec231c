"""Provider API client implementations."""

from pawapay.transactions.clients.base import BaseProviderClient
from pawapay.transactions.clients.http_client import PawaPayClient
from pawapay.transactions.clients.mock_client import MockProviderClient

__all__ = ["BaseProviderClient", "PawaPayClient", "MockProviderClient"]
