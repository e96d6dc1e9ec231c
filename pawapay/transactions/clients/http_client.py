"""HTTP client for the provider's v2 REST API using httpx."""

from __future__ import annotations

import time
from urllib.parse import quote
from typing import Any, Dict, Optional

import httpx
import structlog

from pawapay.core.logging import redact_headers
from pawapay.transactions.clients.base import BaseProviderClient
from pawapay.transactions.config import ClientConfig
from pawapay.transactions.errors import TransportError
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

logger = structlog.get_logger()


class PawaPayClient(BaseProviderClient):
    """Typed wrapper over the provider endpoints.

    One request per call. Any ``httpx.HTTPError`` or non-2xx answer is raised
    as ``TransportError``; deciding whether to try again is left to the caller.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the client.

        Args:
            config: Base URL, token and timeout (defaults to sandbox, no token)
            http_client: Pre-built httpx client, mostly for tests with MockTransport
        """
        self.config = config or ClientConfig()
        self._headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.config.api_token:
            self._headers["Authorization"] = f"Bearer {self.config.api_token}"

        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=self.config.timeout)

    def get_source_name(self) -> str:
        return "pawapay"

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def _url(self, path: str) -> str:
        return f"{self.config.base_url}{path.lstrip('/')}"

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        url = self._url(path)
        logger.debug(
            "client.request",
            method=method,
            url=url,
            headers=redact_headers(self._headers),
            body=json_body,
        )

        started = time.perf_counter()
        try:
            response = await self._http.request(
                method, url, headers=self._headers, json=json_body, params=params
            )
        except httpx.HTTPError as e:
            logger.warning(
                "client.transport_error",
                method=method,
                url=url,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise TransportError(str(e) or type(e).__name__) from e

        latency_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info(
            "client.response",
            method=method,
            url=url,
            status=response.status_code,
            latency_ms=latency_ms,
        )

        if not response.is_success:
            raise TransportError(
                f"HTTP {response.status_code}",
                status_code=response.status_code,
                body=response.text or None,
            )

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                "Provider returned a non-JSON body",
                status_code=response.status_code,
                body=response.text or None,
            ) from e

    async def _submit(self, kind: TransactionKind, request: Any) -> SubmissionResult:
        payload = await self._request("POST", kind.resource_path, json_body=request.to_wire())
        if not isinstance(payload, dict):
            raise TransportError(
                f"Unexpected {kind.value} response shape", body=str(payload)
            )
        try:
            return SubmissionResult.from_payload(kind, payload, request.submission_id)
        except ValueError as e:
            raise TransportError(str(e), body=str(payload)) from e

    async def submit_deposit(self, request: DepositRequest) -> SubmissionResult:
        return await self._submit(TransactionKind.DEPOSIT, request)

    async def submit_payout(self, request: PayoutRequest) -> SubmissionResult:
        return await self._submit(TransactionKind.PAYOUT, request)

    async def submit_refund(self, request: RefundRequest) -> SubmissionResult:
        return await self._submit(TransactionKind.REFUND, request)

    async def get_status(self, transaction_id: str, kind: TransactionKind) -> StatusEnvelope:
        path = f"{kind.resource_path}/{quote(transaction_id, safe='')}"
        payload = await self._request("GET", path)
        try:
            return StatusEnvelope.from_payload(kind, payload)
        except ValueError as e:
            raise TransportError(str(e), body=str(payload)) from e

    async def get_wallet_balances(self, country: Optional[str] = None) -> WalletBalances:
        params = {"country": country} if country else None
        payload = await self._request("GET", "wallet-balances", params=params)
        # v1 answered with a bare list
        if isinstance(payload, list):
            payload = {"balances": payload}
        return _parse(WalletBalances, payload)

    async def predict_provider(self, phone_number: str) -> PredictedProvider:
        payload = await self._request(
            "POST", "predict-provider", json_body={"phoneNumber": phone_number}
        )
        return _parse(PredictedProvider, payload)


def _parse(model: Any, payload: Any) -> Any:
    try:
        return model.model_validate(payload)
    except ValueError as e:
        raise TransportError(
            f"Unexpected {model.__name__} response shape", body=str(payload)
        ) from e
