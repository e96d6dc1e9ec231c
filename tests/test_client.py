"""
Tests for the HTTP provider client.

Requests are answered by ``httpx.MockTransport`` so every test sees the exact
URL, headers and body the client sent.
"""

import json

import httpx
import pytest

from pawapay.transactions.builder import build_request
from pawapay.transactions.clients.http_client import PawaPayClient
from pawapay.transactions.config import PRODUCTION_BASE_URL, SANDBOX_BASE_URL, ClientConfig
from pawapay.transactions.errors import TransportError
from pawapay.transactions.models import PaymentIntent, TransactionKind

DEPOSIT_ID = "5f0c3e2a-8b1d-4c6e-9a7f-2d4b6c8e0a13"


def make_client(handler, **config):
    config.setdefault("api_token", "secret-token")
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return PawaPayClient(ClientConfig(**config), http_client=http)


def deposit_request(**overrides):
    fields = dict(amount="1000", currency="UGX", phone_number="256700000000", provider="MTN_MOMO_UGA")
    fields.update(overrides)
    return build_request(TransactionKind.DEPOSIT, PaymentIntent(**fields))


class TestClientConfig:
    """Tests for base URL selection."""

    def test_sandbox_by_default(self):
        assert ClientConfig().base_url == SANDBOX_BASE_URL

    def test_production(self):
        assert ClientConfig(sandbox=False).base_url == PRODUCTION_BASE_URL

    def test_explicit_base_url_gets_trailing_slash(self):
        assert ClientConfig(base_url="http://localhost:8080/v2").base_url == "http://localhost:8080/v2/"


class TestSubmit:
    """Tests for submission endpoints."""

    @pytest.mark.asyncio
    async def test_deposit_posts_wire_body(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"depositId": seen["body"]["depositId"], "status": "ACCEPTED"})

        request = deposit_request(submission_id=DEPOSIT_ID)
        async with make_client(handler) as client:
            result = await client.submit_deposit(request)

        assert seen["method"] == "POST"
        assert seen["url"] == f"{SANDBOX_BASE_URL}deposits"
        assert seen["auth"] == "Bearer secret-token"
        assert seen["body"]["depositId"] == DEPOSIT_ID
        assert seen["body"]["amount"] == "1000"
        assert seen["body"]["payer"]["accountDetails"]["phoneNumber"] == "256700000000"
        assert result.id == DEPOSIT_ID
        assert result.status == "ACCEPTED"

    @pytest.mark.asyncio
    async def test_payout_and_refund_paths(self):
        paths = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            return httpx.Response(200, json={"status": "ACCEPTED"})

        async with make_client(handler) as client:
            payout = build_request(
                TransactionKind.PAYOUT,
                PaymentIntent(amount="5", currency="KES", phone_number="254700000000", provider="MPESA_KEN"),
            )
            refund = build_request(TransactionKind.REFUND, PaymentIntent(amount="5", deposit_id="d1"))
            payout_result = await client.submit_payout(payout)
            refund_result = await client.submit_refund(refund)

        assert paths == ["/v2/payouts", "/v2/refunds"]
        # no id in the answer: the submitted one is kept
        assert payout_result.id == payout.payout_id
        assert refund_result.id == refund.refund_id

    @pytest.mark.asyncio
    async def test_non_2xx_keeps_raw_body(self):
        body = '{"failureReason": {"failureCode": "INVALID_AMOUNT"}}'

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, text=body)

        async with make_client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.submit_deposit(deposit_request())

        assert exc_info.value.status_code == 400
        assert exc_info.value.body == body
        assert exc_info.value.detail == body

    @pytest.mark.asyncio
    async def test_redirect_is_not_an_acceptance(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                302,
                headers={"Location": "https://example.com/login"},
                json={"depositId": DEPOSIT_ID, "status": "ACCEPTED"},
            )

        async with make_client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.submit_deposit(deposit_request())

        assert exc_info.value.status_code == 302

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>gateway</html>")

        async with make_client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.submit_deposit(deposit_request())

        assert exc_info.value.body == "<html>gateway</html>"


class TestGetStatus:
    """Tests for the status endpoint."""

    @pytest.mark.asyncio
    async def test_get_status_path_and_parse(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "GET"
            assert request.url.path == "/v2/payouts/p1"
            return httpx.Response(
                200,
                json={"status": "FOUND", "data": {"payoutId": "p1", "status": "PROCESSING"}},
            )

        async with make_client(handler) as client:
            envelope = await client.get_status("p1", TransactionKind.PAYOUT)

        assert envelope.lifecycle_status == "PROCESSING"
        assert envelope.data.reference.id == "p1"

    @pytest.mark.asyncio
    async def test_not_found_envelope(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"status": "NOT_FOUND"})

        async with make_client(handler) as client:
            envelope = await client.get_status("d1", TransactionKind.DEPOSIT)

        assert envelope.is_not_found

    @pytest.mark.asyncio
    async def test_transaction_id_is_escaped_in_path(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["raw_path"] = request.url.raw_path
            seen["query"] = request.url.query
            return httpx.Response(200, json={"status": "NOT_FOUND"})

        async with make_client(handler) as client:
            await client.get_status("abc/../../wallet-balances?x=1", TransactionKind.DEPOSIT)

        assert seen["raw_path"].startswith(b"/v2/deposits/abc%2F")
        assert b"%3F" in seen["raw_path"]
        assert seen["query"] == b""

    @pytest.mark.asyncio
    async def test_data_less_completed_envelope(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"status": "COMPLETED"})

        async with make_client(handler) as client:
            envelope = await client.get_status("d1", TransactionKind.DEPOSIT)

        assert envelope.data is None
        assert envelope.status == "COMPLETED"

    @pytest.mark.asyncio
    async def test_server_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500)

        async with make_client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.get_status("d1", TransactionKind.DEPOSIT)

        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == "HTTP 500"

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.get_status("d1", TransactionKind.DEPOSIT)

        assert "connection refused" in str(exc_info.value)
        assert exc_info.value.status_code is None


class TestWallets:
    """Tests for wallet balances and provider prediction."""

    @pytest.mark.asyncio
    async def test_wallet_balances_with_country(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v2/wallet-balances"
            assert request.url.params["country"] == "UGA"
            return httpx.Response(
                200,
                json={"balances": [{"country": "UGA", "balance": "1000.00", "currency": "UGX"}]},
            )

        async with make_client(handler) as client:
            balances = await client.get_wallet_balances("UGA")

        assert balances.balances[0].balance == "1000.00"

    @pytest.mark.asyncio
    async def test_wallet_balances_list_answer(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert "country" not in request.url.params
            return httpx.Response(200, json=[{"country": "KEN", "balance": "5", "currency": "KES"}])

        async with make_client(handler) as client:
            balances = await client.get_wallet_balances()

        assert [b.country for b in balances.balances] == ["KEN"]

    @pytest.mark.asyncio
    async def test_predict_provider(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "POST"
            assert json.loads(request.content) == {"phoneNumber": "+256 700 000 000"}
            return httpx.Response(
                200, json={"country": "UGA", "provider": "MTN_MOMO_UGA", "phoneNumber": "256700000000"}
            )

        async with make_client(handler) as client:
            predicted = await client.predict_provider("+256 700 000 000")

        assert predicted.provider == "MTN_MOMO_UGA"
        assert predicted.phone_number == "256700000000"

    @pytest.mark.asyncio
    async def test_unexpected_shape_is_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"unexpected": True})

        async with make_client(handler) as client:
            with pytest.raises(TransportError):
                await client.predict_provider("256700000000")


def test_authorization_header_is_redacted_in_logs():
    from pawapay.core.logging import REDACTED, redact_headers

    safe = redact_headers({"Authorization": "Bearer secret-token", "Accept": "application/json"})

    assert safe["Authorization"] == REDACTED
    assert safe["Accept"] == "application/json"
