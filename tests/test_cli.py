"""Tests for the command-line entry point, run against the mock provider."""

import httpx
import pytest

from pawapay.core.config import get_settings
from pawapay.transactions.cli import main
from pawapay.transactions.clients.http_client import PawaPayClient
from pawapay.transactions.clients.mock_client import MockProviderClient
from pawapay.transactions.config import ClientConfig, PollingPolicy
from pawapay.transactions.models import AcceptanceStatus
from pawapay.transactions.orchestrator import TransactionOrchestrator


@pytest.fixture(autouse=True)
def mock_settings(monkeypatch):
    monkeypatch.setenv("PAWAPAY_CLIENT_TYPE", "mock")
    monkeypatch.setenv("POLL_INTERVAL_SECONDS", "0")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_usage_without_command(capsys):
    assert main([]) == 1
    assert "Usage" in capsys.readouterr().out


def test_unknown_command(capsys):
    assert main(["transfer", "1"]) == 1
    assert "Unknown command" in capsys.readouterr().out


def test_deposit_resolves(capsys):
    assert main(["deposit", "1000", "256700000000"]) == 0

    out = capsys.readouterr().out
    assert "Acceptance: ACCEPTED" in out
    assert "Status: COMPLETED" in out
    assert "Amount: 1000 UGX" in out


def test_status_of_unknown_transaction(capsys):
    assert main(["status", "deposit", "missing-id"]) == 0
    assert "Lookup: NOT_FOUND" in capsys.readouterr().out


def test_status_with_bad_kind(capsys):
    assert main(["status", "transfer", "d1"]) == 1
    assert "validation" in capsys.readouterr().out


def test_balances(capsys):
    assert main(["balances", "UGA"]) == 0
    assert "UGA (MTN_MOMO_UGA): 1000000 UGX" in capsys.readouterr().out


def test_predict(capsys):
    assert main(["predict", "+254700000000"]) == 0
    assert "Provider: MPESA_KEN" in capsys.readouterr().out


def _serve(monkeypatch, client):
    def from_settings(cls, settings=None):
        return TransactionOrchestrator(client, policy=PollingPolicy(interval_seconds=0))

    monkeypatch.setattr(TransactionOrchestrator, "from_settings", classmethod(from_settings))


def test_rejected_deposit_prints_provider_reason(monkeypatch, capsys):
    _serve(monkeypatch, MockProviderClient(submit_status=AcceptanceStatus.REJECTED))

    assert main(["deposit", "1000", "256700000000"]) == 1

    out = capsys.readouterr().out
    assert "Acceptance: REJECTED" in out
    assert "Rejected: INVALID_PARAMETERS - Rejected by mock provider" in out


def test_rejected_deposit_without_reason(monkeypatch, capsys):
    http = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"status": "REJECTED"}))
    )
    _serve(monkeypatch, PawaPayClient(ClientConfig(api_token="t"), http_client=http))

    assert main(["deposit", "1000", "256700000000"]) == 1

    out = capsys.readouterr().out
    assert "Acceptance: REJECTED" in out
    assert "Rejected: Deposit was rejected by the provider" in out
    assert "Waiting for a final status" not in out
