"""
Client and polling configuration.

Defines the connection settings handed to API clients and the policy the
status poller follows while waiting for a transaction to settle.
"""

from typing import Optional
from pydantic import BaseModel, Field, model_validator

from pawapay.core.config import Settings, get_settings

SANDBOX_BASE_URL = "https://api.sandbox.pawapay.io/v2/"
PRODUCTION_BASE_URL = "https://api.pawapay.io/v2/"


class PollingPolicy(BaseModel):
    """How long and how often to poll a transaction before giving up."""

    max_attempts: int = Field(default=30, ge=1, description="Maximum status lookups")
    interval_seconds: float = Field(
        default=4.0, ge=0, description="Fixed pause between lookups"
    )
    not_found_grace_attempts: int = Field(
        default=5,
        ge=0,
        description="Leading attempts during which NOT_FOUND means 'not visible yet'",
    )
    abort_on_transport_error: bool = Field(
        default=False,
        description="End the loop on the first failed lookup instead of spending an attempt",
    )
    deadline_seconds: Optional[float] = Field(
        default=None, gt=0, description="Optional wall-clock bound on one resolve"
    )

    def worst_case_seconds(self) -> float:
        """Nominal upper bound when every lookup returns instantly."""
        return (self.max_attempts - 1) * self.interval_seconds


class ClientConfig(BaseModel):
    """Everything an HTTP client needs to talk to the provider."""

    api_token: Optional[str] = Field(default=None, description="Bearer token")
    sandbox: bool = Field(default=True, description="Use the sandbox environment")
    base_url: Optional[str] = Field(
        default=None, description="Explicit base URL, derived from sandbox if unset"
    )
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")

    @model_validator(mode="after")
    def _default_base_url(self) -> "ClientConfig":
        if not self.base_url:
            self.base_url = SANDBOX_BASE_URL if self.sandbox else PRODUCTION_BASE_URL
        if not self.base_url.endswith("/"):
            # httpx joins relative paths onto the last segment otherwise
            self.base_url = self.base_url + "/"
        return self


DEFAULT_POLLING_POLICY = PollingPolicy()


def get_polling_policy(settings: Optional[Settings] = None) -> PollingPolicy:
    """Build the polling policy from settings (env / .env)."""
    settings = settings or get_settings()
    return PollingPolicy(
        max_attempts=settings.POLL_MAX_ATTEMPTS,
        interval_seconds=settings.POLL_INTERVAL_SECONDS,
        not_found_grace_attempts=settings.POLL_NOT_FOUND_GRACE_ATTEMPTS,
        abort_on_transport_error=settings.POLL_ABORT_ON_TRANSPORT_ERROR,
        deadline_seconds=settings.POLL_DEADLINE_SECONDS,
    )


def get_client_config(settings: Optional[Settings] = None) -> ClientConfig:
    """Build the client configuration from settings (env / .env)."""
    settings = settings or get_settings()
    return ClientConfig(
        api_token=settings.PAWAPAY_API_TOKEN,
        sandbox=settings.PAWAPAY_SANDBOX,
        base_url=settings.PAWAPAY_BASE_URL,
        timeout=settings.PAWAPAY_TIMEOUT_SECONDS,
    )
