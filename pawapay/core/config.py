from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """SDK settings loaded from environment variables and .env file.

    This uses pydantic-settings so that we get type validation and defaults.
    Nothing here is global state for the client itself: the typed configs in
    ``pawapay.transactions.config`` are derived from it and passed explicitly.
    """

    # App basics
    ENV: Literal["development", "staging", "production"] = "development"
    """Environment mode: selects the log renderer."""

    LOG_LEVEL: str = "INFO"
    """Root log level for the stdlib bridge."""

    # Provider API
    PAWAPAY_API_TOKEN: Optional[str] = None
    """Bearer token issued by the provider dashboard."""

    PAWAPAY_SANDBOX: bool = True
    """Target the sandbox environment instead of production."""

    PAWAPAY_BASE_URL: Optional[str] = None
    """Explicit base URL. Overrides the sandbox/production default."""

    PAWAPAY_TIMEOUT_SECONDS: float = 30.0
    """Per-request HTTP timeout."""

    PAWAPAY_CLIENT_TYPE: Literal["http", "mock"] = "http"
    """Which client implementation the CLI wires up."""

    # Status polling
    POLL_MAX_ATTEMPTS: int = 30
    POLL_INTERVAL_SECONDS: float = 4.0
    POLL_NOT_FOUND_GRACE_ATTEMPTS: int = 5
    POLL_ABORT_ON_TRANSPORT_ERROR: bool = False
    POLL_DEADLINE_SECONDS: Optional[float] = None
    """Optional wall-clock bound on a single resolve. Unset means attempt counting only."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance to avoid re-parsing .env repeatedly."""
    return Settings()
