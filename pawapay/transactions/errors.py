"""Error taxonomy for the SDK.

Exceptions travel between internal layers (builder, client). The public
orchestrator turns them into ``Failure`` outcomes tagged with a
``FailureKind``, so callers never need a try/except.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class FailureKind(str, Enum):
    """Why an operation did not succeed."""

    VALIDATION = "validation"  # bad caller input, never sent
    TRANSPORT = "transport"  # network or non-2xx HTTP
    BUSINESS_REJECTION = "business_rejection"  # provider said FAILED/REJECTED
    NOT_FOUND_EXHAUSTED = "not_found_exhausted"  # NOT_FOUND past the grace window
    POLL_TIMEOUT = "poll_timeout"  # attempts exhausted, outcome unknown
    CANCELLED = "cancelled"  # caller stopped observing
    UNEXPECTED = "unexpected"

    @property
    def is_terminal_for_payment(self) -> bool:
        """True when retrying the same payment is the wrong advice.

        A timeout or cancellation leaves the provider-side transaction in an
        unknown state: callers should check again later instead of paying twice.
        """
        return self not in (FailureKind.POLL_TIMEOUT, FailureKind.CANCELLED)


class PawaPayError(Exception):
    """Base exception for SDK errors."""

    kind: FailureKind = FailureKind.UNEXPECTED


class ValidationError(PawaPayError):
    """Raised when caller input is malformed. Detected before any network call."""

    kind = FailureKind.VALIDATION


class TransportError(PawaPayError):
    """Raised when the HTTP call fails or the provider answers non-2xx.

    ``body`` keeps the provider's raw response text when there was one, so the
    caller can show the provider's own diagnostic.
    """

    kind = FailureKind.TRANSPORT

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @property
    def detail(self) -> str:
        """Best message for humans: the raw body if any, else the transport error."""
        if self.body:
            return self.body
        return str(self)
