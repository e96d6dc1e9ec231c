from __future__ import annotations

import logging
import sys
from typing import Any, Dict

import structlog

REDACTED = "REDACTED"
_SENSITIVE_HEADERS = {"authorization", "x-api-key"}


def _add_log_level(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    event_dict["level"] = method_name
    return event_dict


def configure_logging(env: str = "development", level: str = "INFO") -> None:
    """Configure structlog for console logs to stdout.

    Development gets the colored console renderer, every other environment
    gets one JSON object per line.
    """
    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        _add_log_level,
        timestamper,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    renderer: Any
    if env == "development":
        renderer = structlog.dev.ConsoleRenderer(colors=True)
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def bind_transaction_context(transaction_id: str, kind: str) -> None:
    """Attach the transaction being resolved to every log line in this task."""
    structlog.contextvars.bind_contextvars(transaction_id=transaction_id, kind=kind)


def clear_transaction_context() -> None:
    structlog.contextvars.unbind_contextvars("transaction_id", "kind")


def redact_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Copy of ``headers`` that is safe to log."""
    safe = dict(headers or {})
    for key in list(safe):
        if key.lower() in _SENSITIVE_HEADERS:
            safe[key] = REDACTED
    return safe
