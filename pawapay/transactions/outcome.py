"""
Result type returned across the public API.

Exactly one payload per tag: ``Success`` carries a value, ``Failure`` carries
a kind and a human message. Build them with ``success()`` and ``failure()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, Optional, Tuple, TypeVar, Union

from pawapay.transactions.errors import FailureKind, PawaPayError, TransportError

if TYPE_CHECKING:
    from pawapay.transactions.metrics import PollAttempt
    from pawapay.transactions.models import StatusEnvelope

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T
    attempts: int = 0
    trace: Tuple["PollAttempt", ...] = field(default=(), repr=False)

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str
    error: Optional[BaseException] = field(default=None, compare=False)
    envelope: Optional["StatusEnvelope"] = None
    attempts: int = 0
    trace: Tuple["PollAttempt", ...] = field(default=(), repr=False)

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> Any:
        if isinstance(self.error, PawaPayError):
            raise self.error
        raise PawaPayError(f"{self.kind.value}: {self.message}")


Outcome = Union[Success[T], Failure]


def success(
    value: T, attempts: int = 0, trace: Tuple["PollAttempt", ...] = ()
) -> Success[T]:
    return Success(value=value, attempts=attempts, trace=tuple(trace))


def failure(
    kind: FailureKind,
    message: str,
    *,
    error: Optional[BaseException] = None,
    envelope: Optional["StatusEnvelope"] = None,
    attempts: int = 0,
    trace: Tuple["PollAttempt", ...] = (),
) -> Failure:
    return Failure(
        kind=kind,
        message=message,
        error=error,
        envelope=envelope,
        attempts=attempts,
        trace=tuple(trace),
    )


def from_exception(exc: PawaPayError) -> Failure:
    """Failure for an SDK exception, keeping the provider's raw body as message."""
    message = exc.detail if isinstance(exc, TransportError) else str(exc)
    return failure(exc.kind, message, error=exc)
