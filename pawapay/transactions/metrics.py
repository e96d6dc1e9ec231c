"""
Status poller metrics and attempt traces.

Tracks every resolve run (attempts, outcome, latency) and keeps a bounded
history for diagnostics. Each run owns its own record, so concurrent resolves
never write to the same object; the shared history is append-only.
"""

from typing import Dict, Any, Optional, List
from datetime import datetime, timedelta, timezone
from dataclasses import dataclass, field, asdict
from enum import Enum
import itertools


class RunStatus(str, Enum):
    """Final state of a resolve run."""

    IN_PROGRESS = "in_progress"
    SUCCESS = "success"
    FAILED = "failed"
    NOT_FOUND = "not_found"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class PollAttempt:
    """What one status lookup observed and what the poller did about it."""

    attempt: int
    observed: str  # lookup status, lifecycle status or "transport_error"
    action: str  # "continue", "success", "failure"
    at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    latency_seconds: float = 0.0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["at"] = self.at.isoformat()
        return data


@dataclass
class PollRunMetrics:
    """Metrics for a single resolve run."""

    run_id: str
    transaction_id: str
    kind: str
    started_at: datetime
    ended_at: Optional[datetime] = None
    status: RunStatus = RunStatus.IN_PROGRESS

    attempts: int = 0
    not_found_count: int = 0
    enqueued_count: int = 0
    transport_errors: int = 0

    duration_seconds: float = 0.0
    api_latency_seconds: float = 0.0

    message: Optional[str] = None
    trace: List[PollAttempt] = field(default_factory=list)

    def record_attempt(self, attempt: PollAttempt) -> None:
        self.attempts = attempt.attempt
        self.api_latency_seconds += attempt.latency_seconds
        self.trace.append(attempt)
        if attempt.observed == "NOT_FOUND":
            self.not_found_count += 1
        elif attempt.observed == "ENQUEUED":
            self.enqueued_count += 1
        elif attempt.observed == "transport_error":
            self.transport_errors += 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging or export."""
        data = asdict(self)
        data["started_at"] = self.started_at.isoformat()
        data["ended_at"] = self.ended_at.isoformat() if self.ended_at else None
        data["status"] = self.status.value
        data["trace"] = [a.to_dict() for a in self.trace]
        return data


@dataclass
class AggregateMetrics:
    """Aggregated metrics across resolve runs."""

    total_runs: int = 0
    successful_runs: int = 0
    failed_runs: int = 0
    not_found_runs: int = 0
    timed_out_runs: int = 0
    cancelled_runs: int = 0

    total_attempts: int = 0
    total_transport_errors: int = 0

    avg_attempts_per_run: float = 0.0
    avg_duration_seconds: float = 0.0

    last_success: Optional[datetime] = None
    last_failure: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key in ["last_success", "last_failure"]:
            if data[key]:
                data[key] = data[key].isoformat()
        return data


class PollerMetrics:
    """
    In-memory metrics tracker for the status poller.

    ``start_run`` hands out a fresh record per resolve; ``end_run`` closes it
    and moves it into the bounded history.
    """

    def __init__(self, history_size: int = 100):
        """
        Initialize metrics tracker.

        Args:
            history_size: Number of recent runs to keep in memory
        """
        self.history_size = history_size
        self._history: List[PollRunMetrics] = []
        self._counter = itertools.count(1)

    def start_run(self, transaction_id: str, kind: str) -> PollRunMetrics:
        run_number = next(self._counter)
        run_id = f"resolve-{datetime.now(timezone.utc).strftime('%Y%m%d-%H%M%S')}-{run_number}"
        return PollRunMetrics(
            run_id=run_id,
            transaction_id=transaction_id,
            kind=kind,
            started_at=datetime.now(timezone.utc),
        )

    def end_run(
        self, run: PollRunMetrics, status: RunStatus, message: Optional[str] = None
    ) -> None:
        run.ended_at = datetime.now(timezone.utc)
        run.status = status
        run.message = message
        run.duration_seconds = (run.ended_at - run.started_at).total_seconds()

        self._history.append(run)
        if len(self._history) > self.history_size:
            self._history = self._history[-self.history_size :]

    def get_last_run(self) -> Optional[PollRunMetrics]:
        return self._history[-1] if self._history else None

    def get_history(self, limit: Optional[int] = None) -> List[PollRunMetrics]:
        """
        Get recent run history.

        Args:
            limit: Maximum number of runs to return (defaults to all)

        Returns:
            List of run metrics, newest first
        """
        history = list(reversed(self._history))
        if limit:
            history = history[:limit]
        return history

    def get_aggregate_metrics(self, hours: Optional[int] = None) -> AggregateMetrics:
        """
        Get aggregated metrics across recent runs.

        Args:
            hours: Only include runs from the last N hours (None = all history)
        """
        runs = self._history
        if hours:
            cutoff = datetime.now(timezone.utc) - timedelta(hours=hours)
            runs = [r for r in runs if r.started_at >= cutoff]

        metrics = AggregateMetrics()
        if not runs:
            return metrics

        metrics.total_runs = len(runs)
        for run in runs:
            if run.status == RunStatus.SUCCESS:
                metrics.successful_runs += 1
            elif run.status == RunStatus.FAILED:
                metrics.failed_runs += 1
            elif run.status == RunStatus.NOT_FOUND:
                metrics.not_found_runs += 1
            elif run.status == RunStatus.TIMED_OUT:
                metrics.timed_out_runs += 1
            elif run.status == RunStatus.CANCELLED:
                metrics.cancelled_runs += 1

        metrics.total_attempts = sum(r.attempts for r in runs)
        metrics.total_transport_errors = sum(r.transport_errors for r in runs)
        metrics.avg_attempts_per_run = metrics.total_attempts / metrics.total_runs
        metrics.avg_duration_seconds = (
            sum(r.duration_seconds for r in runs) / metrics.total_runs
        )

        for run in reversed(runs):
            if run.status == RunStatus.SUCCESS and not metrics.last_success:
                metrics.last_success = run.started_at
            if run.status != RunStatus.SUCCESS and not metrics.last_failure:
                metrics.last_failure = run.started_at
            if metrics.last_success and metrics.last_failure:
                break

        return metrics

    def get_success_rate(self, hours: Optional[int] = None) -> float:
        """Success rate as a float between 0.0 and 1.0."""
        agg = self.get_aggregate_metrics(hours)
        if agg.total_runs == 0:
            return 0.0
        return agg.successful_runs / agg.total_runs

    def clear_history(self):
        self._history.clear()
