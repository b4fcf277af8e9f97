"""
Fixed-window daily quota tracker.
"""

import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Optional

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..domain.failures import GateFailure
from .store import UsageRecord, UsageStore

DEFAULT_MAX_REQUESTS_PER_DAY = 10
DEFAULT_WINDOW = timedelta(hours=24)


@dataclass(frozen=True)
class QuotaDecision:
    """Outcome of a quota check for one identity."""

    admitted: bool
    count: int
    limit: int
    window_start: float
    window_seconds: float
    reason: Optional[GateFailure] = None

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.count)

    @property
    def reset_at(self) -> float:
        return self.window_start + self.window_seconds

    def reset_in_seconds(self, now: float) -> int:
        return max(0, int(self.reset_at - now))


class QuotaTracker:
    """Per-identity usage counter against a fixed daily cap.

    The window resets lazily: a record older than the window is reinitialised
    on the next check, there is no background sweep. A burst of up to twice
    the cap is possible across a window boundary. Rejected attempts are not
    counted, and admitted ones are never refunded.
    """

    def __init__(self, store: UsageStore,
                 max_requests_per_day: int = DEFAULT_MAX_REQUESTS_PER_DAY,
                 window: timedelta = DEFAULT_WINDOW,
                 clock: Callable[[], float] = time.time,
                 metrics: Optional[MetricsCollector] = None):
        if max_requests_per_day < 0:
            raise ValueError("max_requests_per_day must be >= 0")
        self.store = store
        self.max_requests_per_day = max_requests_per_day
        self.window_seconds = window.total_seconds()
        self.clock = clock
        self.metrics = metrics
        self.logger = get_logger("gate.quota_tracker")

    def _current_record(self, identity_id: str, now: float) -> UsageRecord:
        record = self.store.get(identity_id)
        if record is None or (now - record.window_start) > self.window_seconds:
            return UsageRecord(count=0, window_start=now)
        return record

    def _decision(self, admitted: bool, record: UsageRecord,
                  reason: Optional[GateFailure] = None) -> QuotaDecision:
        return QuotaDecision(
            admitted=admitted,
            count=record.count,
            limit=self.max_requests_per_day,
            window_start=record.window_start,
            window_seconds=self.window_seconds,
            reason=reason,
        )

    def admit(self, identity_id: str, now: Optional[float] = None,
              email: Optional[str] = None) -> QuotaDecision:
        """Charge one request to ``identity_id`` if it is under its cap.

        Must not await anywhere between reading and writing the record.
        """
        now = self.clock() if now is None else now
        record = self._current_record(identity_id, now)

        if record.count >= self.max_requests_per_day:
            self.logger.warning(
                "Quota exceeded",
                user_id=identity_id,
                user_email=email,
                count=record.count,
                limit=self.max_requests_per_day
            )
            self._record("rejected")
            return self._decision(False, record, GateFailure.QUOTA_EXCEEDED)

        record = UsageRecord(count=record.count + 1, window_start=record.window_start)
        self.store.put(identity_id, record)

        self.logger.info(
            "Quota consumed",
            user_id=identity_id,
            user_email=email,
            count=record.count,
            limit=self.max_requests_per_day
        )
        self._record("admitted")
        return self._decision(True, record)

    def usage(self, identity_id: str, now: Optional[float] = None) -> QuotaDecision:
        """Report current usage without charging or resetting anything."""
        now = self.clock() if now is None else now
        record = self._current_record(identity_id, now)
        return self._decision(record.count < self.max_requests_per_day, record)

    def _record(self, decision: str):
        if self.metrics:
            self.metrics.increment_counter("quota_decisions_total", decision=decision)
