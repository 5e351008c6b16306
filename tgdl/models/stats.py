"""
Process-wide download statistics shared by every in-flight transfer.
"""

import threading
import time
from dataclasses import dataclass, field

from tgdl.utils.formatting import format_duration


@dataclass(frozen=True)
class StatsSnapshot:
    """A point-in-time copy of the counters, as reported by `/stats`."""

    uptime: float
    succeeded: int
    failed: int
    pending: int

    @property
    def total(self) -> int:
        return self.succeeded + self.failed

    def format_stats(self) -> str:
        return (
            f"Stats:\nUptime: {format_duration(self.uptime)}\n"
            f"Downloads : {self.succeeded}/{self.total} (pending: {self.pending})"
        )


@dataclass
class StatsTracker:
    """
    Tracks completed, failed and in-flight downloads plus uptime.

    Every mutator is a single critical section with no suspension point, so
    concurrent tasks (or threads) can never lose an update. `snapshot()` reads
    all counters under the same lock.
    """

    start_time: float = field(default_factory=time.monotonic)
    _succeeded: int = field(default=0, repr=False)
    _failed: int = field(default=0, repr=False)
    _pending: int = field(default=0, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def succeeded(self) -> int:
        with self._lock:
            return self._succeeded

    @property
    def failed(self) -> int:
        with self._lock:
            return self._failed

    @property
    def pending(self) -> int:
        with self._lock:
            return self._pending

    def increment_pending(self) -> int:
        with self._lock:
            self._pending += 1
            return self._pending

    def decrement_pending(self) -> int:
        """Releases one pending slot and returns the remaining count."""
        with self._lock:
            if self._pending == 0:
                raise RuntimeError("pending counter would drop below zero")
            self._pending -= 1
            return self._pending

    def increment_succeeded(self) -> int:
        with self._lock:
            self._succeeded += 1
            return self._succeeded

    def increment_failed(self) -> int:
        with self._lock:
            self._failed += 1
            return self._failed

    def uptime(self) -> float:
        return time.monotonic() - self.start_time

    def snapshot(self) -> StatsSnapshot:
        with self._lock:
            return StatsSnapshot(
                uptime=self.uptime(),
                succeeded=self._succeeded,
                failed=self._failed,
                pending=self._pending,
            )
