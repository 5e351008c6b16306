"""
Paces outgoing Bot API calls so reply bursts do not trigger 429 "Too Many Requests".
"""

import asyncio
import logging
import time

log = logging.getLogger(__name__)

RECOVERY_DELAY = 60.0
RECOVERY_FACTOR = 1.05


class AdaptiveRateLimiter:
    """
    Spaces calls at a minimum interval, and honours the server's `retry_after`
    hint by pausing every caller until it has passed.

    After a 429 the rate is halved; once a minute has passed without another
    one it creeps back up towards `max_calls_per_second`.
    """

    def __init__(
        self, initial_calls_per_second: float = 20.0, max_calls_per_second: float = 30.0
    ):
        self._ceiling = max_calls_per_second
        self._set_rate(initial_calls_per_second)
        self._next_slot = 0.0
        self._paused_until = 0.0
        self._throttled_at: float | None = None
        self._lock = asyncio.Lock()

    @property
    def rate(self) -> float:
        return self._rate

    def _set_rate(self, calls_per_second: float) -> None:
        self._rate = calls_per_second
        self._interval = 1.0 / calls_per_second

    async def on_429(self, retry_after: float = 1.0) -> None:
        """Halves the call rate and blocks all callers for `retry_after` seconds."""
        async with self._lock:
            self._throttled_at = time.monotonic()
            self._set_rate(max(1.0, self._rate / 2))
            self._paused_until = max(self._paused_until, self._throttled_at + retry_after)
        log.warning(
            f"[yellow]Telegram is throttling replies: pausing {retry_after:.0f}s, "
            f"now at {self._rate:.1f} calls/s[/yellow]"
        )

    async def acquire(self) -> None:
        """Blocks until the caller may send its request."""
        async with self._lock:
            now = time.monotonic()
            if self._throttled_at is not None and now - self._throttled_at > RECOVERY_DELAY:
                self._set_rate(min(self._ceiling, self._rate * RECOVERY_FACTOR))

            start_at = max(now, self._next_slot, self._paused_until)
            if start_at > now:
                await asyncio.sleep(start_at - now)
            self._next_slot = time.monotonic() + self._interval
