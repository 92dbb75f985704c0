import threading
import time
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after: int  # seconds, 0 when allowed


class InMemoryRateLimiter:
    """
    Fixed-window request counter keyed by client.
    Process-local; one instance per app.
    """

    def __init__(self, clock=time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._state: dict[str, tuple[int, float]] = {}
        self._last_sweep = clock()

    def _sweep(self, now: float, window_seconds: float) -> None:
        # Caller holds the lock. At most one pass per window.
        if now - self._last_sweep < window_seconds:
            return
        expired = [k for k, (_, start) in self._state.items() if now - start >= window_seconds]
        for key in expired:
            del self._state[key]
        self._last_sweep = now

    def allow(self, key: str, limit: int, window_seconds: float) -> RateLimitDecision:
        now = self._clock()
        with self._lock:
            self._sweep(now, window_seconds)
            count, window_start = self._state.get(key, (0, now))
            if now - window_start >= window_seconds:
                count = 0
                window_start = now
            if count >= limit:
                retry_after = max(1, int(window_seconds - (now - window_start) + 0.999))
                return RateLimitDecision(False, limit, 0, retry_after)
            count += 1
            self._state[key] = (count, window_start)
            return RateLimitDecision(True, limit, limit - count, 0)

    def reset(self) -> None:
        with self._lock:
            self._state.clear()
