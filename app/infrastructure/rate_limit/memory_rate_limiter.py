import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict

from ...application.ports.rate_limiter import RateLimiter


class InMemoryRateLimiter(RateLimiter):
    """Sliding-window limiter kept in process memory, one deque of hit times per key.

    Keys with no hit inside the window are dropped by a sweep that runs at
    most once per window, so idle clients do not accumulate.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._clock = clock
        self._last_sweep = clock()

    def allow(self, key: str, max_requests: int, window_seconds: int) -> bool:
        now = self._clock()
        if now - self._last_sweep >= window_seconds:
            self._sweep(now - window_seconds)
            self._last_sweep = now
        hits = self._hits[key]
        while hits and hits[0] <= now - window_seconds:
            hits.popleft()
        if len(hits) >= max_requests:
            return False
        hits.append(now)
        return True

    def _sweep(self, cutoff: float) -> None:
        stale = [k for k, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for k in stale:
            del self._hits[k]
