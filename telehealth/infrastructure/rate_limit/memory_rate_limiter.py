import math
import time
from typing import Callable, Dict, List

from ...application.ports.rate_limiter import RateLimiter


class InMemoryRateLimiter(RateLimiter):
    """Sliding-window counter per key, kept in process memory.

    Counts are per worker process; a multi-worker deployment gets one window
    per worker.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._hits: Dict[str, List[float]] = {}

    def _prune(self, key: str, window_seconds: int) -> List[float]:
        window_start = self._clock() - window_seconds
        hits = [t for t in self._hits.get(key, []) if t > window_start]
        if hits:
            self._hits[key] = hits
        else:
            self._hits.pop(key, None)
        return hits

    def allow(self, key: str, max_requests: int, window_seconds: int) -> bool:
        hits = self._prune(key, window_seconds)
        if len(hits) >= max_requests:
            return False
        self._hits[key] = hits + [self._clock()]
        return True

    def retry_after(self, key: str, window_seconds: int) -> int:
        hits = self._prune(key, window_seconds)
        if not hits:
            return 0
        return max(1, math.ceil(hits[0] + window_seconds - self._clock()))
