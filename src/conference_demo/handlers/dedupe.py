"""Bounded record of processed webhook event ids.

Telnyx may redeliver the same event several times. Ids are remembered for
`ttl` seconds (the redelivery window) and at most `max_size` ids are kept,
oldest evicted first. A non-positive `ttl` keeps ids until size eviction.
"""

import time
from collections import OrderedDict
from typing import Callable, Optional


class SeenEvents:
    def __init__(self, ttl: float = 24 * 60 * 60, max_size: int = 10_000, clock: Optional[Callable[[], float]] = None):
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self._ttl = ttl
        self._max_size = max_size
        self._clock = clock or time.monotonic
        self._seen: "OrderedDict[str, float]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._seen)

    def __contains__(self, event_id: str) -> bool:
        self._expire()
        return event_id in self._seen

    def add(self, event_id: str) -> bool:
        """Record `event_id`. Returns False if it was already recorded."""
        self._expire()
        if event_id in self._seen:
            return False
        self._seen[event_id] = self._clock()
        while len(self._seen) > self._max_size:
            self._seen.popitem(last=False)
        return True

    def _expire(self) -> None:
        if self._ttl <= 0:
            return
        cutoff = self._clock() - self._ttl
        # Insertion order is arrival order, so expired ids sit at the front
        while self._seen:
            oldest_id, seen_at = next(iter(self._seen.items()))
            if seen_at > cutoff:
                break
            del self._seen[oldest_id]
