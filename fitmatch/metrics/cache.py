"""
Caller-supplied memoization of fitness metrics.

Metrics are cheap to recompute but are read once per candidate during
ranking. The engine itself keeps no static state; a caller that wants to
reuse metrics across calls creates a MetricsCache with an explicit TTL and
passes it in.
"""

import logging
import threading
import time
from typing import Callable, Dict, Hashable, Optional, Tuple

from ..schema import FitnessMetrics

logger = logging.getLogger(__name__)


class MetricsCache:
    """
    Keyed TTL cache of FitnessMetrics.

    Attributes:
        ttl_seconds: Lifetime of an entry
        clock: Monotonic time source (injectable for tests)
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic
    ):
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: Dict[Hashable, Tuple[float, FitnessMetrics]] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable) -> Optional[FitnessMetrics]:
        """Return a live entry, or None if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, metrics = entry
            if self.clock() >= expires_at:
                del self._entries[key]
                return None
            return metrics

    def set(self, key: Hashable, metrics: FitnessMetrics) -> None:
        with self._lock:
            self._entries[key] = (self.clock() + self.ttl_seconds, metrics)

    def get_or_compute(
        self,
        key: Hashable,
        compute: Callable[[], FitnessMetrics]
    ) -> FitnessMetrics:
        """
        Return the cached metrics for key, computing and storing them on a miss.

        compute runs outside the lock; two concurrent misses may both compute,
        and the later write wins.
        """
        cached = self.get(key)
        if cached is not None:
            self.hits += 1
            return cached

        self.misses += 1
        metrics = compute()
        self.set(key, metrics)
        logger.debug(f"Metrics cache miss for {key!r}")
        return metrics

    def invalidate(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def invalidate_where(self, predicate: Callable[[Hashable], bool]) -> int:
        """Drop every entry whose key satisfies predicate; returns the count."""
        with self._lock:
            stale = [k for k in self._entries if predicate(k)]
            for k in stale:
                del self._entries[k]
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
