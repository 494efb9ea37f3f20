"""
Time-bounded cache of rate lookups.

Rates change rarely but are read on every calculation. Entries expire after
a configurable TTL so an edited rate is picked up without a restart, and can
be invalidated explicitly when the caller knows a rate changed.
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional, Tuple

from flight_billing.models.rates import RateQuote, RateSubject

logger = logging.getLogger(__name__)

CacheKey = Tuple[RateSubject, str, str]

_MISSING = object()


class RateCache:
    """
    In-memory TTL + LRU cache of rate quotes.

    Features:
    - Keyed by (subject kind, subject id, flight type id)
    - Entries expire ``ttl_seconds`` after they were stored
    - LRU eviction when the size limit is exceeded
    - "Not configured" lookups (None) are cached as well
    - Thread-safe operations with lock protection
    - Hit/miss statistics

    A TTL of 0 disables caching; every lookup goes to the loader.

    Example:
        >>> cache = RateCache(ttl_seconds=60, max_size=256)
        >>> quote = cache.get_or_load(
        ...     RateSubject.AIRCRAFT, "ac-1", "ft-dual",
        ...     lambda: source.get_aircraft_rate("ac-1", "ft-dual"),
        ... )
    """

    def __init__(
        self,
        ttl_seconds: float = 60.0,
        max_size: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            ttl_seconds: Lifetime of an entry, 0 disables caching
            max_size: Maximum number of entries before LRU eviction
            clock: Monotonic time source (injectable for tests)
        """
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock

        # key -> (stored_at, quote)
        self._entries: "OrderedDict[CacheKey, Tuple[float, Optional[RateQuote]]]" = (
            OrderedDict()
        )
        self._lock = threading.Lock()
        self._stats = {
            "hits": 0,
            "misses": 0,
            "expirations": 0,
            "evictions": 0,
            "invalidations": 0,
        }

    @classmethod
    def from_config(cls, config: Any) -> "RateCache":
        return cls(
            ttl_seconds=config.rate_cache_ttl_seconds,
            max_size=config.rate_cache_max_size,
        )

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    def get(self, subject: RateSubject, subject_id: str, flight_type_id: str):
        """Return the cached quote (possibly None) or ``_MISSING``."""
        key = (subject, subject_id, flight_type_id)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats["misses"] += 1
                return _MISSING

            stored_at, quote = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[key]
                self._stats["expirations"] += 1
                self._stats["misses"] += 1
                return _MISSING

            self._entries.move_to_end(key)
            self._stats["hits"] += 1
            return quote

    def put(
        self,
        subject: RateSubject,
        subject_id: str,
        flight_type_id: str,
        quote: Optional[RateQuote],
    ) -> None:
        if not self.enabled:
            return
        key = (subject, subject_id, flight_type_id)
        with self._lock:
            self._entries[key] = (self._clock(), quote)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                self._stats["evictions"] += 1
                logger.debug(f"Evicted rate cache entry {evicted}")

    def get_or_load(
        self,
        subject: RateSubject,
        subject_id: str,
        flight_type_id: str,
        loader: Callable[[], Optional[RateQuote]],
    ) -> Optional[RateQuote]:
        """
        Return a cached quote or load, store and return a fresh one.

        Exceptions raised by the loader propagate and nothing is cached.
        """
        if not self.enabled:
            return loader()

        cached = self.get(subject, subject_id, flight_type_id)
        if cached is not _MISSING:
            logger.debug(
                f"Rate cache hit for {subject.value} {subject_id}/{flight_type_id}"
            )
            return cached

        quote = loader()
        self.put(subject, subject_id, flight_type_id, quote)
        return quote

    def invalidate(
        self,
        subject: Optional[RateSubject] = None,
        subject_id: Optional[str] = None,
        flight_type_id: Optional[str] = None,
    ) -> int:
        """
        Drop entries matching every given criterion.

        Called with no arguments, clears the whole cache.

        Returns:
            Number of entries removed
        """
        with self._lock:
            doomed = [
                key
                for key in self._entries
                if (subject is None or key[0] is subject)
                and (subject_id is None or key[1] == subject_id)
                and (flight_type_id is None or key[2] == flight_type_id)
            ]
            for key in doomed:
                del self._entries[key]
            self._stats["invalidations"] += len(doomed)

        if doomed:
            logger.info(f"Invalidated {len(doomed)} rate cache entries")
        return len(doomed)

    def clear(self) -> None:
        self.invalidate()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_statistics(self) -> Dict[str, Any]:
        with self._lock:
            stats = dict(self._stats)
            stats["size"] = len(self._entries)
            stats["max_size"] = self.max_size
            stats["ttl_seconds"] = self.ttl_seconds
            lookups = stats["hits"] + stats["misses"]
            stats["hit_rate"] = (stats["hits"] / lookups) if lookups else 0.0
            return stats
