"""
In-memory cache with per-entry expiry, dood!

Entries are stored as ``(value, insertionTime)`` tuples. Expiry is checked
synchronously on every lookup: an entry whose age reached the TTL is treated
as a miss and evicted on the spot. Expired entries that are never looked up
again are swept during ``set`` and ``getStats``.

Example:
    cache = ExpiringCache(keyGenerator=RequestKeyGenerator(), ttl=120)
    await cache.set(("1/indexes/movies/query", body), content)
    hit = await cache.get(("1/indexes/movies/query", body))
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from .interface import CacheInterface
from .types import K, KeyGenerator, V

logger = logging.getLogger(__name__)

DEFAULT_TTL: float = 120


class ExpiringCache(CacheInterface[K, V]):
    """Thread-safe dictionary cache whose entries expire after a TTL.

    Thread Safety:
        Every public method takes ``threading.RLock``; concurrent ``set`` calls
        for one key leave exactly one fully formed entry behind.

    Time Source:
        Ages are measured with ``time.monotonic`` by default, so they are never
        negative even if the wall clock is adjusted. Tests inject their own
        ``timeFunc``.
    """

    __slots__ = ("_keyGenerator", "_ttl", "_maxSize", "_timeFunc", "_entries", "_lock")

    def __init__(
        self,
        keyGenerator: KeyGenerator[K],
        ttl: float = DEFAULT_TTL,
        maxSize: Optional[int] = None,
        timeFunc: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            keyGenerator: Converts keys to their string form
            ttl: Time to live in seconds, must be positive (default: 120)
            maxSize: Optional maximum number of entries; oldest are evicted first
            timeFunc: Clock returning seconds as float

        Raises:
            ValueError: If ttl or maxSize is not positive
        """
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        if maxSize is not None and maxSize <= 0:
            raise ValueError(f"maxSize must be positive, got {maxSize}")

        self._keyGenerator = keyGenerator
        self._ttl = ttl
        self._maxSize = maxSize
        self._timeFunc = timeFunc
        self._entries: Dict[str, Tuple[V, float]] = {}
        self._lock = threading.RLock()

    @property
    def ttl(self) -> float:
        return self._ttl

    def _isExpired(self, insertionTime: float, ttl: Optional[float] = None) -> bool:
        effectiveTtl = ttl if ttl is not None else self._ttl
        age = max(0.0, self._timeFunc() - insertionTime)
        return age >= effectiveTtl

    def _cleanupExpired(self) -> None:
        """Drop every expired entry. Caller must hold the lock."""
        expiredKeys = [key for key, (_, insertedAt) in self._entries.items() if self._isExpired(insertedAt)]
        for key in expiredKeys:
            del self._entries[key]

        if expiredKeys:
            logger.debug(f"Cleaned up {len(expiredKeys)} expired entries")

    def _enforceSizeLimit(self) -> None:
        """Evict the oldest entries above maxSize. Caller must hold the lock."""
        if self._maxSize is None or len(self._entries) <= self._maxSize:
            return

        excessCount = len(self._entries) - self._maxSize
        # Sort by insertion time, then key, so eviction order is deterministic
        oldest = sorted(self._entries.items(), key=lambda item: (item[1][1], item[0]))[:excessCount]
        for key, _ in oldest:
            del self._entries[key]

        logger.debug(f"Removed {excessCount} oldest entries to enforce size limit")

    async def get(self, key: K, ttl: Optional[float] = None) -> Optional[V]:
        keyStr = self._keyGenerator.generateKey(key)
        with self._lock:
            entry = self._entries.get(keyStr)
            if entry is None:
                logger.debug(f"Cache miss for key: {keyStr}")
                return None

            value, insertedAt = entry
            if self._isExpired(insertedAt, ttl):
                del self._entries[keyStr]
                logger.debug(f"Removed expired entry: {keyStr}")
                return None

            logger.debug(f"Cache hit for key: {keyStr}")
            return value

    async def set(self, key: K, value: V) -> bool:
        keyStr = self._keyGenerator.generateKey(key)
        with self._lock:
            self._cleanupExpired()
            self._entries[keyStr] = (value, self._timeFunc())
            self._enforceSizeLimit()
            logger.debug(f"Stored entry for key: {keyStr}")
            return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            logger.debug("Cleared all cache data, dood!")

    def getStats(self) -> Dict[str, Any]:
        with self._lock:
            self._cleanupExpired()
            return {
                "enabled": True,
                "entries": len(self._entries),
                "maxSize": self._maxSize,
                "ttl": self._ttl,
                "threadSafe": True,
            }
