"""
Abstract cache interface for searchkit.cache, dood!

All cache implementations (ExpiringCache, NullCache) follow this contract so
the search path can swap them without caring which one is installed.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Optional

from .types import K, V


class CacheInterface(ABC, Generic[K, V]):
    """
    Generic cache interface for any key-value storage, dood!

    Type Parameters:
        K: The key type (converted to a string by a KeyGenerator)
        V: The value type

    Example:
        >>> cache = ExpiringCache[str, dict](keyGenerator=StringKeyGenerator(), ttl=120)
        >>> await cache.set("user:123", {"name": "Prinny"})
        >>> userData = await cache.get("user:123")
    """

    @abstractmethod
    async def get(self, key: K, ttl: Optional[float] = None) -> Optional[V]:
        """
        Get cached value by key.

        Args:
            key: The cache key to retrieve
            ttl: Optional TTL override in seconds for this lookup only

        Returns:
            Optional[V]: The cached value if found and not expired, None otherwise
        """
        pass

    @abstractmethod
    async def set(self, key: K, value: V) -> bool:
        """
        Store value in cache, stamping the current time.

        Args:
            key: The cache key to store the value under
            value: The value to cache

        Returns:
            bool: True if the value was stored
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """
        Clear all cached data immediately, dood!
        """
        pass

    @abstractmethod
    def getStats(self) -> Dict[str, Any]:
        """
        Get implementation-specific cache statistics.
        """
        pass
