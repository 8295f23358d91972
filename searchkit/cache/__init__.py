"""
searchkit.cache - caching building blocks for the search path, dood!

Core Components:
- CacheInterface: Abstract base class for all cache implementations
- KeyGenerator: Protocol for generating cache keys from objects
- ExpiringCache: Thread-safe in-memory cache with TTL expiry
- NullCache: No-op cache used while caching is disabled

Example Usage:
    >>> from searchkit.cache import ExpiringCache, StringKeyGenerator
    >>>
    >>> cache = ExpiringCache[str, dict](keyGenerator=StringKeyGenerator(), ttl=120)
    >>> await cache.set("user:123", {"name": "Prinny", "level": 99})
    >>> userData = await cache.get("user:123")
"""

from .expiring_cache import DEFAULT_TTL, ExpiringCache
from .interface import CacheInterface
from .key_generator import RequestKeyGenerator, StringKeyGenerator
from .null_cache import NullCache
from .types import K, KeyGenerator, T, V

__all__ = [
    # Core types
    "KeyGenerator",
    "K",
    "V",
    "T",
    # Interfaces
    "CacheInterface",
    # Implementations
    "ExpiringCache",
    "NullCache",
    "DEFAULT_TTL",
    # Key generators
    "StringKeyGenerator",
    "RequestKeyGenerator",
]
