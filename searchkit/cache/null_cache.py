"""
Null cache implementation for searchkit.cache, dood!

Installed on an index while its search cache is disabled, so the search path
never has to branch on "is there a cache".
"""

from typing import Any, Dict, Optional

from .interface import CacheInterface
from .types import K, V


class NullCache(CacheInterface[K, V]):
    """No-op cache that never stores anything, dood!"""

    async def get(self, key: K, ttl: Optional[float] = None) -> Optional[V]:
        """Always a miss."""
        return None

    async def set(self, key: K, value: V) -> bool:
        """Do nothing, but pretend to succeed."""
        return True

    def clear(self) -> None:
        pass

    def getStats(self) -> Dict[str, Any]:
        return {"enabled": False}
