"""
Core type definitions and protocols for searchkit.cache, dood!
"""

from typing import Protocol, TypeVar

# Type variables for generic cache operations
K = TypeVar("K")  # Key type
V = TypeVar("V")  # Value type
T = TypeVar("T", contravariant=True)  # Object type accepted by key generators


class KeyGenerator(Protocol[T]):
    """
    Protocol for generating cache keys from objects, dood!

    Type Parameters:
        T: The type of objects that can be converted to cache keys

    Example:
        >>> class StringKeyGenerator(KeyGenerator[str]):
        ...     def generateKey(self, obj: str) -> str:
        ...         return obj
    """

    def generateKey(self, obj: T) -> str:
        """
        Generate string cache key from object.

        Args:
            obj: The object to convert to a cache key

        Returns:
            str: A deterministic string representation of obj
        """
        ...
