"""
Built-in key generator implementations for searchkit.cache, dood!

Available Generators:
    - StringKeyGenerator: Pass-through for string keys
    - RequestKeyGenerator: Canonical encoding of an HTTP (path, body) pair, used
      by the search cache
"""

from typing import Any, Mapping, Optional, Tuple

import searchkit.utils as utils

from .types import KeyGenerator


class StringKeyGenerator(KeyGenerator[str]):
    """
    Pass-through key generator for string keys, dood!

    Raises TypeError for non-string input.
    """

    def generateKey(self, obj: str) -> str:
        if not isinstance(obj, str):
            raise TypeError(f"StringKeyGenerator expects string input, got {type(obj).__name__}, dood!")

        return obj


class RequestKeyGenerator(KeyGenerator[Tuple[str, Optional[Mapping[str, Any]]]]):
    """
    Cache key for an HTTP request identified by its path and JSON body, dood!

    The key has the form ``"<path>_body_<compact sorted JSON>"``. Two requests
    share a key iff they hit the same path with an equal body, which is what
    the search cache needs: the host a request was sent to never matters.

    Example:
        >>> RequestKeyGenerator().generateKey(("1/indexes/movies/query", {"params": "query=a"}))
        '1/indexes/movies/query_body_{"params":"query=a"}'
    """

    def generateKey(self, obj: Tuple[str, Optional[Mapping[str, Any]]]) -> str:
        path, body = obj
        if not isinstance(path, str) or not path:
            raise TypeError("RequestKeyGenerator expects a non-empty path")

        return f"{path}_body_{utils.jsonDumps(body)}"
