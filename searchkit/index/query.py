"""
Query parameters for search and browse requests.
"""

from typing import Any, Dict, Iterator, Optional, Tuple

from .. import utils


class Query:
    """Ordered holder of query parameters.

    Parameters keep insertion order; ``build()`` turns them into the URL-encoded
    string the API expects inside the ``params`` body field.

    Example:
        >>> query = Query(query="alien", hitsPerPage=20)
        >>> query["attributesToRetrieve"] = ["title", "year"]
        >>> query.build()
        'query=alien&hitsPerPage=20&attributesToRetrieve=%5B%22title%22%2C%22year%22%5D'
    """

    __slots__ = ("_params",)

    def __init__(self, query: Optional[str] = None, **params: Any) -> None:
        self._params: Dict[str, Any] = {}
        if query is not None:
            self._params["query"] = query
        for key, value in params.items():
            self[key] = value

    def __getitem__(self, key: str) -> Any:
        return self._params[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if not key:
            raise ValueError("Query parameter name must not be empty")
        if value is None:
            self._params.pop(key, None)
        else:
            self._params[key] = value

    def __delitem__(self, key: str) -> None:
        del self._params[key]

    def __contains__(self, key: object) -> bool:
        return key in self._params

    def __iter__(self) -> Iterator[Tuple[str, Any]]:
        return iter(self._params.items())

    def __len__(self) -> int:
        return len(self._params)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Query):
            return NotImplemented
        return self._params == other._params

    def __repr__(self) -> str:
        return f"Query({self._params!r})"

    def get(self, key: str, default: Any = None) -> Any:
        return self._params.get(key, default)

    def copy(self) -> "Query":
        ret = Query()
        ret._params = dict(self._params)
        return ret

    def toDict(self) -> Dict[str, Any]:
        return dict(self._params)

    @staticmethod
    def _encodeValue(value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (list, tuple, dict)):
            return utils.jsonDumps(value, sort_keys=False)
        return str(value)

    def build(self) -> str:
        """Encode parameters as ``key=value`` pairs joined with ``&``.

        Lists and dicts are JSON encoded, booleans lowercased and every key and
        value percent-encoded.
        """
        return "&".join(
            f"{utils.urlEncode(key)}={utils.urlEncode(self._encodeValue(value))}"
            for key, value in self._params.items()
        )
