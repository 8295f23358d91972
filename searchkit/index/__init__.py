"""
Index level API of searchkit, dood!

Components:
    SearchClient: Holds credentials, transport and host lists, hands out indexes
    Index: Record, search, browse, settings and key operations on one index
    BrowseIterator: Chains browse pages until exhaustion, error or cancellation
    Query: Search and browse parameters
"""

from .browse_iterator import BrowseHandler, BrowseIterator, BrowseState
from .client import SearchClient
from .index import Index
from .query import Query

__all__ = [
    "SearchClient",
    "Index",
    "BrowseIterator",
    "BrowseHandler",
    "BrowseState",
    "Query",
]
