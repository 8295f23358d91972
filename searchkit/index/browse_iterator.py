"""
Iterator chaining browse requests over a whole index.

The iterator calls the handler once per page until:
- the end of the index is reached (no ``cursor`` in the response);
- an error is encountered (failed pages are never retried);
- or the iteration is cancelled.

Page N+1 is requested only while page N is being delivered, so there is never
more than one request outstanding per iterator.
"""

import logging
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Callable, Optional

from ..dispatch import CancellableCall, JSONObject
from .query import Query

if TYPE_CHECKING:
    from .index import Index

logger = logging.getLogger(__name__)

BrowseHandler = Callable[["BrowseIterator", Optional[JSONObject], Optional[BaseException]], Any]


class BrowseState(StrEnum):
    NOT_STARTED = "not-started"
    RUNNING = "running"
    EXHAUSTED = "exhausted"
    ERRORED = "errored"
    CANCELLED = "cancelled"


class BrowseIterator:
    """Browse all content of an index, page by page.

    The iteration does not start automatically, call ``start()``. The handler
    receives the iterator itself (so it may ``cancel()`` from inside), the page
    content or the error.

    Example:
        >>> def onPage(iterator, content, error):
        ...     if error is None:
        ...         records.extend(content["hits"])
        >>> iterator = BrowseIterator(index, Query(hitsPerPage=1000), onPage)
        >>> iterator.start()
    """

    __slots__ = ("index", "query", "_handler", "_cursor", "_started", "_cancelled", "_received", "_request", "_state")

    def __init__(self, index: "Index", query: Query, handler: BrowseHandler) -> None:
        self.index = index
        self.query = query
        self._handler = handler
        self._cursor: Optional[str] = None
        self._started = False
        self._cancelled = False
        self._received = False
        self._request: Optional[CancellableCall] = None
        self._state = BrowseState.NOT_STARTED

    def __repr__(self) -> str:
        return f"<BrowseIterator {self.index!r} {self._state}>"

    @property
    def state(self) -> BrowseState:
        return self._state

    @property
    def cursor(self) -> Optional[str]:
        return self._cursor

    @property
    def started(self) -> bool:
        return self._started

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self) -> None:
        """Issue the first browse request.

        Raises:
            RuntimeError: If the iteration was already started
        """
        if self._started:
            raise RuntimeError("BrowseIterator can only be started once")
        self._started = True
        self._state = BrowseState.RUNNING
        logger.debug(f"Starting browse of {self.index!r}")
        self._request = self.index.browse(self.query, self._handleResult)

    def cancel(self) -> None:
        """Cancel the ongoing request and stop the iteration.

        The handler is not called again once this returns, even if a response
        for the pending request is already on its way.

        Raises:
            RuntimeError: If the iteration was never started
        """
        if not self._started:
            raise RuntimeError("Cannot cancel a BrowseIterator that was not started")
        if self._cancelled:
            return

        self._cancelled = True
        if self._request is not None:
            self._request.cancel()
            self._request = None
        if self._state == BrowseState.RUNNING:
            self._state = BrowseState.CANCELLED
        logger.debug(f"Browse of {self.index!r} cancelled")

    def hasNext(self) -> bool:
        """Whether there is more content to browse.

        Raises:
            RuntimeError: If no page was processed yet
        """
        if not self._received:
            raise RuntimeError("hasNext() is only meaningful once the first page has been received")
        return self._cursor is not None

    def _next(self) -> None:
        assert self._cursor is not None
        self._request = self.index.browseFrom(self._cursor, self._handleResult)

    def _invokeHandler(self, content: Optional[JSONObject], error: Optional[BaseException]) -> None:
        try:
            self._handler(self, content, error)
        except Exception:
            self._cursor = None
            self._state = BrowseState.ERRORED
            raise

    def _handleResult(self, content: Optional[JSONObject], error: Optional[BaseException]) -> None:
        if self._cancelled or self._state != BrowseState.RUNNING:
            logger.debug(f"Ignoring late browse page for {self.index!r}")
            return

        self._request = None
        self._received = True

        if error is not None:
            self._cursor = None
            self._state = BrowseState.ERRORED
            logger.warning(f"Browse of {self.index!r} failed: {error}")
            self._invokeHandler(None, error)
            return

        cursor = content.get("cursor") if content is not None else None
        self._cursor = cursor if isinstance(cursor, str) and cursor else None

        self._invokeHandler(content, None)

        if self._cancelled:
            return
        if self._cursor is not None:
            self._next()
        else:
            self._state = BrowseState.EXHAUSTED
            logger.debug(f"Browse of {self.index!r} exhausted")
