"""
Index facade: high-level operations on one index of the search cluster.

Every operation returns a ``CancellableCall``: pass ``onComplete`` to get a
callback, or simply ``await`` the call.

Reads (search, browse, get) go to the read hosts, writes to the write hosts.
Search results may be memoized by an ``ExpiringCache`` keyed on the request
path and body, see ``enableSearchCache()``.
"""

import asyncio
import copy
import logging
import time
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .. import utils
from ..cache import DEFAULT_TTL, CacheInterface, ExpiringCache, NullCache, RequestKeyGenerator
from ..dispatch import (
    CancellableCall,
    CompletionHandler,
    DispatchAttempt,
    HttpMethod,
    JSONObject,
    Operation,
    TaskTimeoutError,
    TrafficClass,
)
from .browse_iterator import BrowseHandler, BrowseIterator
from .query import Query

if TYPE_CHECKING:
    from .client import SearchClient

logger = logging.getLogger(__name__)

TASK_STATUS_PUBLISHED = "published"
WAIT_TASK_TIMEOUT = 60.0
WAIT_TASK_INITIAL_DELAY = 0.1
WAIT_TASK_MAX_DELAY = 5.0

SearchCacheKey = Tuple[str, Optional[Mapping[str, Any]]]


class Index:
    """Operations on a single index.

    Obtain instances with ``SearchClient.getIndex(name)``.
    """

    __slots__ = ("client", "indexName", "urlEncodedIndexName", "searchCache")

    def __init__(self, client: "SearchClient", indexName: str) -> None:
        if not indexName:
            raise ValueError("indexName must not be empty")
        self.client = client
        self.indexName = indexName
        self.urlEncodedIndexName = utils.urlEncode(indexName)
        self.searchCache: CacheInterface[SearchCacheKey, JSONObject] = NullCache()

    def __repr__(self) -> str:
        return f"Index({self.indexName!r})"

    @property
    def basePath(self) -> str:
        return f"1/indexes/{self.urlEncodedIndexName}"

    def _objectPath(self, objectId: str) -> str:
        if not objectId:
            raise ValueError("objectID must not be empty")
        return f"{self.basePath}/{utils.urlEncode(objectId)}"

    def _perform(
        self,
        method: HttpMethod,
        path: str,
        body: Optional[JSONObject] = None,
        trafficClass: TrafficClass = TrafficClass.READ,
        onComplete: Optional[CompletionHandler] = None,
    ) -> CancellableCall:
        return self.client.dispatcher.dispatch(Operation(method, path, body, trafficClass), onComplete)

    def _read(
        self, method: HttpMethod, path: str, body: Optional[JSONObject] = None, onComplete: Optional[CompletionHandler] = None
    ) -> CancellableCall:
        return self._perform(method, path, body, TrafficClass.READ, onComplete)

    def _write(
        self, method: HttpMethod, path: str, body: Optional[JSONObject] = None, onComplete: Optional[CompletionHandler] = None
    ) -> CancellableCall:
        return self._perform(method, path, body, TrafficClass.WRITE, onComplete)

    @staticmethod
    def _requireObjectId(obj: Mapping[str, Any]) -> str:
        objectId = obj.get("objectID")
        if not isinstance(objectId, str) or not objectId:
            raise ValueError(f"Object must contain a non-empty string objectID: {obj!r}")
        return objectId

    def _batch(self, requests: List[JSONObject], onComplete: Optional[CompletionHandler]) -> CancellableCall:
        return self._write(HttpMethod.POST, f"{self.basePath}/batch", {"requests": requests}, onComplete)

    ###
    # Objects
    ###

    def addObject(self, obj: JSONObject, onComplete: Optional[CompletionHandler] = None) -> CancellableCall:
        """Add an object, the server assigns its objectID."""
        return self._write(HttpMethod.POST, self.basePath, obj, onComplete)

    def addObjectWithId(
        self, obj: JSONObject, objectId: str, onComplete: Optional[CompletionHandler] = None
    ) -> CancellableCall:
        """Add an object under the given objectID, replacing any existing one."""
        return self._write(HttpMethod.PUT, self._objectPath(objectId), obj, onComplete)

    def addObjects(self, objects: Iterable[JSONObject], onComplete: Optional[CompletionHandler] = None) -> CancellableCall:
        return self._batch([{"action": "addObject", "body": obj} for obj in objects], onComplete)

    def saveObject(self, obj: JSONObject, onComplete: Optional[CompletionHandler] = None) -> CancellableCall:
        """Override an object, it must carry its ``objectID``."""
        return self._write(HttpMethod.PUT, self._objectPath(self._requireObjectId(obj)), obj, onComplete)

    def saveObjects(self, objects: Iterable[JSONObject], onComplete: Optional[CompletionHandler] = None) -> CancellableCall:
        requests = [{"action": "updateObject", "objectID": self._requireObjectId(obj), "body": obj} for obj in objects]
        return self._batch(requests, onComplete)

    def partialUpdateObject(
        self, partialObject: JSONObject, objectId: str, onComplete: Optional[CompletionHandler] = None
    ) -> CancellableCall:
        """Update only the attributes present in ``partialObject``."""
        return self._write(HttpMethod.POST, f"{self._objectPath(objectId)}/partial", partialObject, onComplete)

    def partialUpdateObjects(
        self, objects: Iterable[JSONObject], onComplete: Optional[CompletionHandler] = None
    ) -> CancellableCall:
        requests = [
            {"action": "partialUpdateObject", "objectID": self._requireObjectId(obj), "body": obj} for obj in objects
        ]
        return self._batch(requests, onComplete)

    def getObject(
        self,
        objectId: str,
        attributesToRetrieve: Optional[List[str]] = None,
        onComplete: Optional[CompletionHandler] = None,
    ) -> CancellableCall:
        """Fetch one object, optionally restricted to some attributes."""
        path = self._objectPath(objectId)
        if attributesToRetrieve is not None:
            path = f"{path}?{Query(attributesToRetrieve=attributesToRetrieve).build()}"
        return self._read(HttpMethod.GET, path, None, onComplete)

    def getObjects(self, objectIds: Iterable[str], onComplete: Optional[CompletionHandler] = None) -> CancellableCall:
        requests = [{"indexName": self.indexName, "objectID": objectId} for objectId in objectIds]
        return self._read(HttpMethod.POST, "1/indexes/*/objects", {"requests": requests}, onComplete)

    def deleteObject(self, objectId: str, onComplete: Optional[CompletionHandler] = None) -> CancellableCall:
        return self._write(HttpMethod.DELETE, self._objectPath(objectId), None, onComplete)

    def deleteObjects(self, objectIds: Iterable[str], onComplete: Optional[CompletionHandler] = None) -> CancellableCall:
        return self._batch([{"action": "deleteObject", "objectID": objectId} for objectId in objectIds], onComplete)

    ###
    # Search
    ###

    def search(self, query: Query, onComplete: Optional[CompletionHandler] = None) -> CancellableCall:
        """Search the index.

        With the search cache enabled, an identical request (same path, same
        body) made within the TTL is answered from memory without any network
        attempt. The answer is still delivered asynchronously through the
        returned call, exactly like a network answer.

        Args:
            query: Search parameters
            onComplete: Optional handler called with ``(content, error)``

        Returns:
            Cancellable handle, awaitable for the search response
        """
        operation = Operation(
            HttpMethod.POST,
            f"{self.basePath}/query",
            {"params": query.build()},
            TrafficClass.READ,
            timeout=self.client.searchTimeout,
        )
        attempts: List[DispatchAttempt] = []
        return CancellableCall(
            self._cachedSearch(operation, attempts),
            onComplete,
            attempts=attempts,
            description=str(operation),
        )

    async def _cachedSearch(self, operation: Operation, attempts: List[DispatchAttempt]) -> JSONObject:
        cacheKey: SearchCacheKey = (operation.path, operation.body)

        cached = await self.searchCache.get(cacheKey)
        if cached is not None:
            logger.debug(f"Search cache hit for {operation}")
            return copy.deepcopy(cached)
        logger.debug(f"Search cache miss for {operation}")

        content = await self.client.dispatcher.execute(operation, attempts)
        # Looked up again: the cache may have been disabled while the request was in flight
        await self.searchCache.set(cacheKey, copy.deepcopy(content))
        return content

    def enableSearchCache(self, ttl: float = DEFAULT_TTL, maxSize: Optional[int] = None) -> None:
        """Memoize search results for ``ttl`` seconds, dropping previous cached results."""
        self.searchCache = ExpiringCache(RequestKeyGenerator(), ttl=ttl, maxSize=maxSize)
        logger.debug(f"Search cache enabled for {self!r} (ttl: {ttl}, maxSize: {maxSize})")

    def disableSearchCache(self) -> None:
        self.searchCache.clear()
        self.searchCache = NullCache()

    def clearSearchCache(self) -> None:
        self.searchCache.clear()

    ###
    # Browse
    ###

    def browse(self, query: Query, onComplete: Optional[CompletionHandler] = None) -> CancellableCall:
        """Fetch the first page of a browse. Follow up with ``browseFrom(cursor)``."""
        return self._read(HttpMethod.POST, f"{self.basePath}/browse", {"params": query.build()}, onComplete)

    def browseFrom(self, cursor: str, onComplete: Optional[CompletionHandler] = None) -> CancellableCall:
        """Fetch the browse page identified by ``cursor``."""
        if not cursor:
            raise ValueError("cursor must not be empty")
        return self._read(HttpMethod.GET, f"{self.basePath}/browse?cursor={utils.urlEncode(cursor)}", None, onComplete)

    def browseAll(self, query: Query, handler: BrowseHandler) -> BrowseIterator:
        """Create and start an iterator over all index content."""
        iterator = BrowseIterator(self, query, handler)
        iterator.start()
        return iterator

    ###
    # Settings and maintenance
    ###

    def getSettings(self, onComplete: Optional[CompletionHandler] = None) -> CancellableCall:
        return self._read(HttpMethod.GET, f"{self.basePath}/settings", None, onComplete)

    def setSettings(self, settings: JSONObject, onComplete: Optional[CompletionHandler] = None) -> CancellableCall:
        return self._write(HttpMethod.PUT, f"{self.basePath}/settings", settings, onComplete)

    def clearIndex(self, onComplete: Optional[CompletionHandler] = None) -> CancellableCall:
        """Delete the index content, keeping settings and index specific keys."""
        return self._write(HttpMethod.POST, f"{self.basePath}/clear", None, onComplete)

    def waitTask(
        self,
        taskId: int,
        onComplete: Optional[CompletionHandler] = None,
        *,
        timeout: float = WAIT_TASK_TIMEOUT,
        initialDelay: float = WAIT_TASK_INITIAL_DELAY,
        maxDelay: float = WAIT_TASK_MAX_DELAY,
    ) -> CancellableCall:
        """Wait until a server task is published.

        Polls the task status with exponential backoff (``initialDelay``
        doubling up to ``maxDelay``) until the status is ``published`` or
        ``timeout`` seconds have elapsed, in which case ``TaskTimeoutError``
        is delivered.
        """
        if timeout <= 0 or initialDelay <= 0 or maxDelay < initialDelay:
            raise ValueError(
                f"Invalid waitTask timing: timeout={timeout}, initialDelay={initialDelay}, maxDelay={maxDelay}"
            )
        attempts: List[DispatchAttempt] = []
        return CancellableCall(
            self._pollTask(taskId, timeout, initialDelay, maxDelay, attempts),
            onComplete,
            attempts=attempts,
            description=f"waitTask {self.indexName}#{taskId}",
        )

    async def _pollTask(
        self, taskId: int, timeout: float, initialDelay: float, maxDelay: float, attempts: List[DispatchAttempt]
    ) -> JSONObject:
        operation = Operation(HttpMethod.GET, f"{self.basePath}/task/{taskId}")
        deadline = time.monotonic() + timeout
        delay = initialDelay

        while True:
            content = await self.client.dispatcher.execute(operation, attempts)
            status = content.get("status")
            if status == TASK_STATUS_PUBLISHED:
                return content

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise TaskTimeoutError(taskId, timeout)
            logger.debug(f"Task {taskId} is {status}, polling again in {min(delay, remaining)}s")
            await asyncio.sleep(min(delay, remaining))
            delay = min(delay * 2, maxDelay)

    ###
    # User keys
    ###

    def listUserKeys(self, onComplete: Optional[CompletionHandler] = None) -> CancellableCall:
        return self._read(HttpMethod.GET, f"{self.basePath}/keys", None, onComplete)

    def getUserKeyACL(self, key: str, onComplete: Optional[CompletionHandler] = None) -> CancellableCall:
        return self._read(HttpMethod.GET, f"{self.basePath}/keys/{utils.urlEncode(key)}", None, onComplete)

    def deleteUserKey(self, key: str, onComplete: Optional[CompletionHandler] = None) -> CancellableCall:
        return self._write(HttpMethod.DELETE, f"{self.basePath}/keys/{utils.urlEncode(key)}", None, onComplete)

    @staticmethod
    def _userKeyBody(
        acls: List[str],
        validity: Optional[int],
        maxQueriesPerIPPerHour: Optional[int],
        maxHitsPerQuery: Optional[int],
    ) -> JSONObject:
        body: Dict[str, Any] = {"acl": list(acls)}
        if validity is not None:
            body["validity"] = validity
        if maxQueriesPerIPPerHour is not None:
            body["maxQueriesPerIPPerHour"] = maxQueriesPerIPPerHour
        if maxHitsPerQuery is not None:
            body["maxHitsPerQuery"] = maxHitsPerQuery
        return body

    def addUserKey(
        self,
        acls: List[str],
        onComplete: Optional[CompletionHandler] = None,
        *,
        validity: Optional[int] = None,
        maxQueriesPerIPPerHour: Optional[int] = None,
        maxHitsPerQuery: Optional[int] = None,
    ) -> CancellableCall:
        """Create a key for this index.

        Args:
            acls: Rights of the key: search, addObject, deleteObject, deleteIndex,
                settings, editSettings
            validity: Seconds before the key is removed automatically (0: never)
            maxQueriesPerIPPerHour: Rate limit per client IP (0: unlimited)
            maxHitsPerQuery: Maximum hits one call may retrieve (0: unlimited)
        """
        body = self._userKeyBody(acls, validity, maxQueriesPerIPPerHour, maxHitsPerQuery)
        return self._write(HttpMethod.POST, f"{self.basePath}/keys", body, onComplete)

    def updateUserKey(
        self,
        key: str,
        acls: List[str],
        onComplete: Optional[CompletionHandler] = None,
        *,
        validity: Optional[int] = None,
        maxQueriesPerIPPerHour: Optional[int] = None,
        maxHitsPerQuery: Optional[int] = None,
    ) -> CancellableCall:
        body = self._userKeyBody(acls, validity, maxQueriesPerIPPerHour, maxHitsPerQuery)
        return self._write(HttpMethod.PUT, f"{self.basePath}/keys/{utils.urlEncode(key)}", body, onComplete)
