"""
Search client: credentials, HTTP transport and host configuration.

Example:
    from searchkit.index import Query, SearchClient

    async with SearchClient(
        "APP_ID",
        "API_KEY",
        readHosts=["app-dsn.search.example.net", "app-1.search.example.net"],
        writeHosts=["app.search.example.net", "app-1.search.example.net"],
    ) as client:
        movies = client.getIndex("movies")
        movies.enableSearchCache(ttl=120)
        results = await movies.search(Query(query="alien"))
"""

import logging
from typing import Any, Dict, Iterable, Optional

import httpx

from ..dispatch import ConfigurationError, HostFailoverDispatcher, HostsConfig, buildAuthHeaders
from ..dispatch.constants import DEFAULT_SEARCH_TIMEOUT, DEFAULT_TIMEOUT, RETRY_BACKOFF_FACTOR
from .index import Index

logger = logging.getLogger(__name__)


class SearchClient:
    """Entry point of the library, hands out ``Index`` objects.

    The httpx client is either injected (and then left open by ``aclose()``)
    or created and owned by the SearchClient.
    """

    __slots__ = (
        "appId",
        "apiKey",
        "timeout",
        "searchTimeout",
        "retryBackoffFactor",
        "dispatcher",
        "_httpClient",
        "_ownsHttpClient",
    )

    def __init__(
        self,
        appId: str,
        apiKey: str,
        *,
        readHosts: Iterable[str],
        writeHosts: Iterable[str],
        timeout: float = DEFAULT_TIMEOUT,
        searchTimeout: float = DEFAULT_SEARCH_TIMEOUT,
        retryBackoffFactor: float = RETRY_BACKOFF_FACTOR,
        httpClient: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Args:
            appId: Application ID
            apiKey: API key
            readHosts: Hosts tried in order for search, browse and get operations
            writeHosts: Hosts tried in order for indexing, settings and key operations
            timeout: Per-attempt timeout in seconds
            searchTimeout: Per-attempt timeout in seconds for search requests
            retryBackoffFactor: Exponential backoff factor between hosts (0: none)
            httpClient: Transport to use, created (and owned) if not provided

        Raises:
            ConfigurationError: On missing credentials, hosts or invalid timeouts
        """
        if not appId:
            raise ConfigurationError("appId is required")
        if not apiKey:
            raise ConfigurationError("apiKey is required")
        if searchTimeout <= 0:
            raise ConfigurationError(f"searchTimeout must be positive, got {searchTimeout}")

        try:
            hosts = HostsConfig.fromLists(readHosts, writeHosts)
        except ValueError as e:
            raise ConfigurationError(f"Invalid hosts configuration: {e}") from e

        self.appId = appId
        self.apiKey = apiKey
        self.timeout = timeout
        self.searchTimeout = searchTimeout
        self.retryBackoffFactor = retryBackoffFactor

        self._ownsHttpClient = httpClient is None
        self._httpClient = httpClient if httpClient is not None else httpx.AsyncClient()

        try:
            self.dispatcher = HostFailoverDispatcher(
                self._httpClient,
                hosts,
                headers=buildAuthHeaders(appId, apiKey),
                timeout=timeout,
                retryBackoffFactor=retryBackoffFactor,
            )
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        logger.debug(f"SearchClient for {appId} with read hosts {hosts.readHosts} and write hosts {hosts.writeHosts}")

    @classmethod
    def fromConfig(cls, config: Dict[str, Any], *, httpClient: Optional[httpx.AsyncClient] = None) -> "SearchClient":
        """Build a client from the ``[client]`` configuration section.

        Args:
            config: Dict with app-id, api-key, read-hosts, write-hosts and
                optionally timeout, search-timeout, retry-backoff-factor
            httpClient: Transport to use

        Raises:
            ConfigurationError: On missing or invalid keys
        """
        for key in ("app-id", "api-key", "read-hosts", "write-hosts"):
            if not config.get(key):
                raise ConfigurationError(f"Missing required client setting: {key}")

        readHosts = config["read-hosts"]
        writeHosts = config["write-hosts"]
        if isinstance(readHosts, str) or isinstance(writeHosts, str):
            raise ConfigurationError("read-hosts and write-hosts must be lists of host names")

        try:
            timeout = float(config.get("timeout", DEFAULT_TIMEOUT))
            searchTimeout = float(config.get("search-timeout", DEFAULT_SEARCH_TIMEOUT))
            retryBackoffFactor = float(config.get("retry-backoff-factor", RETRY_BACKOFF_FACTOR))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid client timing setting: {e}") from e

        return cls(
            str(config["app-id"]),
            str(config["api-key"]),
            readHosts=readHosts,
            writeHosts=writeHosts,
            timeout=timeout,
            searchTimeout=searchTimeout,
            retryBackoffFactor=retryBackoffFactor,
            httpClient=httpClient,
        )

    @property
    def hosts(self) -> HostsConfig:
        return self.dispatcher.hosts

    def getIndex(self, indexName: str) -> Index:
        return Index(self, indexName)

    def setHosts(self, readHosts: Optional[Iterable[str]] = None, writeHosts: Optional[Iterable[str]] = None) -> None:
        """Replace host lists for subsequent operations.

        Calls already in flight keep the hosts they started with.
        """
        current = self.dispatcher.hosts
        try:
            hosts = HostsConfig.fromLists(
                readHosts if readHosts is not None else current.readHosts,
                writeHosts if writeHosts is not None else current.writeHosts,
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid hosts configuration: {e}") from e
        self.dispatcher = self.dispatcher.withHosts(hosts)
        logger.info(f"Hosts updated: read {hosts.readHosts}, write {hosts.writeHosts}")

    async def aclose(self) -> None:
        """Close the HTTP client if it is owned by this SearchClient."""
        if self._ownsHttpClient:
            await self._httpClient.aclose()

    async def __aenter__(self) -> "SearchClient":
        return self

    async def __aexit__(self, excType, excValue, traceback) -> None:
        await self.aclose()
