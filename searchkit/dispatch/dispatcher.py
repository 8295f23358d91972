"""
Host failover dispatcher.

Delivers one logical ``Operation`` to the first host of its traffic class
that can serve it:

- hosts are tried strictly in configured order, one attempt per host, never
  two attempts in flight for one call;
- each attempt is bounded by its own timeout;
- connection errors, timeouts and 5xx responses are retryable: the dispatcher
  moves on to the next host (optionally after an exponential backoff);
- 4xx responses and malformed bodies are fatal and reported immediately;
- when every host failed retryably, ``AllHostsExhaustedError`` carries the
  last host's error.

The host ordering is never mutated. ``withHosts`` returns a new dispatcher
sharing the same HTTP transport, leaving calls in flight untouched.
"""

import asyncio
import json
import logging
import time
from typing import Dict, List, Mapping, Optional

import httpx

from .call import CancellableCall
from .constants import DEFAULT_SCHEME, DEFAULT_TIMEOUT, RETRY_BACKOFF_FACTOR
from .exceptions import AllHostsExhaustedError, NetworkError, RequestError, SearchClientError, parseHttpError
from .models import (
    AttemptOutcome,
    CompletionHandler,
    DispatchAttempt,
    HostsConfig,
    JSONObject,
    Operation,
)

logger = logging.getLogger(__name__)


class HostFailoverDispatcher:
    """Performs operations against an ordered list of hosts with failover.

    Example:
        >>> dispatcher = HostFailoverDispatcher(
        ...     httpClient=httpx.AsyncClient(),
        ...     hosts=HostsConfig.fromLists(["r1.example.net", "r2.example.net"], ["w1.example.net"]),
        ...     headers=buildAuthHeaders("APP", "KEY"),
        ... )
        >>> call = dispatcher.dispatch(Operation(HttpMethod.GET, "1/indexes/movies/settings"), handler)
    """

    __slots__ = ("httpClient", "hosts", "headers", "timeout", "retryBackoffFactor", "scheme")

    def __init__(
        self,
        httpClient: httpx.AsyncClient,
        hosts: HostsConfig,
        *,
        headers: Optional[Mapping[str, str]] = None,
        timeout: float = DEFAULT_TIMEOUT,
        retryBackoffFactor: float = RETRY_BACKOFF_FACTOR,
        scheme: str = DEFAULT_SCHEME,
    ) -> None:
        """
        Args:
            httpClient: Transport used for every attempt (TLS, DNS and pooling live there)
            hosts: Host orderings per traffic class
            headers: Headers added to every request (authentication, user agent)
            timeout: Default per-attempt timeout in seconds
            retryBackoffFactor: Delay before the Nth failover is ``factor * 2**(N-1)``
                seconds; 0 fails over immediately
            scheme: URL scheme, "https" unless talking to a local test server
        """
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        if retryBackoffFactor < 0:
            raise ValueError(f"retryBackoffFactor must not be negative, got {retryBackoffFactor}")

        self.httpClient = httpClient
        self.hosts = hosts
        self.headers: Dict[str, str] = dict(headers or {})
        self.timeout = timeout
        self.retryBackoffFactor = retryBackoffFactor
        self.scheme = scheme

    def withHosts(self, hosts: HostsConfig) -> "HostFailoverDispatcher":
        """Return a dispatcher using another host configuration and the same transport."""
        return HostFailoverDispatcher(
            self.httpClient,
            hosts,
            headers=self.headers,
            timeout=self.timeout,
            retryBackoffFactor=self.retryBackoffFactor,
            scheme=self.scheme,
        )

    def dispatch(self, operation: Operation, onComplete: Optional[CompletionHandler] = None) -> CancellableCall:
        """Start the operation and return its cancellable handle.

        Must be called from a running event loop; the handler is invoked on it.
        """
        attempts: List[DispatchAttempt] = []
        return CancellableCall(
            self.execute(operation, attempts),
            onComplete,
            attempts=attempts,
            description=str(operation),
        )

    async def execute(self, operation: Operation, attempts: Optional[List[DispatchAttempt]] = None) -> JSONObject:
        """Run the failover loop for one operation.

        Args:
            operation: What to send
            attempts: Optional list receiving a DispatchAttempt per host tried

        Returns:
            Response body of the first host that answered successfully

        Raises:
            RequestError: The request was rejected by a host
            AllHostsExhaustedError: Every host failed retryably
        """
        hosts = self.hosts.hostsFor(operation.trafficClass)
        timeout = operation.timeout if operation.timeout is not None else self.timeout
        lastError: Optional[NetworkError] = None

        for hostIndex, host in enumerate(hosts):
            if hostIndex > 0 and self.retryBackoffFactor > 0:
                delay = self.retryBackoffFactor * (2 ** (hostIndex - 1))
                logger.debug(f"Failing over in {delay} seconds...")
                await asyncio.sleep(delay)

            attempt = DispatchAttempt(host=host, startTime=time.monotonic())
            if attempts is not None:
                attempts.append(attempt)

            logger.debug(f"Attempt {hostIndex + 1}/{len(hosts)}: {operation} on {host}")
            try:
                content = await asyncio.wait_for(self._attempt(attempt, operation, timeout), timeout)
            except asyncio.TimeoutError:
                lastError = NetworkError(f"Attempt timed out after {timeout}s", host=host)
            except NetworkError as e:
                lastError = e
            except SearchClientError as e:
                attempt.outcome = AttemptOutcome.FATAL_FAILURE
                attempt.error = e
                logger.error(f"{operation} rejected by {host}: {e}")
                raise
            else:
                attempt.outcome = AttemptOutcome.SUCCESS
                logger.debug(f"{operation} succeeded on {host}")
                return content

            attempt.outcome = AttemptOutcome.RETRYABLE_FAILURE
            attempt.error = lastError
            logger.warning(f"{operation} failed on {host} (attempt {hostIndex + 1}/{len(hosts)}): {lastError}")

        logger.error(f"{operation} failed on all {len(hosts)} hosts")
        raise AllHostsExhaustedError(lastError, len(hosts))

    async def _attempt(self, attempt: DispatchAttempt, operation: Operation, timeout: float) -> JSONObject:
        host = attempt.host
        url = f"{self.scheme}://{host}/{operation.path.lstrip('/')}"

        try:
            response = await self.httpClient.request(
                str(operation.method),
                url,
                headers=self.headers,
                json=operation.body,
                timeout=timeout,
            )
        except httpx.TimeoutException as e:
            raise NetworkError(f"Timeout: {type(e).__name__}#{e}", host=host) from e
        except httpx.RequestError as e:
            raise NetworkError(f"Network error: {type(e).__name__}#{e}", host=host) from e

        attempt.statusCode = response.status_code
        if 200 <= response.status_code < 300:
            try:
                data = response.json()
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise RequestError(f"Invalid JSON response: {e}", response.status_code) from e
            if not isinstance(data, dict):
                raise RequestError(
                    f"Expected a JSON object, got {type(data).__name__}", response.status_code
                )
            return data

        try:
            errorData = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            errorData = None
        if not isinstance(errorData, dict):
            errorData = {"message": response.text or "Unknown error"}

        raise parseHttpError(response.status_code, errorData, host=host)
