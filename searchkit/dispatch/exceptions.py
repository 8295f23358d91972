"""
Search client exceptions.

Retryable failures (``NetworkError``) are consumed by the dispatcher while it
fails over to the next host; callers only ever see fatal errors:
``RequestError``, ``AllHostsExhaustedError`` and friends.
"""

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class SearchClientError(Exception):
    """Base exception class for all search client errors.

    Attributes:
        message: Human-readable error message
        code: Server-provided error code (if available)
        response: Raw response body (if available)
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        response: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.response = response
        logger.debug(f"{type(self).__name__}: {message} (code: {code})")

    def __str__(self) -> str:
        if self.code:
            return f"{self.message} (code: {self.code})"
        return self.message


class NetworkError(SearchClientError):
    """A host could not serve the request: unreachable, timed out or 5xx.

    Retryable on a different host.
    """

    def __init__(
        self,
        message: str = "Network error occurred.",
        *,
        host: Optional[str] = None,
        statusCode: Optional[int] = None,
        code: Optional[str] = None,
        response: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code, response)
        self.host = host
        self.statusCode = statusCode


class RequestError(SearchClientError):
    """The request itself was rejected (4xx) or the answer was malformed.

    Fatal: retrying on another host would fail the same way.
    """

    def __init__(
        self,
        message: str,
        statusCode: int,
        code: Optional[str] = None,
        response: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code, response)
        self.statusCode = statusCode

    def __str__(self) -> str:
        return f"{super().__str__()} [HTTP {self.statusCode}]"


class AllHostsExhaustedError(SearchClientError):
    """Every candidate host failed with a retryable error.

    ``lastError`` is the failure reported by the last host tried.
    """

    def __init__(self, lastError: Optional[NetworkError], hostsTried: int) -> None:
        reason = str(lastError) if lastError is not None else "no hosts configured"
        super().__init__(f"All {hostsTried} hosts failed, last error: {reason}")
        self.lastError = lastError
        self.hostsTried = hostsTried


class ConfigurationError(SearchClientError):
    """Raised when the client is misconfigured (missing credentials, empty host lists...)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class TaskTimeoutError(SearchClientError):
    """Raised when a server task is not published before the wait deadline."""

    def __init__(self, taskId: int, timeout: float) -> None:
        super().__init__(f"Task {taskId} not published after {timeout}s")
        self.taskId = taskId
        self.timeout = timeout


def parseHttpError(statusCode: int, responseData: Dict[str, Any], host: Optional[str] = None) -> SearchClientError:
    """Map a non-2xx response to the matching exception.

    Args:
        statusCode: HTTP status code
        responseData: Parsed JSON error body (``{"message": ..., "status": ...}``)
        host: Host that produced the response

    Returns:
        ``NetworkError`` for 5xx, ``RequestError`` otherwise
    """
    message = responseData.get("message") or f"HTTP error {statusCode}"
    code = responseData.get("code")
    if code is not None:
        code = str(code)

    if statusCode >= 500:
        return NetworkError(message, host=host, statusCode=statusCode, code=code, response=responseData)
    return RequestError(message, statusCode, code, responseData)
