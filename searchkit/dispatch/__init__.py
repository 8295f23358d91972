"""
Request dispatch layer: cancellable calls delivered to a cluster of hosts
with failover.

Components:
    HostFailoverDispatcher: Tries hosts of a traffic class in order
    CancellableCall: Awaitable, cancellable handle with exactly-once delivery
    Operation / HostsConfig / DispatchAttempt: Data model
    SearchClientError and subclasses: Error taxonomy
"""

from .auth import buildAuthHeaders
from .call import CancellableCall
from .dispatcher import HostFailoverDispatcher
from .exceptions import (
    AllHostsExhaustedError,
    ConfigurationError,
    NetworkError,
    RequestError,
    SearchClientError,
    TaskTimeoutError,
    parseHttpError,
)
from .models import (
    AttemptOutcome,
    CompletionHandler,
    DispatchAttempt,
    HostsConfig,
    HttpMethod,
    JSONObject,
    Operation,
    TrafficClass,
)

__all__ = [
    # Dispatcher
    "HostFailoverDispatcher",
    "CancellableCall",
    "buildAuthHeaders",
    # Models
    "AttemptOutcome",
    "CompletionHandler",
    "DispatchAttempt",
    "HostsConfig",
    "HttpMethod",
    "JSONObject",
    "Operation",
    "TrafficClass",
    # Errors
    "SearchClientError",
    "NetworkError",
    "RequestError",
    "AllHostsExhaustedError",
    "ConfigurationError",
    "TaskTimeoutError",
    "parseHttpError",
]
