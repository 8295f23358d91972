"""
Dispatch layer data model.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

JSONObject = Dict[str, Any]

# Called exactly once with (content, None) on success or (None, error) on failure
CompletionHandler = Callable[[Optional[JSONObject], Optional[BaseException]], None]


class HttpMethod(StrEnum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class TrafficClass(StrEnum):
    """Selects which host ordering a request goes through."""

    READ = "read"
    WRITE = "write"


class AttemptOutcome(StrEnum):
    PENDING = "pending"
    SUCCESS = "success"
    RETRYABLE_FAILURE = "retryable-failure"
    FATAL_FAILURE = "fatal-failure"


@dataclass(frozen=True, slots=True)
class Operation:
    """One logical request, independent of the host that will serve it.

    Attributes:
        method: HTTP method
        path: Path relative to the host root, e.g. ``1/indexes/movies/query``
        body: JSON object body, if any
        trafficClass: READ or WRITE host ordering
        timeout: Per-attempt timeout override in seconds
    """

    method: HttpMethod
    path: str
    body: Optional[JSONObject] = None
    trafficClass: TrafficClass = TrafficClass.READ
    timeout: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.path or not self.path.strip("/"):
            raise ValueError("Operation path must not be empty")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"Operation timeout must be positive, got {self.timeout}")

    def __str__(self) -> str:
        return f"{self.method} {self.path}"


@dataclass(frozen=True, slots=True)
class HostsConfig:
    """Ordered candidate hosts for each traffic class.

    Immutable: reconfiguring means building a new HostsConfig (and a new
    dispatcher around it), so a call in flight keeps the view it started with.
    """

    readHosts: Tuple[str, ...]
    writeHosts: Tuple[str, ...]

    def __post_init__(self) -> None:
        for name, hosts in (("readHosts", self.readHosts), ("writeHosts", self.writeHosts)):
            if isinstance(hosts, str):
                raise ValueError(f"{name} must be a list of host names, got the string {hosts!r}")
        # Accept any iterable but store tuples
        object.__setattr__(self, "readHosts", tuple(self.readHosts))
        object.__setattr__(self, "writeHosts", tuple(self.writeHosts))

        for name, hosts in (("readHosts", self.readHosts), ("writeHosts", self.writeHosts)):
            if not hosts:
                raise ValueError(f"{name} must contain at least one host")
            if any(not isinstance(host, str) or not host.strip() for host in hosts):
                raise ValueError(f"{name} contains an empty host name")

    @classmethod
    def fromLists(cls, readHosts: Iterable[str], writeHosts: Iterable[str]) -> "HostsConfig":
        if isinstance(readHosts, str) or isinstance(writeHosts, str):
            raise ValueError("readHosts and writeHosts must be lists of host names, not strings")
        return cls(readHosts=tuple(readHosts), writeHosts=tuple(writeHosts))

    def hostsFor(self, trafficClass: TrafficClass) -> Tuple[str, ...]:
        if trafficClass == TrafficClass.WRITE:
            return self.writeHosts
        return self.readHosts


@dataclass(slots=True)
class DispatchAttempt:
    """One try of an operation against one host."""

    host: str
    startTime: float
    outcome: AttemptOutcome = AttemptOutcome.PENDING
    statusCode: Optional[int] = None
    error: Optional[BaseException] = field(default=None, repr=False)
