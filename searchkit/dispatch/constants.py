"""
Dispatch layer constants.
"""

from typing import Final

VERSION: Final[str] = "0.1.0"
USER_AGENT: Final[str] = f"searchkit/{VERSION}"

DEFAULT_SCHEME: Final[str] = "https"
DEFAULT_TIMEOUT: Final[float] = 30
DEFAULT_SEARCH_TIMEOUT: Final[float] = 5
RETRY_BACKOFF_FACTOR: Final[float] = 0.0

# Headers
CONTENT_TYPE_JSON: Final[str] = "application/json"
HEADER_APPLICATION_ID: Final[str] = "X-Search-Application-Id"
HEADER_API_KEY: Final[str] = "X-Search-API-Key"
