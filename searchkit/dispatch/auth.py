"""
Authentication headers for the search API.
"""

from typing import Dict

from .constants import CONTENT_TYPE_JSON, HEADER_API_KEY, HEADER_APPLICATION_ID, USER_AGENT


def buildAuthHeaders(appId: str, apiKey: str) -> Dict[str, str]:
    """Headers sent with every request of a client, pure function of the credentials."""
    return {
        HEADER_APPLICATION_ID: appId,
        HEADER_API_KEY: apiKey,
        "Accept": CONTENT_TYPE_JSON,
        "Content-Type": CONTENT_TYPE_JSON,
        "User-Agent": USER_AGENT,
    }
