"""
Exceptions raised by Canvas Sync.

Filesystem problems are not wrapped: they surface as the built-in OSError
family. Cancellation surfaces as asyncio.CancelledError.
"""

from typing import Optional


class SyncError(Exception):
    """Base class for Canvas Sync errors."""


class ConfigError(SyncError):
    """The configuration file is missing, unreadable or incomplete."""


class APIError(SyncError):
    """A request to Canvas failed."""

    def __init__(self, url: str, message: str):
        super().__init__(f"{message} for {url}")
        self.url = url


class TransportError(APIError):
    """Network error or timeout. Never retried."""

    def __init__(self, url: str, cause: Optional[BaseException] = None):
        detail = f"{type(cause).__name__}: {cause}" if cause is not None else "unknown error"
        super().__init__(url, f"Client error ({detail})")


class HTTPStatusError(APIError):
    """Canvas answered with a non-success status."""

    def __init__(self, url: str, status: int):
        super().__init__(url, f"HTTP error {status}")
        self.status = status


class AuthorizationError(HTTPStatusError):
    """401/403: the access token is invalid or lacks access to the resource."""


class MalformedResponseError(APIError):
    """The response body is not the JSON list of items we asked for."""


class StructureError(SyncError):
    """A course's folder and file listings do not form a single rooted tree."""
