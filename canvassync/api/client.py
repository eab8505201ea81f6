"""
Canvas REST API client for Canvas Sync.

Handles listing pages of courses, folders and files, and streaming file
content. Listing requests carry the bearer token; file downloads do not, since
Canvas file URLs embed their own verifier and may redirect off-site.
"""

import asyncio
import logging
import ssl
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, List, Optional, Tuple, TypeVar

import aiohttp
import certifi
import requests

from ..core.constants import DEFAULT_DOWNLOAD_WORKERS, PER_PAGE
from ..errors import (
    AuthorizationError,
    HTTPStatusError,
    MalformedResponseError,
    TransportError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_certifi_path() -> str:
    """
    CA bundle for the aiohttp session's SSL context.

    A frozen build (PyInstaller) carries certifi's bundle inside its own
    unpack directory; everywhere else certifi knows where it lives.
    """
    bundle_dir = getattr(sys, "_MEIPASS", None)
    if getattr(sys, "frozen", False) and bundle_dir:
        bundled = Path(bundle_dir) / "certifi" / "cacert.pem"
        if bundled.is_file():
            return str(bundled)
    return certifi.where()


def check_network(url: str, timeout: float = 3.0) -> Tuple[bool, Optional[str]]:
    """Check if we can reach the Canvas host. Returns (is_online, error_message)."""
    try:
        requests.head(url, timeout=timeout)
        return True, None
    except requests.ConnectionError:
        return False, "No internet connection"
    except requests.Timeout:
        return False, "Connection timed out"
    except requests.RequestException as e:
        return False, f"Network error: {e}"


@dataclass
class CanvasClientConfig:
    """Configuration for CanvasClient."""
    url: str
    token: str
    timeout: Tuple[int, int] = (10, 120)
    chunk_size: int = 32768
    per_page: int = PER_PAGE
    max_connections: int = DEFAULT_DOWNLOAD_WORKERS * 2


class CanvasClient:
    """
    Async Canvas API client.

    Use as an async context manager; the aiohttp session lives as long as the
    ``async with`` block.
    """

    API_PATH = "/api/v1"

    def __init__(self, config: CanvasClientConfig):
        self.config = config
        self._session: Optional[aiohttp.ClientSession] = None
        self._api_calls = 0

    @property
    def api_calls(self) -> int:
        """Total listing requests made by this client."""
        return self._api_calls

    async def __aenter__(self) -> "CanvasClient":
        ssl_context = ssl.create_default_context(cafile=get_certifi_path())
        connector = aiohttp.TCPConnector(
            limit=self.config.max_connections,
            ttl_dns_cache=300,
            keepalive_timeout=30,
            ssl=ssl_context,
        )
        timeout = aiohttp.ClientTimeout(connect=self.config.timeout[0], sock_read=self.config.timeout[1])
        self._session = aiohttp.ClientSession(timeout=timeout, connector=connector)
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        if self._session is not None:
            await self._session.close()
            self._session = None

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError("CanvasClient used outside of 'async with'")
        return self._session

    # ------------------------------------------------------------------
    # URL construction
    # ------------------------------------------------------------------

    def _api_url(self, path: str) -> str:
        return f"{self.config.url}{self.API_PATH}{path}?per_page={self.config.per_page}"

    def courses_url(self) -> str:
        return self._api_url("/courses")

    def folders_in_course_url(self, course_id: int) -> str:
        return self._api_url(f"/courses/{course_id}/folders")

    def files_in_folder_url(self, folder_id: int) -> str:
        return self._api_url(f"/folders/{folder_id}/files")

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def _get_headers(self) -> dict:
        return {"Authorization": f"Bearer {self.config.token}"}

    @staticmethod
    def _check_status(url: str, response: aiohttp.ClientResponse):
        if response.status in (401, 403):
            raise AuthorizationError(url, response.status)
        if response.status != 200:
            raise HTTPStatusError(url, response.status)

    async def list_page(self, url: str, parse: Callable[[dict], T]) -> Tuple[List[T], Optional[str]]:
        """
        Fetch one page of a listing.

        Args:
            url: Absolute URL of the page
            parse: Builds one item from its JSON object (e.g. Folder.from_dict)

        Returns:
            Tuple of (items, next_page_url); next_page_url is None on the last page
        """
        logger.debug("GET %s", url)
        try:
            async with self.session.get(url, headers=self._get_headers()) as response:
                self._api_calls += 1
                # Canvas throttles by cost; we only report it
                logger.debug(
                    "rate limit remaining=%s cost=%s",
                    response.headers.get("X-Rate-Limit-Remaining"),
                    response.headers.get("X-Request-Cost"),
                )
                self._check_status(url, response)

                try:
                    data = await response.json(content_type=None)
                except ValueError as e:
                    raise MalformedResponseError(url, f"JSON error ({e})") from e

                next_link = response.links.get("next")
                next_url = str(next_link["url"]) if next_link else None
        except aiohttp.ClientError as e:
            raise TransportError(url, e) from e
        except asyncio.TimeoutError as e:
            raise TransportError(url, e) from e

        if not isinstance(data, list):
            raise MalformedResponseError(url, f"expected a JSON list, got {type(data).__name__}")

        try:
            items = [parse(item) for item in data]
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponseError(url, f"invalid item ({type(e).__name__}: {e})") from e

        return items, next_url

    async def download(self, url: str, sink: BinaryIO) -> int:
        """
        Stream the content at url into sink.

        Cancelling the calling task aborts the transfer at the next chunk.

        Returns:
            Number of bytes written
        """
        written = 0
        try:
            async with self.session.get(url, allow_redirects=True) as response:
                self._check_status(url, response)
                async for chunk in response.content.iter_chunked(self.config.chunk_size):
                    sink.write(chunk)
                    written += len(chunk)
        except aiohttp.ClientError as e:
            raise TransportError(url, e) from e
        except asyncio.TimeoutError as e:
            raise TransportError(url, e) from e
        return written
