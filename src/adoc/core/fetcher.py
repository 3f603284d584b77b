"""HTTP fetcher implementation using httpx."""

import asyncio
import codecs
import logging

import httpx

from ..errors import ConnectionRefused, FetchTimeout, HttpStatusError, MalformedPage
from .protocols import Response

DEFAULT_USER_AGENT = "adoc/0.1 (+https://github.com/adoc-crawler)"
HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")

logger = logging.getLogger(__name__)


class HttpFetcher:
    """Async HTTP fetcher using httpx with connection reuse.

    Each call to ``fetch`` issues exactly one GET and either returns a decoded
    HTML response or raises a FetchError describing why it could not.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        user_agent: str = DEFAULT_USER_AGENT,
        max_connections: int = 100,
        max_keepalive_connections: int = 20,
        max_redirects: int = 20,
    ):
        self.timeout = httpx.Timeout(timeout)
        self.user_agent = user_agent
        self.max_redirects = max_redirects
        self.limits = httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive_connections,
        )
        self._client: httpx.AsyncClient | None = None
        self._lock = asyncio.Lock()

    async def __aenter__(self) -> "HttpFetcher":
        await self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client with double-checked locking."""
        if self._client is None:
            async with self._lock:
                if self._client is None:
                    self._client = httpx.AsyncClient(
                        timeout=self.timeout,
                        limits=self.limits,
                        headers={"User-Agent": self.user_agent},
                        follow_redirects=True,
                        max_redirects=self.max_redirects,
                    )
        return self._client

    async def fetch(self, url: str, timeout: float | None = None) -> Response:
        """Fetch a URL and return the response."""
        client = await self._get_client()
        request_timeout = httpx.Timeout(timeout) if timeout is not None else self.timeout

        try:
            resp = await client.get(url, timeout=request_timeout)
        except httpx.TimeoutException as e:
            raise FetchTimeout(url, f"Timed out fetching {url}") from e
        except httpx.TransportError as e:
            # Connect errors, resets and protocol errors are all worth retrying
            raise ConnectionRefused(url, f"Connection failed for {url}: {e}") from e
        except httpx.TooManyRedirects as e:
            raise MalformedPage(url, f"Redirect loop fetching {url}") from e
        except httpx.DecodingError as e:
            raise MalformedPage(url, f"Undecodable body for {url}: {e}") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise MalformedPage(url, f"Request failed for {url}: {e}") from e

        if resp.status_code >= 400:
            raise HttpStatusError(url, resp.status_code)

        content_type = resp.headers.get("content-type", "")
        mime = content_type.split(";", 1)[0].strip().lower()
        if mime and mime not in HTML_CONTENT_TYPES:
            raise MalformedPage(url, f"Unexpected content type {mime!r} for {url}")

        encoding = resp.charset_encoding or "utf-8"
        try:
            codecs.lookup(encoding)
            resp.content.decode(encoding)
        except (LookupError, UnicodeDecodeError) as e:
            raise MalformedPage(url, f"Undecodable body for {url}: {e}") from e

        logger.debug("Fetched %s (%d, %d bytes)", resp.url, resp.status_code, len(resp.content))
        return Response(
            url=str(resp.url),
            status=resp.status_code,
            content=resp.content,
            headers=dict(resp.headers),
            encoding=encoding,
        )

    async def close(self):
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
