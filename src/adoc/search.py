"""Keyword search resolution into seed URLs."""

import logging
from urllib.parse import urlencode, urlparse

from selectolax.parser import HTMLParser

from .config import settings
from .core import RetryPolicy
from .errors import NoResults
from .urls import in_scope, normalize_url, resolve_href

# Tried in order; the first selector with any in-scope hit wins.
RESULT_SELECTORS = (
    ".search-results a[href]",
    ".search-result a[href]",
    "main a[href]",
    "a[href]",
)

logger = logging.getLogger(__name__)


class SearchResolver:
    """Resolves a free-text keyword to documentation pages via the site search."""

    def __init__(
        self,
        retry: RetryPolicy,
        search_url: str = settings.search_url,
        hosts: set[str] | None = None,
        path_prefix: str = settings.path_prefix,
        max_results: int = settings.max_search_results,
        timeout: float | None = None,
    ):
        self.retry = retry
        self.search_url = search_url
        self.hosts = hosts if hosts is not None else {settings.allowed_host}
        self.path_prefix = path_prefix
        self.max_results = max_results
        self.timeout = timeout

    def search_page_url(self, keyword: str) -> str:
        return f"{self.search_url}?{urlencode({'q': keyword})}"

    def _is_result(self, url: str) -> bool:
        # The bare documentation index is site navigation, not a hit
        if urlparse(url).path.rstrip("/") == self.path_prefix.rstrip("/"):
            return False
        return in_scope(url, self.hosts, self.path_prefix)

    def parse_results(self, html: str, base_url: str) -> list[str]:
        """Extract in-scope result URLs from a search page, in page order."""
        tree = HTMLParser(html)
        for selector in RESULT_SELECTORS:
            found: dict[str, None] = {}
            for node in tree.css(selector):
                url = resolve_href(node.attributes.get("href") or "", base_url)
                if url and self._is_result(url):
                    found.setdefault(url)
            if found:
                return list(found)[:self.max_results]
        return []

    async def resolve(self, keyword: str) -> list[str]:
        """Return seed URLs for a keyword. Raises NoResults when nothing matches."""
        keyword = keyword.strip()
        if not keyword:
            raise NoResults(keyword)

        url = self.search_page_url(keyword)
        logger.info("Searching documentation for %r", keyword)
        response = await self.retry.fetch_with_retry(url, timeout=self.timeout)

        results = self.parse_results(response.text, response.url)
        if not results:
            raise NoResults(keyword)
        logger.info("Search for %r matched %d page(s)", keyword, len(results))
        return results


async def resolve_input(text: str, resolver: SearchResolver) -> list[str]:
    """Treat http(s) input as a direct URL, anything else as a search keyword."""
    text = text.strip()
    if text.lower().startswith(("http://", "https://")):
        return [normalize_url(text)]
    return await resolver.resolve(text)
