"""URL normalization and crawl scope."""

from urllib.parse import parse_qsl, urlencode, urljoin, urlparse, urlunparse

from .errors import InvalidUrl

SKIPPED_PREFIXES = ('#', 'javascript:', 'mailto:', 'tel:', 'data:')


def normalize_url(url: str) -> str:
    """Normalize URL for deduplication (remove fragment, sort query params).

    Raises InvalidUrl for anything that is not an absolute http(s) URL.
    """
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        raise InvalidUrl(url) from None
    scheme = parsed.scheme.lower()
    if scheme not in ('http', 'https') or not parsed.netloc:
        raise InvalidUrl(url)

    # Sort query parameters
    query_params = parse_qsl(parsed.query, keep_blank_values=True)
    sorted_query = urlencode(sorted(query_params))

    # Normalize path (remove trailing slash except for root)
    path = parsed.path.rstrip('/') or '/'

    return urlunparse((
        scheme,
        parsed.netloc.lower(),
        path,
        parsed.params,
        sorted_query,
        ''  # Remove fragment
    ))


def resolve_href(href: str, base_url: str) -> str | None:
    """Resolve an href against its page, returning a normalized URL or None."""
    href = href.strip()
    if not href or href.startswith(SKIPPED_PREFIXES):
        return None

    # Handle protocol-relative URLs
    if href.startswith('//'):
        href = 'https:' + href

    try:
        return normalize_url(urljoin(base_url, href))
    except (InvalidUrl, ValueError):
        return None


def in_scope(url: str, hosts: set[str], path_prefix: str = "") -> bool:
    """Check whether a normalized URL belongs to the crawled documentation site."""
    parsed = urlparse(url)
    if hosts and parsed.netloc not in hosts:
        return False
    if path_prefix:
        prefix = path_prefix.rstrip('/')
        return parsed.path == prefix or parsed.path.startswith(prefix + '/')
    return True
