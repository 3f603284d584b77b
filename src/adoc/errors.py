"""Error taxonomy for fetching and crawling."""


class AdocError(Exception):
    """Base class for all crawler errors."""


class FetchError(AdocError):
    """A single HTTP GET did not produce a usable page."""

    transient = False

    def __init__(self, url: str, message: str = ""):
        self.url = url
        super().__init__(message or f"{self.kind} fetching {url}")

    @property
    def kind(self) -> str:
        return type(self).__name__


class FetchTimeout(FetchError):
    transient = True


class ConnectionRefused(FetchError):
    transient = True


class HttpStatusError(FetchError):
    """Server answered with a 4xx or 5xx status."""

    def __init__(self, url: str, status_code: int):
        self.status_code = status_code
        super().__init__(url, f"HTTP {status_code} fetching {url}")

    @property
    def transient(self) -> bool:
        return self.status_code >= 500

    @property
    def kind(self) -> str:
        return f"http_{self.status_code}"


class MalformedPage(FetchError):
    """Body is not HTML or cannot be decoded."""


class CrawlError(AdocError):
    """Failure at the crawl level."""


class NoResults(CrawlError):
    def __init__(self, keyword: str):
        self.keyword = keyword
        super().__init__(f"No documentation pages found for {keyword!r}")


class Exhausted(CrawlError):
    """Retry policy gave up on a URL."""

    def __init__(self, url: str, last_error: FetchError, attempts: int):
        self.url = url
        self.last_error = last_error
        self.attempts = attempts
        super().__init__(f"Giving up on {url} after {attempts} attempt(s): {last_error}")


class InvalidUrl(CrawlError):
    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Invalid URL: {url!r}")


class SeedsUnreachable(CrawlError):
    """Every seed URL failed, so there is nothing to crawl."""

    def __init__(self, failures: dict[str, Exception]):
        self.failures = failures
        urls = ", ".join(failures)
        super().__init__(f"Could not fetch any seed URL: {urls}")
