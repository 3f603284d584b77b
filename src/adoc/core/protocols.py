"""Protocol definitions for crawler components."""

from dataclasses import dataclass
from typing import Protocol


@dataclass
class Response:
    """HTTP response container."""

    url: str
    status: int
    content: bytes
    headers: dict[str, str]
    encoding: str = "utf-8"

    @property
    def text(self) -> str:
        """Decode content using the response charset."""
        return self.content.decode(self.encoding, errors="replace")


class Fetcher(Protocol):
    """Protocol for URL fetchers."""

    async def fetch(self, url: str, timeout: float | None = None) -> Response:
        """Fetch a URL once and return the response, raising FetchError on failure."""
        ...
