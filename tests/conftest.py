"""Shared test helpers."""

import asyncio

from adoc.core import Response
from adoc.errors import FetchError, HttpStatusError

DOCS = "https://developer.apple.com/documentation"


def doc_page(title: str, *links: str, body: str = "") -> str:
    """Build a minimal documentation page linking to the given hrefs."""
    anchors = "\n".join(f'<a href="{href}">{href}</a>' for href in links)
    return f"""
    <html>
    <head><title>{title} | Apple Developer Documentation</title></head>
    <body>
        <main>
            <h1>{title}</h1>
            <article>
                <p>{body or f"About {title}."}</p>
                {anchors}
            </article>
        </main>
    </body>
    </html>
    """


class FakeFetcher:
    """In-memory fetcher serving pages from a dict; unknown URLs are 404s.

    A value may be HTML, a FetchError to raise, or a list of either that is
    consumed one item per call.
    """

    def __init__(self, pages: dict, delay: float = 0.0):
        self.pages = pages
        self.delay = delay
        self.calls: list[str] = []
        self.active = 0
        self.peak = 0

    async def fetch(self, url: str, timeout: float | None = None) -> Response:
        self.calls.append(url)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self.delay)
            outcome = self.pages.get(url)
            if isinstance(outcome, list):
                outcome = outcome.pop(0) if len(outcome) > 1 else outcome[0]
            if outcome is None:
                raise HttpStatusError(url, 404)
            if isinstance(outcome, FetchError):
                raise outcome
            return Response(
                url=url,
                status=200,
                content=outcome.encode("utf-8"),
                headers={"content-type": "text/html; charset=utf-8"},
            )
        finally:
            self.active -= 1
