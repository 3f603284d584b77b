"""URL frontier: FIFO queue of pending URLs plus the set of URLs ever enqueued."""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass

from .urls import normalize_url

logger = logging.getLogger(__name__)


@dataclass
class CrawlTask:
    """A URL to crawl with metadata."""
    url: str
    depth: int
    source_url: str | None = None
    added_at: float = 0.0

    def __post_init__(self):
        if self.added_at == 0.0:
            self.added_at = time.time()


class Frontier:
    """In-memory URL frontier with exact deduplication.

    A URL is recorded as seen the moment it is enqueued, so a link discovered
    by several workers at once is only queued once. Seen URLs are never
    forgotten for the lifetime of the frontier.
    """

    def __init__(self):
        self._queue: deque[CrawlTask] = deque()
        self._seen: set[str] = set()
        self._lock = asyncio.Lock()

    async def enqueue(self, url: str, depth: int, source_url: str | None = None) -> bool:
        """Add a URL to the frontier. Returns False if already seen.

        Raises InvalidUrl if the URL cannot be normalized.
        """
        url = normalize_url(url)
        async with self._lock:
            if url in self._seen:
                return False
            self._seen.add(url)
            self._queue.append(CrawlTask(url=url, depth=depth, source_url=source_url))
        return True

    async def add_many(self, tasks: list[CrawlTask]) -> int:
        """Add multiple URLs. Returns count of new URLs added."""
        added = 0
        for task in tasks:
            if await self.enqueue(task.url, task.depth, task.source_url):
                added += 1
        return added

    async def dequeue(self) -> CrawlTask | None:
        """Pop the oldest pending task, or None when the frontier is empty."""
        async with self._lock:
            if not self._queue:
                return None
            return self._queue.popleft()

    def is_seen(self, url: str) -> bool:
        """Check if URL was already enqueued."""
        return normalize_url(url) in self._seen

    def pending_count(self) -> int:
        """Get count of pending URLs."""
        return len(self._queue)

    def seen_count(self) -> int:
        return len(self._seen)

    def __len__(self) -> int:
        return len(self._queue)
