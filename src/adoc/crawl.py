"""Crawler engine with async concurrency."""

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlparse

import typer

from .config import settings
from .core import Fetcher, HttpFetcher, RetryPolicy, RetryState
from .errors import Exhausted, InvalidUrl, SeedsUnreachable
from .extract import ParsedPage, extract_page
from .frontier import CrawlTask, Frontier
from .output import CrawlResult, ResultSink
from .search import SearchResolver, resolve_input
from .urls import in_scope, normalize_url

logger = logging.getLogger(__name__)


class VisitStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    EXHAUSTED = "exhausted"


@dataclass
class VisitRecord:
    """Outcome of one dequeued URL. Only the worker that dequeued it writes to it."""
    url: str
    depth: int
    status: VisitStatus = VisitStatus.PENDING
    error: Exception | None = None
    attempts: int = 0


class CrawlerEngine:
    """Async crawler engine with a fixed pool of workers.

    Workers share one Frontier. A worker only gives up when the frontier is
    empty and no sibling is still processing a page, since that sibling may
    yet enqueue new links.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        concurrency: int = 5,
        recursive: bool = False,
        max_depth: int | None = None,
        max_attempts: int = 3,
        base_delay: float = 0.5,
        max_delay: float = 10.0,
        timeout: float | None = None,
        max_results: int | None = None,
        allowed_hosts: set[str] | None = None,
        path_prefix: str = settings.path_prefix,
        extractor: Callable[[str, str], ParsedPage] = extract_page,
        retry: RetryPolicy | None = None,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        if max_depth is not None and max_depth < 0:
            raise ValueError("max_depth must not be negative")
        if max_results is not None and max_results < 1:
            raise ValueError("max_results must be at least 1")

        self.concurrency = concurrency
        self.recursive = recursive
        # Without recursion only the seeds themselves are fetched
        self.max_depth = max_depth if recursive else 0
        self.timeout = timeout
        self.max_results = max_results
        self.allowed_hosts = allowed_hosts
        self.path_prefix = path_prefix
        self.extractor = extractor
        self.retry = retry or RetryPolicy(
            fetcher,
            max_attempts=max_attempts,
            base_delay=base_delay,
            max_delay=max_delay,
        )

        self.frontier = Frontier()
        self.visits: dict[str, VisitRecord] = {}
        self.results_produced = 0
        self.peak_in_flight = 0
        self._in_flight = 0
        self._idle = asyncio.Condition()
        self._stopped = False
        self._started = False

    def _in_scope(self, url: str) -> bool:
        return in_scope(url, self.allowed_hosts or set(), self.path_prefix)

    def _should_follow(self, depth: int) -> bool:
        return self.max_depth is None or depth < self.max_depth

    async def _seed(self, seed_urls: Iterable[str]) -> list[str]:
        seeds = []
        invalid: InvalidUrl | None = None
        for url in seed_urls:
            try:
                url = normalize_url(url)
            except InvalidUrl as e:
                logger.warning("Skipping seed: %s", e)
                invalid = e
                continue
            if await self.frontier.enqueue(url, depth=0):
                seeds.append(url)

        if not seeds:
            if invalid is not None:
                raise invalid
            raise ValueError("At least one seed URL is required")

        if self.allowed_hosts is None:
            self.allowed_hosts = {urlparse(url).netloc for url in seeds}
        return seeds

    async def _next_task(self) -> CrawlTask | None:
        """Dequeue the next task, waiting while siblings may still add work."""
        async with self._idle:
            while True:
                if self._stopped:
                    return None
                task = await self.frontier.dequeue()
                if task is not None:
                    self._in_flight += 1
                    self.peak_in_flight = max(self.peak_in_flight, self._in_flight)
                    return task
                if self._in_flight == 0:
                    self._idle.notify_all()
                    return None
                await self._idle.wait()

    async def _task_done(self):
        async with self._idle:
            self._in_flight -= 1
            self._idle.notify_all()

    def _emit(self, result: CrawlResult, results: asyncio.Queue):
        if self.max_results is not None and self.results_produced >= self.max_results:
            logger.debug("Result cap reached, dropping %s", result.url)
            return
        self.results_produced += 1
        results.put_nowait(result)
        if self.max_results is not None and self.results_produced >= self.max_results:
            self.stop()

    async def _process_url(self, task: CrawlTask, results: asyncio.Queue):
        """Fetch, extract and expand a single URL."""
        record = VisitRecord(url=task.url, depth=task.depth)
        self.visits[task.url] = record
        logger.debug("Fetching %s (depth %d)", task.url, task.depth)

        state = RetryState(url=task.url)
        try:
            response = await self.retry.fetch_with_retry(task.url, timeout=self.timeout, state=state)
            page = self.extractor(response.text, response.url)
        except Exhausted as e:
            record.error = e
            record.status = VisitStatus.EXHAUSTED if e.last_error.transient else VisitStatus.FAILED
            logger.warning("Skipping %s: %s", task.url, e)
            return
        except Exception as e:
            record.error = e
            record.status = VisitStatus.FAILED
            logger.exception("Unexpected error processing %s", task.url)
            return
        finally:
            record.attempts = state.attempts

        links = [link for link in page.links if self._in_scope(link)]

        self._emit(CrawlResult(
            url=response.url,
            title=page.title,
            content=page.content,
            related_links=tuple(links),
            depth=task.depth,
        ), results)
        record.status = VisitStatus.SUCCESS

        # Extract and queue new links
        if self._should_follow(task.depth) and not self._stopped:
            added = 0
            for link in links:
                if await self.frontier.enqueue(link, task.depth + 1, source_url=task.url):
                    added += 1
            logger.debug("Queued %d new link(s) from %s", added, task.url)

    async def _worker(self, worker_id: int, results: asyncio.Queue):
        """Worker coroutine that processes URLs from the frontier."""
        while True:
            task = await self._next_task()
            if task is None:
                logger.debug("Worker %d finished", worker_id)
                return
            try:
                await self._process_url(task, results)
            finally:
                await self._task_done()

    async def _supervise(self, workers: list[asyncio.Task], results: asyncio.Queue):
        try:
            await asyncio.gather(*workers)
        finally:
            results.put_nowait(None)

    async def run(self, seed_urls: Iterable[str]) -> AsyncIterator[CrawlResult]:
        """Crawl from the seed URLs, yielding results as pages complete.

        Raises SeedsUnreachable when every seed failed and nothing was produced.
        """
        if self._started:
            raise RuntimeError("CrawlerEngine.run() can only be called once")
        self._started = True

        seeds = await self._seed(seed_urls)
        results: asyncio.Queue[CrawlResult | None] = asyncio.Queue()

        # Start workers
        workers = [
            asyncio.create_task(self._worker(i, results))
            for i in range(self.concurrency)
        ]
        supervisor = asyncio.create_task(self._supervise(workers, results))

        try:
            while True:
                result = await results.get()
                if result is None:
                    break
                yield result
            await supervisor
        finally:
            pending = [task for task in (*workers, supervisor) if not task.done()]
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        failures = {
            url: self.visits[url].error
            for url in seeds
            if url in self.visits and self.visits[url].error is not None
        }
        if self.results_produced == 0 and len(failures) == len(seeds):
            raise SeedsUnreachable(failures)

    def stop(self):
        """Stop dequeuing new URLs; pages already in flight still complete."""
        self._stopped = True

    def failed_count(self) -> int:
        return sum(1 for record in self.visits.values() if record.error is not None)

    def stats(self) -> dict:
        """Get visit statistics."""
        stats = {status.value: 0 for status in VisitStatus}
        for record in self.visits.values():
            stats[record.status.value] += 1
        stats["queued"] = self.frontier.pending_count()
        stats["seen"] = self.frontier.seen_count()
        stats["peak_in_flight"] = self.peak_in_flight
        return stats


async def run_crawl(
    input_text: str,
    recursive: bool = False,
    max_depth: int | None = None,
    concurrency: int = settings.concurrency,
    max_attempts: int = settings.max_attempts,
    timeout: float = settings.timeout,
    max_results: int | None = None,
    sink: ResultSink | None = None,
) -> ResultSink:
    """Resolve the input to seed URLs, crawl them and collect the results."""
    if sink is None:
        sink = ResultSink()

    async with HttpFetcher(
        timeout=timeout,
        user_agent=settings.user_agent,
        max_connections=settings.max_connections,
        max_keepalive_connections=settings.max_keepalive_connections,
    ) as fetcher:
        retry = RetryPolicy(
            fetcher,
            max_attempts=max_attempts,
            base_delay=settings.base_delay,
            max_delay=settings.max_delay,
        )
        seeds = await resolve_input(input_text, SearchResolver(retry))
        typer.echo(f"Starting crawl from {len(seeds)} seed URL(s)", err=True)
        typer.echo(
            f"Recursive: {recursive}, Max depth: {max_depth}, Concurrency: {concurrency}",
            err=True,
        )

        engine = CrawlerEngine(
            fetcher,
            concurrency=concurrency,
            recursive=recursive,
            max_depth=max_depth,
            max_results=max_results,
            allowed_hosts={settings.allowed_host} | {urlparse(url).netloc for url in seeds},
            retry=retry,
        )

        start_time = time.time()
        async for result in engine.run(seeds):
            sink.add(result)
            typer.echo(f"[{len(sink)}] {result.url}", err=True)
        elapsed = time.time() - start_time

    sink.failed = engine.failed_count()
    typer.echo(f"\nCrawl complete: {len(sink)} pages in {elapsed:.1f}s", err=True)
    typer.echo(f"Queue stats: {engine.stats()}", err=True)
    return sink
