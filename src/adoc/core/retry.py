"""Retry policy with exponential backoff around a single-shot fetcher."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from ..errors import Exhausted, FetchError
from .protocols import Fetcher, Response

logger = logging.getLogger(__name__)


@dataclass
class RetryState:
    """Attempt bookkeeping for one fetch-with-retry call."""
    url: str
    attempts: int = 0
    last_error: FetchError | None = None
    delays: list[float] = field(default_factory=list)


class RetryPolicy:
    """Retries transient fetch failures with capped exponential backoff.

    Timeouts, connection failures and 5xx responses are retried. 4xx responses
    and malformed pages fail on the first attempt.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        max_attempts: int = 3,
        base_delay: float = 0.5,
        max_delay: float = 10.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if base_delay < 0 or max_delay < 0:
            raise ValueError("delays must not be negative")
        self.fetcher = fetcher
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        """Backoff before the attempt following failed attempt number ``attempt``."""
        return min(self.base_delay * 2 ** (attempt - 1), self.max_delay)

    async def fetch_with_retry(
        self,
        url: str,
        timeout: float | None = None,
        state: RetryState | None = None,
    ) -> Response:
        """Fetch a URL, retrying transient failures.

        Pass a RetryState to read the attempt count after the call returns.
        """
        if state is None:
            state = RetryState(url=url)

        while True:
            state.attempts += 1
            try:
                return await self.fetcher.fetch(url, timeout=timeout)
            except FetchError as e:
                state.last_error = e

            if not state.last_error.transient or state.attempts >= self.max_attempts:
                raise Exhausted(url, state.last_error, state.attempts)

            delay = self.delay_for(state.attempts)
            state.delays.append(delay)
            logger.warning(
                "Retry %d/%d for %s after %.2fs (%s)",
                state.attempts, self.max_attempts - 1, url, delay, state.last_error.kind,
            )
            await self._sleep(delay)
