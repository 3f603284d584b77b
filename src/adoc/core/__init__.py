"""Core crawler components."""

from .fetcher import HttpFetcher
from .protocols import Fetcher, Response
from .retry import RetryPolicy, RetryState

__all__ = ["Fetcher", "Response", "HttpFetcher", "RetryPolicy", "RetryState"]
