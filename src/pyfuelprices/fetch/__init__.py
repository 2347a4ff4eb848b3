"""Bounded-concurrency fetching with retry and backoff."""

from pyfuelprices.fetch.executor import FetchExecutor, FetchOutcome, summarize_sources
from pyfuelprices.fetch.retry import RetryPolicy, call_with_retry

__all__ = [
    "FetchExecutor",
    "FetchOutcome",
    "RetryPolicy",
    "call_with_retry",
    "summarize_sources",
]
