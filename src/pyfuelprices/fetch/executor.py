"""Fetch executor: fans a refresh out over a fixed-size worker pool.

The pool size is a backpressure bound for rate-limited upstreams. Every
unit of work is isolated: its failure becomes a :class:`FetchOutcome`
error and never cancels or hides its siblings.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Iterable, Sequence

from pyfuelprices.exceptions import (
    FuelDeadlineExceededError,
    FuelError,
    FuelFetchError,
    FuelPermanentFetchError,
)
from pyfuelprices.fetch.retry import RetryPolicy, Sleep, call_with_retry
from pyfuelprices.models.prices import PartialRecord
from pyfuelprices.models.snapshot import SourceStatus
from pyfuelprices.sources.base import ALL, AdapterKind, SourceAdapter

_logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class FetchOutcome:
    """Result of one unit of work: a record or an error, never both."""

    source: str
    target: str
    record: PartialRecord | None = None
    error: FuelFetchError | None = None

    @property
    def has_data(self) -> bool:
        return self.record is not None and not self.record.is_empty


@dataclasses.dataclass(frozen=True, slots=True)
class _Job:
    adapter: SourceAdapter
    target: str

    @property
    def label(self) -> str:
        return f"{self.adapter.name}[{self.target}]"


class FetchExecutor:
    """Run source adapters under a concurrency limit with retry/backoff.

    Parameters
    ----------
    concurrency_limit : int
        Number of workers; at most this many upstream calls are in flight.
    retry_policy : RetryPolicy
        Applied to each unit of work independently.
    sleep : callable
        Backoff sleep, injectable for tests.
    """

    def __init__(
        self,
        *,
        concurrency_limit: int = 3,
        retry_policy: RetryPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if concurrency_limit < 1:
            raise ValueError(f"concurrency_limit must be >= 1, got {concurrency_limit}")
        self._concurrency_limit = concurrency_limit
        self._retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep

    @staticmethod
    def plan(adapters: Sequence[SourceAdapter], locations: Iterable[str]) -> list[_Job]:
        """One job per bulk adapter, one per (per-location adapter, location)."""
        location_list = list(locations)
        jobs: list[_Job] = []
        for adapter in adapters:
            if adapter.kind == AdapterKind.BULK:
                jobs.append(_Job(adapter, ALL))
            else:
                jobs.extend(_Job(adapter, location) for location in location_list)
        return jobs

    async def run_all(
        self,
        adapters: Sequence[SourceAdapter],
        locations: Iterable[str],
        *,
        deadline: float | None = None,
    ) -> list[FetchOutcome]:
        """Run every job and return outcomes in plan order.

        When *deadline* seconds elapse, unfinished jobs are cancelled and
        reported as :class:`FuelDeadlineExceededError`; finished ones are
        kept.
        """
        jobs = self.plan(adapters, locations)
        if not jobs:
            return []

        queue: asyncio.Queue[tuple[int, _Job]] = asyncio.Queue()
        for index, job in enumerate(jobs):
            queue.put_nowait((index, job))

        outcomes: dict[int, FetchOutcome] = {}
        workers = [
            asyncio.create_task(self._worker(queue, outcomes))
            for _ in range(min(self._concurrency_limit, len(jobs)))
        ]
        timeout = deadline if deadline is not None and deadline > 0 else None
        _, pending = await asyncio.wait(workers, timeout=timeout)
        if pending:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            _logger.warning(
                "Refresh deadline of %.1fs reached with %d of %d jobs unfinished",
                deadline,
                len(jobs) - len(outcomes),
                len(jobs),
            )

        results: list[FetchOutcome] = []
        for index, job in enumerate(jobs):
            outcome = outcomes.get(index)
            if outcome is None:
                outcome = FetchOutcome(
                    source=job.adapter.name,
                    target=job.target,
                    error=FuelDeadlineExceededError(
                        f"{job.label} unfinished at deadline",
                        source=job.adapter.name,
                    ),
                )
            results.append(outcome)
        return results

    async def _worker(self, queue: asyncio.Queue[tuple[int, _Job]], outcomes: dict[int, FetchOutcome]) -> None:
        while True:
            try:
                index, job = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            outcomes[index] = await self._run_job(job)

    async def _run_job(self, job: _Job) -> FetchOutcome:
        name = job.adapter.name
        try:
            record = await call_with_retry(
                lambda: job.adapter.fetch(job.target),
                self._retry_policy,
                label=job.label,
                sleep=self._sleep,
            )
        except FuelFetchError as exc:
            if not exc.source:
                exc.source = name
            _logger.warning("%s failed: %s", job.label, exc)
            return FetchOutcome(source=name, target=job.target, error=exc)
        except FuelError as exc:
            _logger.warning("%s failed: %s", job.label, exc)
            error = FuelPermanentFetchError(str(exc), source=name)
            return FetchOutcome(source=name, target=job.target, error=error)
        except Exception as exc:
            _logger.warning("%s raised unexpectedly", job.label, exc_info=True)
            error = FuelFetchError(f"unexpected error: {exc!r}", source=name)
            return FetchOutcome(source=name, target=job.target, error=error)
        return FetchOutcome(source=name, target=job.target, record=record)


def summarize_sources(adapters: Sequence[SourceAdapter], outcomes: Sequence[FetchOutcome]) -> list[SourceStatus]:
    """Per-source status in adapter order.

    A source succeeded when at least one of its jobs produced data.
    """
    statuses: list[SourceStatus] = []
    for adapter in adapters:
        own = [outcome for outcome in outcomes if outcome.source == adapter.name]
        locations: set[str] = set()
        for outcome in own:
            if outcome.record is not None:
                locations.update(outcome.record.prices)
        error: str | None = None
        if not locations:
            error = next((str(o.error) for o in own if o.error is not None), None)
            if error is None:
                error = next((o.record.issues[0] for o in own if o.record is not None and o.record.issues), None)
            error = error or "no data"
        statuses.append(
            SourceStatus(
                name=adapter.name,
                succeeded=bool(locations),
                locations=len(locations),
                error=error,
            )
        )
    return statuses
