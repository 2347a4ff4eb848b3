"""Staleness-driven refresh.

Per cache key the snapshot is ABSENT, FRESH or STALE:

* ABSENT: the first read refreshes synchronously.
* STALE: a read returns the stale snapshot immediately and starts a
  background refresh; readers are never blocked once a snapshot exists.
* A failed refresh keeps the previous snapshot current; the next stale read
  tries again.
* An unreachable store reads as "no data" and never triggers a refresh.

At most one refresh runs at a time. A refresh requested while another is in
flight joins it instead of hitting the upstreams again.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import UTC, datetime, timedelta
from enum import StrEnum

from pyfuelprices.exceptions import FuelError, FuelRefreshError, FuelSnapshotWriteError
from pyfuelprices.fetch.executor import FetchExecutor, summarize_sources
from pyfuelprices.models.snapshot import Snapshot
from pyfuelprices.sources.base import SourceAdapter
from pyfuelprices.state.merge import merge
from pyfuelprices.state.policy import MergeMode, complete_ranking, is_stale
from pyfuelprices.state.store import SnapshotStore

_logger = logging.getLogger(__name__)

Refresher = Callable[[], Awaitable[Snapshot]]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CacheState(StrEnum):
    ABSENT = "absent"
    FRESH = "fresh"
    STALE = "stale"


class SnapshotRefresher:
    """One full refresh cycle: fetch all sources, merge, store.

    Raises :class:`FuelRefreshError` when no source produced data or the
    snapshot could not be written; nothing is stored in either case.
    """

    def __init__(
        self,
        *,
        executor: FetchExecutor,
        adapters: Sequence[SourceAdapter],
        locations: Sequence[str],
        store: SnapshotStore,
        mode: MergeMode = MergeMode.MIN,
        priority: Sequence[str] = (),
        deadline: float | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._executor = executor
        self._adapters = list(adapters)
        self._locations = list(locations)
        self._store = store
        self._mode = mode
        self._priority = complete_ranking(priority, (adapter.name for adapter in self._adapters))
        self._deadline = deadline
        self._clock = clock

    async def __call__(self) -> Snapshot:
        outcomes = await self._executor.run_all(self._adapters, self._locations, deadline=self._deadline)
        statuses = summarize_sources(self._adapters, outcomes)
        records = merge(
            (outcome.record for outcome in outcomes if outcome.record is not None),
            self._mode,
            self._priority,
        )
        if not records:
            raise FuelRefreshError("no source returned any data", sources=statuses)

        snapshot = Snapshot(records=records, generated_at=self._clock(), sources=statuses, mode=self._mode)
        if not await self._store.save(snapshot):
            raise FuelSnapshotWriteError("kv write failed", sources=statuses)

        _logger.info(
            "Refresh stored %d locations; sources ok=%s failed=%s",
            snapshot.location_count,
            [s.name for s in statuses if s.succeeded],
            [s.name for s in statuses if not s.succeeded],
        )
        return snapshot


class RefreshCoordinator:
    """Serves snapshots and decides when to refresh them.

    Parameters
    ----------
    store : SnapshotStore
        Owner of the current snapshot.
    refresher : callable
        Coroutine function producing and storing a new snapshot.
    stale_after : timedelta
        Age after which a read triggers a background refresh.
    clock : callable
        Current UTC time, injectable for tests.
    """

    def __init__(
        self,
        store: SnapshotStore,
        refresher: Refresher,
        *,
        stale_after: timedelta,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._refresher = refresher
        self._stale_after = stale_after
        self._clock = clock
        self._inflight: asyncio.Task[Snapshot] | None = None
        self._latest: Snapshot | None = None

    @property
    def refresh_in_progress(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def state_of(self, snapshot: Snapshot | None) -> CacheState:
        if snapshot is None:
            return CacheState.ABSENT
        if is_stale(snapshot.generated_at, self._clock(), self._stale_after):
            return CacheState.STALE
        return CacheState.FRESH

    async def read(self) -> Snapshot | None:
        """Current snapshot, refreshing synchronously only when none exists.

        An unreachable store reads as ``None`` without touching the upstreams.
        """
        reachable, snapshot = await self._store.inspect()
        if not reachable:
            return None
        latest = self._latest
        if snapshot is not None and latest is not None and snapshot.generated_at < latest.generated_at:
            # Loaded before a refresh that has since completed.
            snapshot = latest
        state = self.state_of(snapshot)
        if state == CacheState.ABSENT:
            try:
                return await self.refresh()
            except FuelError as exc:
                _logger.warning("Initial refresh failed: %s", exc)
                return None
        if state == CacheState.STALE:
            self.schedule_refresh()
        return snapshot

    def schedule_refresh(self) -> bool:
        """Start a background refresh; ``False`` if one is already running."""
        if self.refresh_in_progress:
            return False
        _logger.debug("Scheduling background refresh")
        self._start()
        return True

    async def refresh(self) -> Snapshot:
        """Run a refresh now, or join the one in flight, and return its snapshot."""
        task = self._inflight if self.refresh_in_progress else None
        if task is None:
            task = self._start()
        # Shielded so a cancelled caller does not cancel a refresh others are joined to.
        return await asyncio.shield(task)

    def _start(self) -> asyncio.Task[Snapshot]:
        task = asyncio.create_task(self._run())
        self._inflight = task
        task.add_done_callback(self._on_done)
        return task

    async def _run(self) -> Snapshot:
        snapshot = await self._refresher()
        if self._latest is None or snapshot.generated_at >= self._latest.generated_at:
            self._latest = snapshot
        return snapshot

    def _on_done(self, task: asyncio.Task[Snapshot]) -> None:
        if self._inflight is task:
            self._inflight = None
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.warning("Refresh failed, keeping previous snapshot: %s", exc)

    async def close(self) -> None:
        """Cancel a refresh still running in the background."""
        task = self._inflight
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except FuelError:
            _logger.debug("Refresh failed during shutdown", exc_info=True)
