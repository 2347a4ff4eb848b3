"""Deterministic merge and staleness policy.

No fetching or payload parsing happens here; the ingestion boundary hands
over already-normalized records.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta
from enum import StrEnum


class MergeMode(StrEnum):
    MIN = "min"
    PRIORITY = "priority"
    AVERAGE = "average"


def source_rank(source: str, priority: Sequence[str]) -> tuple[int, str]:
    """Sort key: listed sources by position, unlisted ones after them by name."""
    try:
        return (priority.index(source), source)
    except ValueError:
        return (len(priority), source)


def complete_ranking(priority: Sequence[str], sources: Iterable[str]) -> tuple[str, ...]:
    """``priority`` followed by the remaining ``sources`` in their given order."""
    listed = tuple(priority)
    return listed + tuple(name for name in sources if name not in listed)


def is_stale(generated_at: datetime, now: datetime, stale_after: timedelta) -> bool:
    """A snapshot is stale once ``stale_after`` has elapsed since generation."""
    return now - generated_at >= stale_after
