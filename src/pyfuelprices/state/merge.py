"""Merge engine: many partial records in, one record per location out.

The result depends only on the *set* of readings, never on the order the
partial records arrived in.
"""

from __future__ import annotations

import statistics
from collections.abc import Iterable, Sequence

from pyfuelprices.models.prices import FuelType, LocationKey, PartialRecord
from pyfuelprices.models.snapshot import MergedFuelPrice, MergedRecord
from pyfuelprices.state.policy import MergeMode, source_rank


def collect_readings(
    partials: Iterable[PartialRecord],
) -> dict[LocationKey, dict[FuelType, dict[str, float]]]:
    """Group readings as ``{location: {fuel: {source: price}}}``.

    Repeated readings from one source for the same pair keep the lowest.
    """
    grouped: dict[LocationKey, dict[FuelType, dict[str, float]]] = {}
    for partial in partials:
        for location, reading in partial.readings():
            by_source = grouped.setdefault(location, {}).setdefault(reading.fuel_type, {})
            current = by_source.get(partial.source)
            by_source[partial.source] = reading.price if current is None else min(current, reading.price)
    return grouped


def _rounded_mean(readings: dict[str, float]) -> float:
    # Sum in source order so the float result is order independent.
    return round(statistics.fmean(readings[source] for source in sorted(readings)), 2)


def cross_source_average(readings: dict[str, float]) -> float | None:
    """Mean of the per-source readings rounded to 2 decimals; ``None`` when empty."""
    if not readings:
        return None
    return _rounded_mean(readings)


def resolve(readings: dict[str, float], mode: MergeMode, priority: Sequence[str] = ()) -> float:
    """Pick the merged price for one non-empty ``{source: price}`` mapping."""
    if not readings:
        raise ValueError("Cannot resolve a price without readings")
    if mode == MergeMode.MIN:
        return min(readings.values())
    if mode == MergeMode.PRIORITY:
        winner = min(readings, key=lambda source: source_rank(source, priority))
        return readings[winner]
    if mode == MergeMode.AVERAGE:
        return _rounded_mean(readings)
    raise ValueError(f"Unsupported merge mode: {mode!r}")


def merge(
    partials: Iterable[PartialRecord],
    mode: MergeMode = MergeMode.MIN,
    priority: Sequence[str] = (),
) -> MergedRecord:
    """Combine partial records into one merged record.

    Parameters
    ----------
    partials : iterable of PartialRecord
        Records from any number of sources, in any order.
    mode : MergeMode
        ``MIN`` keeps the lowest reading, ``PRIORITY`` the reading of the
        highest-ranked source that reported the pair (lower-ranked sources
        only fill gaps), ``AVERAGE`` the rounded mean.
    priority : sequence of str
        Source ranking for ``PRIORITY``; unlisted sources rank after the
        listed ones, alphabetically.

    Returns
    -------
    MergedRecord
        Only pairs with at least one reading are present.
    """
    merged: MergedRecord = {}
    grouped = collect_readings(partials)
    for location in sorted(grouped):
        by_fuel = grouped[location]
        entry: dict[FuelType, MergedFuelPrice] = {}
        for fuel_type in sorted(by_fuel):
            readings = by_fuel[fuel_type]
            if not readings:
                continue
            entry[fuel_type] = MergedFuelPrice(
                price=resolve(readings, mode, priority),
                average=cross_source_average(readings),
                readings=dict(sorted(readings.items())),
            )
        if entry:
            merged[location] = entry
    return merged
