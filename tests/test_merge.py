from __future__ import annotations

import itertools

import pytest

from pyfuelprices.models.prices import FuelType, PartialRecord
from pyfuelprices.state.merge import cross_source_average, merge, resolve
from pyfuelprices.state.policy import MergeMode, complete_ranking, source_rank


def _partial(source: str, prices: dict[str, dict[FuelType, float]]) -> PartialRecord:
    return PartialRecord(source=source, prices=prices)


def _three_brands() -> list[PartialRecord]:
    return [
        _partial("opet", {"ANKARA": {FuelType.GASOLINE: 54.10}}),
        _partial("shell", {"ANKARA": {FuelType.GASOLINE: 53.80}}),
        _partial("petrol_ofisi", {"ANKARA": {FuelType.GASOLINE: 55.00}}),
    ]


def test_min_mode_keeps_lowest_reading() -> None:
    merged = merge(_three_brands(), MergeMode.MIN)

    entry = merged["ANKARA"][FuelType.GASOLINE]
    assert entry.price == 53.80
    assert entry.readings == {"opet": 54.10, "petrol_ofisi": 55.00, "shell": 53.80}
    assert entry.sources == ["opet", "petrol_ofisi", "shell"]


def test_average_mode_rounds_to_two_decimals() -> None:
    merged = merge(_three_brands(), MergeMode.AVERAGE)

    entry = merged["ANKARA"][FuelType.GASOLINE]
    assert entry.price == 54.30
    assert entry.average == 54.30


def test_average_is_reported_in_every_mode() -> None:
    partials = [
        _partial("a", {"IZMIR": {FuelType.DIESEL: 50.0}}),
        _partial("b", {"IZMIR": {FuelType.DIESEL: 50.02}}),
    ]
    entry = merge(partials, MergeMode.MIN)["IZMIR"][FuelType.DIESEL]

    assert entry.price == 50.0
    assert entry.average == 50.01


def test_priority_mode_prefers_ranked_source_and_fills_gaps() -> None:
    partials = [
        _partial("B", {"X": {FuelType.GASOLINE: 53.0, FuelType.DIESEL: 50.0}}),
        _partial("A", {"X": {FuelType.GASOLINE: 54.0}}),
    ]

    merged = merge(partials, MergeMode.PRIORITY, ["A", "B"])

    assert {fuel: entry.price for fuel, entry in merged["X"].items()} == {
        FuelType.GASOLINE: 54.0,
        FuelType.DIESEL: 50.0,
    }
    assert merged["X"][FuelType.GASOLINE].sources == ["A", "B"]


def test_priority_mode_ranks_unlisted_sources_last_alphabetically() -> None:
    partials = [
        _partial("zeta", {"X": {FuelType.GASOLINE: 1.0}}),
        _partial("alpha", {"X": {FuelType.GASOLINE: 2.0}}),
    ]

    assert merge(partials, MergeMode.PRIORITY, ["listed"])["X"][FuelType.GASOLINE].price == 2.0
    assert source_rank("listed", ["listed"]) < source_rank("alpha", ["listed"])


def test_complete_ranking_appends_unlisted_sources_in_given_order() -> None:
    assert complete_ranking((), ["zeta", "alpha"]) == ("zeta", "alpha")
    assert complete_ranking(["alpha"], ["zeta", "mid", "alpha"]) == ("alpha", "zeta", "mid")

    partials = [
        _partial("zeta", {"X": {FuelType.GASOLINE: 54.0}}),
        _partial("alpha", {"X": {FuelType.GASOLINE: 53.0, FuelType.DIESEL: 50.0}}),
    ]
    merged = merge(partials, MergeMode.PRIORITY, complete_ranking((), ["zeta", "alpha"]))

    assert {fuel: entry.price for fuel, entry in merged["X"].items()} == {
        FuelType.GASOLINE: 54.0,
        FuelType.DIESEL: 50.0,
    }


def test_merge_is_independent_of_arrival_order() -> None:
    partials = [
        *_three_brands(),
        _partial("opet", {"IZMIR": {FuelType.LPG: 24.5}}),
        _partial("collectapi", {"ANKARA": {FuelType.GASOLINE: 53.99, FuelType.DIESEL: 51.2}}),
    ]

    for mode in MergeMode:
        results = {
            merge(list(order), mode, ["shell", "opet"]).__repr__()
            for order in itertools.permutations(partials)
        }
        assert len(results) == 1


def test_pairs_without_readings_are_absent() -> None:
    partials = [
        _partial("opet", {"ANKARA": {FuelType.GASOLINE: 54.10}}),
        _partial("shell", {}),
    ]

    merged = merge(partials)

    assert set(merged) == {"ANKARA"}
    assert set(merged["ANKARA"]) == {FuelType.GASOLINE}


def test_invalid_prices_never_reach_the_merge() -> None:
    record = PartialRecord(
        source="broken",
        prices={
            "ANKARA": {FuelType.GASOLINE: 0.0, FuelType.DIESEL: float("nan")},
            "": {FuelType.LPG: 20.0},
            "IZMIR": {FuelType.LPG: -3.0},
        },
    )

    assert record.is_empty
    assert merge([record]) == {}


def test_repeated_readings_from_one_source_keep_lowest() -> None:
    partials = [
        _partial("opet", {"ANKARA": {FuelType.DIESEL: 52.0}}),
        _partial("opet", {"ANKARA": {FuelType.DIESEL: 51.5}}),
    ]

    entry = merge(partials)["ANKARA"][FuelType.DIESEL]

    assert entry.readings == {"opet": 51.5}


def test_cross_source_average_empty_is_none() -> None:
    assert cross_source_average({}) is None


@pytest.mark.parametrize("mode", list(MergeMode))
def test_resolve_without_readings_raises(mode: MergeMode) -> None:
    with pytest.raises(ValueError, match="without readings"):
        resolve({}, mode)


def test_resolve_average_matches_cross_source_average() -> None:
    readings = {"opet": 54.10, "shell": 53.80, "petrol_ofisi": 55.00}

    assert resolve(readings, MergeMode.AVERAGE) == cross_source_average(readings) == 54.3


def test_partial_record_flattens_to_readings() -> None:
    record = _partial("opet", {"ANKARA": {FuelType.GASOLINE: 54.1, FuelType.LPG: 24.3}})

    readings = record.readings()

    assert [(location, reading.fuel_type, reading.price) for location, reading in readings] == [
        ("ANKARA", FuelType.GASOLINE, 54.1),
        ("ANKARA", FuelType.LPG, 24.3),
    ]
