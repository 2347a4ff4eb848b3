from __future__ import annotations

import asyncio

import pytest

from pyfuelprices.exceptions import (
    FuelDeadlineExceededError,
    FuelPermanentFetchError,
    FuelTransientFetchError,
)
from pyfuelprices.fetch.executor import FetchExecutor, summarize_sources
from pyfuelprices.fetch.retry import RetryPolicy
from pyfuelprices.models.prices import FuelType, PartialRecord
from pyfuelprices.sources.base import ALL, AdapterKind


class _ScriptedAdapter:
    """Replays a scripted sequence of errors before returning a record."""

    def __init__(
        self,
        name: str,
        *,
        kind: AdapterKind = AdapterKind.PER_LOCATION,
        errors: list[Exception] | None = None,
        price: float = 50.0,
    ) -> None:
        self.name = name
        self.kind = kind
        self._errors = list(errors or [])
        self._price = price
        self.calls: list[str] = []

    async def fetch(self, target: str) -> PartialRecord:
        self.calls.append(target)
        if self._errors:
            raise self._errors.pop(0)
        key = "ANKARA" if target == ALL else target.upper()
        return PartialRecord(source=self.name, prices={key: {FuelType.DIESEL: self._price}})


class _SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.mark.asyncio
async def test_rate_limited_job_retries_with_exponential_backoff() -> None:
    sleep = _SleepRecorder()
    adapter = _ScriptedAdapter(
        "api",
        errors=[
            FuelTransientFetchError("HTTP 429", status_code=429),
            FuelTransientFetchError("HTTP 429", status_code=429),
        ],
    )
    executor = FetchExecutor(retry_policy=RetryPolicy(max_retries=3, base_delay=0.5), sleep=sleep)

    outcomes = await executor.run_all([adapter], ["Ankara"])

    assert len(outcomes) == 1
    assert outcomes[0].error is None
    assert outcomes[0].has_data
    assert adapter.calls == ["Ankara", "Ankara", "Ankara"]
    assert sleep.delays == [0.5, 1.0]
    assert sum(sleep.delays) >= 0.5 + 2 * 0.5


def test_backoff_delay_is_capped() -> None:
    policy = RetryPolicy(max_retries=10, base_delay=1.0, max_delay=5.0)
    assert [policy.delay_for(n) for n in range(5)] == [1.0, 2.0, 4.0, 5.0, 5.0]


@pytest.mark.asyncio
async def test_transient_failure_surfaces_after_retries_exhausted() -> None:
    sleep = _SleepRecorder()
    adapter = _ScriptedAdapter("api", errors=[FuelTransientFetchError("HTTP 503", status_code=503)] * 5)
    executor = FetchExecutor(retry_policy=RetryPolicy(max_retries=2, base_delay=1.0), sleep=sleep)

    outcomes = await executor.run_all([adapter], ["Ankara"])

    assert isinstance(outcomes[0].error, FuelTransientFetchError)
    assert outcomes[0].error.source == "api"
    assert outcomes[0].record is None
    assert len(adapter.calls) == 3
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_permanent_failure_is_not_retried() -> None:
    sleep = _SleepRecorder()
    adapter = _ScriptedAdapter("api", errors=[FuelPermanentFetchError("HTTP 401", status_code=401)])
    executor = FetchExecutor(retry_policy=RetryPolicy(max_retries=3), sleep=sleep)

    outcomes = await executor.run_all([adapter], ["Ankara"])

    assert isinstance(outcomes[0].error, FuelPermanentFetchError)
    assert adapter.calls == ["Ankara"]
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_concurrency_limit_bounds_in_flight_calls() -> None:
    in_flight = 0
    peak = 0

    class _SlowAdapter:
        name = "slow"
        kind = AdapterKind.PER_LOCATION

        async def fetch(self, target: str) -> PartialRecord:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return PartialRecord(source=self.name, prices={target: {FuelType.LPG: 20.0}})

    executor = FetchExecutor(concurrency_limit=3)
    locations = [f"CITY{i}" for i in range(10)]

    outcomes = await executor.run_all([_SlowAdapter()], locations)

    assert peak == 3
    assert [outcome.target for outcome in outcomes] == locations
    assert all(outcome.has_data for outcome in outcomes)


@pytest.mark.asyncio
async def test_one_failing_source_does_not_affect_siblings() -> None:
    good = _ScriptedAdapter("good")
    bad = _ScriptedAdapter("bad", errors=[RuntimeError("boom"), RuntimeError("boom")])
    executor = FetchExecutor(retry_policy=RetryPolicy(max_retries=0))

    outcomes = await executor.run_all([bad, good], ["Ankara", "Izmir"])

    by_source = {(o.source, o.target): o for o in outcomes}
    assert by_source[("good", "Ankara")].has_data
    assert by_source[("good", "Izmir")].has_data
    assert by_source[("bad", "Ankara")].error is not None
    assert by_source[("bad", "Izmir")].error is not None


@pytest.mark.asyncio
async def test_bulk_adapter_runs_once_per_refresh() -> None:
    bulk = _ScriptedAdapter("brand", kind=AdapterKind.BULK)
    executor = FetchExecutor()

    outcomes = await executor.run_all([bulk], ["Ankara", "Izmir", "Bursa"])

    assert bulk.calls == [ALL]
    assert len(outcomes) == 1


@pytest.mark.asyncio
async def test_deadline_keeps_completed_outcomes() -> None:
    class _HangingAdapter:
        name = "hanging"
        kind = AdapterKind.BULK

        async def fetch(self, target: str) -> PartialRecord:
            await asyncio.Event().wait()
            raise AssertionError("unreachable")

    fast = _ScriptedAdapter("fast", kind=AdapterKind.BULK)
    executor = FetchExecutor(concurrency_limit=2)

    outcomes = await executor.run_all([fast, _HangingAdapter()], [], deadline=0.05)

    assert outcomes[0].source == "fast"
    assert outcomes[0].has_data
    assert outcomes[1].source == "hanging"
    assert isinstance(outcomes[1].error, FuelDeadlineExceededError)


@pytest.mark.asyncio
async def test_no_adapters_yields_no_outcomes() -> None:
    assert await FetchExecutor().run_all([], ["Ankara"]) == []


def test_invalid_concurrency_limit_rejected() -> None:
    with pytest.raises(ValueError):
        FetchExecutor(concurrency_limit=0)


@pytest.mark.asyncio
async def test_summarize_sources_marks_failed_and_empty_sources() -> None:
    good = _ScriptedAdapter("good")
    bad = _ScriptedAdapter("bad", errors=[FuelPermanentFetchError("HTTP 403", status_code=403)])

    class _EmptyAdapter:
        name = "empty"
        kind = AdapterKind.BULK

        async def fetch(self, target: str) -> PartialRecord:
            return PartialRecord(source=self.name, issues=["RAPIDAPI_KEY missing"])

    adapters = [good, bad, _EmptyAdapter()]
    outcomes = await FetchExecutor().run_all(adapters, ["Ankara"])
    statuses = {status.name: status for status in summarize_sources(adapters, outcomes)}

    assert statuses["good"].succeeded
    assert statuses["good"].locations == 1
    assert statuses["good"].error is None
    assert not statuses["bad"].succeeded
    assert "HTTP 403" in (statuses["bad"].error or "")
    assert not statuses["empty"].succeeded
    assert statuses["empty"].error == "RAPIDAPI_KEY missing"
