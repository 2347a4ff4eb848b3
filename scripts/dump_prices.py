#!/usr/bin/env python3
"""Fetch every configured source once and print the merged prices.

Nothing is written to the key-value store unless ``--store`` is given, so
this is safe to run against production credentials when checking whether
a brand page or aggregator changed its format.

Usage
-----
Set environment variables and run::

    export COLLECTAPI_KEY="..."
    python scripts/dump_prices.py --location Ankara --location İzmir

Options::

    --location NAME     Only query this location (repeatable)
    --source NAME       Only run this source (repeatable)
    --mode MODE         Merge mode: min, priority, average
    --json              Output as machine-readable JSON
    --store             Run a full refresh through the cache instead
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

import aiohttp  # noqa: E402

from pyfuelprices import FetchExecutor, FuelConfig, FuelPriceClient, MergeMode, RetryPolicy, merge  # noqa: E402
from pyfuelprices._transport import HttpTransport  # noqa: E402
from pyfuelprices.client import build_adapters  # noqa: E402
from pyfuelprices.exceptions import FuelRefreshError  # noqa: E402
from pyfuelprices.fetch.executor import summarize_sources  # noqa: E402
from pyfuelprices.state.policy import complete_ranking  # noqa: E402


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


async def _dump(config: FuelConfig, sources: list[str], json_mode: bool) -> int:
    async with aiohttp.ClientSession() as session:
        transport = HttpTransport(session, request_timeout=config.request_timeout, trace=config.api_trace_enabled)
        adapters = build_adapters(config, transport)
        if sources:
            adapters = [adapter for adapter in adapters if adapter.name in sources]
        executor = FetchExecutor(
            concurrency_limit=config.concurrency_limit,
            retry_policy=RetryPolicy(
                max_retries=config.max_retries,
                base_delay=config.retry_base_delay,
                max_delay=config.retry_max_delay,
            ),
        )
        outcomes = await executor.run_all(adapters, config.locations, deadline=config.refresh_deadline or None)

    statuses = summarize_sources(adapters, outcomes)
    records = merge(
        (outcome.record for outcome in outcomes if outcome.record is not None),
        config.merge_mode,
        complete_ranking(config.source_priority, (adapter.name for adapter in adapters)),
    )

    if json_mode:
        payload = {
            "sources": [status.model_dump(mode="json") for status in statuses],
            "records": {
                location: {fuel.value: merged.model_dump(mode="json") for fuel, merged in by_fuel.items()}
                for location, by_fuel in records.items()
            },
        }
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return 0 if records else 1

    out = [_section("SOURCES")]
    for status in statuses:
        mark = "ok  " if status.succeeded else "FAIL"
        detail = f"{status.locations} locations" if status.succeeded else status.error
        out.append(f"  [{mark}] {status.name:<16} {detail}")

    out.append(_section(f"PRICES ({config.merge_mode})"))
    for location, by_fuel in records.items():
        cells = "  ".join(
            f"{fuel.value}={merged.price:.2f} (avg {merged.average:.2f}, {len(merged.readings)} src)"
            for fuel, merged in by_fuel.items()
        )
        out.append(f"  {location:<16} {cells}")
    print("\n".join(out))
    return 0 if records else 1


async def _store(config: FuelConfig) -> int:
    async with FuelPriceClient(config) as client:
        try:
            summary = await client.refresh()
        except FuelRefreshError as exc:
            print(f"Refresh failed: {exc}", file=sys.stderr)
            for status in exc.sources:
                print(f"  {status.name}: {status.error}", file=sys.stderr)
            return 1
    print(json.dumps(summary.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False))
    return 0


async def main() -> int:
    parser = argparse.ArgumentParser(description="Fetch and merge fuel prices once.")
    parser.add_argument("--location", action="append", default=[], help="Only query this location")
    parser.add_argument("--source", action="append", default=[], help="Only run this source")
    parser.add_argument("--mode", choices=[mode.value for mode in MergeMode], help="Merge mode")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--store", action="store_true", help="Refresh through the cache and store the snapshot")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    overrides: dict[str, object] = {}
    if args.location:
        overrides["locations"] = tuple(args.location)
    if args.mode:
        overrides["merge_mode"] = MergeMode(args.mode)
    config = FuelConfig.from_env(**overrides)

    if args.store:
        return await _store(config)
    return await _dump(config, args.source, args.json_mode)


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
