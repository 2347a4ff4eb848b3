"""Run the fuel price service: ``python -m pyfuelprices``."""

from __future__ import annotations

import argparse
import logging

from aiohttp import web

from pyfuelprices.config import FuelConfig
from pyfuelprices.server import build_app


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Serve cached fuel prices over HTTP.")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=3000)
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    web.run_app(build_app(FuelConfig.from_env()), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
