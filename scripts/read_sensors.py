#!/usr/bin/env python3
"""Read every pond metric once and print the results.

Usage
-----
Point the script at a sensor and run::

    export POND_URL="http://192.168.1.7/"
    export POND_ULTRASOUND_DISTANCE=120
    python scripts/read_sensors.py

Options::

    --url URL            Sensor endpoint (overrides POND_URL)
    --reference N        Ultrasound reference distance
    --correction N       Air temperature correction offset
    --timeout SECONDS    Fetch timeout
    --concurrent N       Issue N concurrent reads per metric (shows coalescing)
    --json               Output as machine-readable JSON
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pypond import Metric, PondClient, PondConfig, PondError  # noqa: E402


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if args.url is not None:
        overrides["source_url"] = args.url
    if args.reference is not None:
        overrides["reference_distance"] = args.reference
    if args.correction is not None:
        overrides["correction_offset"] = args.correction
    if args.timeout is not None:
        overrides["timeout"] = args.timeout
    return overrides


async def run(args: argparse.Namespace) -> int:
    config = PondConfig.from_env(**_overrides(args))

    async with PondClient(config) as client:
        reads = [client.read_reading(metric) for metric in Metric for _ in range(args.concurrent)]
        readings = await asyncio.gather(*reads)
        status = client.status()

    by_metric = {reading.metric: reading for reading in readings}
    if args.json_mode:
        print(
            json.dumps(
                {
                    "readings": {str(m): r.model_dump(mode="json") for m, r in by_metric.items()},
                    "status": status.model_dump(mode="json"),
                },
                indent=2,
            )
        )
    else:
        print(f"Source: {config.source_url}")
        for metric, reading in by_metric.items():
            value = "no data" if reading.value is None else f"{reading.value:g}"
            print(f"  {metric:<18} {value:>10}  ({reading.source})")
        print(f"Fetches: {status.fetch_count}  failures: {status.failure_count}")
        if status.last_error:
            print(f"Last error: {status.last_error}")
    return 0 if status.failure_count == 0 else 1


def main() -> None:
    parser = argparse.ArgumentParser(description="Read all pond sensor metrics once.")
    parser.add_argument("--url", help="Sensor endpoint (default: POND_URL or http://localhost/)")
    parser.add_argument("--reference", type=float, help="Ultrasound reference distance")
    parser.add_argument("--correction", type=float, help="Air temperature correction offset")
    parser.add_argument("--timeout", type=float, help="Fetch timeout in seconds")
    parser.add_argument("--concurrent", type=int, default=1, help="Concurrent reads per metric")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        sys.exit(asyncio.run(run(args)))
    except PondError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
