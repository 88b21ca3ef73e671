"""
Main entrypoint.

Usage:
    python -m ridedata analyze ride.fit                     # summary + climb table
    python -m ridedata analyze ride.fit --dem epqs --mode spline --units metric
    python -m ridedata serve --port 8000                    # starts the API
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ridedata.config import get_settings

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


def _print_table(title: str, rows: List[List[str]]) -> None:
    print(f"\n{title}")
    if not rows:
        print("  (none)")
        return
    width = max(len(r[0]) for r in rows)
    for row in rows:
        print(f"  {row[0]:<{width}}  " + "  ".join(row[1:]))


async def _analyze(path: Path, units_name: str, dem: Optional[str], mode_name: str) -> int:
    from ridedata.analysis.climb import InterpolationMode
    from ridedata.analysis.units import UnitSystem, display_length, length_label
    from ridedata.dem.client import DemClient
    from ridedata.dem.orchestrator import DemFetchOrchestrator, NoPositionDataError, RunOutcome
    from ridedata.dem.providers import UnknownProviderError
    from ridedata.ingest.fit_reader import FitDecodeError, read_fit
    from ridedata.session import AnalysisSession

    settings = get_settings()
    units = UnitSystem(units_name)
    mode = InterpolationMode(mode_name)

    try:
        messages = read_fit(path)
    except FitDecodeError as exc:
        logger.error("%s", exc)
        return 1

    session = AnalysisSession()
    result = session.load(messages, filename=path.name)

    _print_table(
        "Reported Session Data",
        [[r.label, r.value] for r in session.summary_rows(units)],
    )
    if not result.ok:
        logger.error("%s", result.error.message)
        return 1

    if dem:
        async with DemClient() as client:
            orchestrator = DemFetchOrchestrator(client=client)
            try:
                run = await session.fetch_dem(dem, orchestrator)
            except (UnknownProviderError, NoPositionDataError) as exc:
                logger.error("%s", exc)
                return 1
        if run is not None and run.outcome != RunOutcome.ALL_SUCCEEDED:
            print(f"\n{'Warning' if run.outcome == RunOutcome.PARTIAL_SUCCESS else 'Error'}: {run.message}")

    unit = length_label(units)
    _print_table(
        f"Calculated Climb Data ({mode.value})",
        [
            [
                row.source_name,
                f"ascent {display_length(row.result.total_ascent, units):.0f} {unit}",
                f"descent {display_length(row.result.total_descent, units):.0f} {unit}",
            ]
            for row in session.climb_table(mode, settings.spline_resolution_m)
        ],
    )
    return 0


def _serve(host: str, port: int) -> None:
    import uvicorn

    uvicorn.run("ridedata.api.main:app", host=host, port=port)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="ridedata", description="Activity elevation profiles and climb totals")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Summarize a .fit file and compute climb totals")
    analyze.add_argument("path", type=Path, help="Path to the .fit file")
    analyze.add_argument(
        "--units",
        choices=["metric", "imperial"],
        default=get_settings().default_unit_system,
        help="Display units (default: %(default)s)",
    )
    analyze.add_argument("--dem", default=None, help="DEM provider id to compare against (epqs, opentopography)")
    analyze.add_argument(
        "--mode",
        choices=["linear", "spline"],
        default="linear",
        help="Interpolation used for climb totals (default: linear)",
    )

    serve = sub.add_parser("serve", help="Run the HTTP API under uvicorn")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)
    if args.command == "serve":
        _serve(args.host, args.port)
        return 0
    return asyncio.run(_analyze(args.path, args.units, args.dem, args.mode))


if __name__ == "__main__":
    sys.exit(main())
