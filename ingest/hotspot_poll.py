"""CLI entrypoint for a single hotspot poll."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from ingest.config import settings as hotspot_settings
from ingest.monitor import PollOptions, build_monitor

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
LOGGER = logging.getLogger("hotspot_poll")


def run_hotspot_poll(
    force_notify: bool = False,
    test_mode: bool = False,
    notify: bool = True,
    sources: Optional[str] = None,
    day_range: Optional[int] = None,
    skip_outside_pass: bool = False,
) -> int:
    """Run one poll and print its JSON summary. Returns a process exit code."""
    overrides = {}
    if sources:
        overrides["sources"] = _resolve_sources(sources)
    if day_range is not None:
        overrides["day_range"] = day_range
    config = hotspot_settings.model_copy(update=overrides) if overrides else hotspot_settings

    monitor = build_monitor(config)
    if skip_outside_pass and not monitor.is_pass_time():
        LOGGER.info("Not satellite pass time, skipping")
        print(json.dumps({"success": True, "action": "skipped", "reason": "Not satellite pass time"}))
        return 0

    LOGGER.info(
        "Starting hotspot poll",
        extra={"sources": config.sources, "day_range": config.day_range},
    )
    result = asyncio.run(
        monitor.run(PollOptions(force_notify=force_notify, test_mode=test_mode, notify=notify))
    )
    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2, default=str))
    return 0 if result.success else 1


def _resolve_sources(value: str) -> List[str]:
    return [segment.strip().upper() for segment in value.split(",") if segment.strip()]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Poll FIRMS hotspots and send LINE alerts.")
    parser.add_argument(
        "--force-notify",
        action="store_true",
        help="Alert on every current detection, ignoring previously seen ids.",
    )
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Run diff and alerting without recording the detections as seen.",
    )
    parser.add_argument(
        "--no-notify",
        action="store_true",
        help="Only check and record detections; never send a message.",
    )
    parser.add_argument(
        "--sources",
        type=str,
        default=None,
        help="Comma-separated FIRMS sources (defaults to env config).",
    )
    parser.add_argument(
        "--day-range",
        type=int,
        default=None,
        help="Override FIRMS_DAY_RANGE (lookback in days).",
    )
    parser.add_argument(
        "--only-during-pass",
        action="store_true",
        help="Exit without polling when the local time is outside every pass window.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    exit_code = run_hotspot_poll(
        force_notify=args.force_notify,
        test_mode=args.test_mode,
        notify=not args.no_notify,
        sources=args.sources,
        day_range=args.day_range,
        skip_outside_pass=args.only_during_pass,
    )
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main(sys.argv[1:])
