"""Print a WakaTime coding-time summary for one month.

Loads a WakaTime JSON export, then reports the selected month's totals,
daily hours and language split, followed by the top coding days across
the whole history.

Usage:
    python wakatime_summary.py [wakatime.json] [--month 2019-10] [--limit 5]
"""

from __future__ import annotations

import argparse
import calendar
import json
import logging
import re
import sys
from typing import Any, Optional

from analytics import (
    DEFAULT_TOP_DAYS,
    ExportFormatError,
    build_dashboard_payload,
    load_export,
)

logger = logging.getLogger(__name__)

MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def _month_arg(value: str) -> str:
    if not MONTH_RE.match(value):
        raise argparse.ArgumentTypeError(f"expected YYYY-MM, got {value!r}")
    return value


def _month_label(month: str) -> str:
    """Turn "2019-10" into "October 2019"."""
    year, mon = month.split("-")
    return f"{calendar.month_name[int(mon)]} {year}"


def print_summary_report(payload: dict[str, Any]) -> None:
    """Print the CLI summary report to stdout.

    Args:
        payload: Dashboard payload (from ``build_dashboard_payload``).
    """
    print(f"\n{'=' * 60}")
    print("WakaTime Coding Summary")
    print(f"{'=' * 60}")

    month = payload["selected_month"]
    if month is None:
        print("No days tracked in this export.")
        print(f"{'=' * 60}")
        return

    print(f"Month: {_month_label(month)}")
    print(f"Available months: {', '.join(payload['months'])}")

    stats = payload["stats"]
    if stats is None:
        print("No data for this month.")
    else:
        print(f"Total Hours: {stats['total_hours']:.2f}")
        print(f"Avg Hours/Day: {stats['avg_hours_per_day']:.2f}")
        print(f"Max Hours/Day: {stats['max_hours_per_day']:.2f}")

    if payload["daily_hours"]:
        print("\nDaily Programming Hours:")
        for point in payload["daily_hours"]:
            print(f"  {point['date']}: {point['hours']:.2f}h")

    shares = payload["language_shares"]
    total = sum(s["total_seconds"] for s in shares)
    if total > 0:
        print("\nLanguage Distribution:")
        ranked = sorted(shares, key=lambda s: s["total_seconds"], reverse=True)
        for share in ranked:
            pct = share["total_seconds"] / total * 100
            print(f"  {share['name']:<20} {share['hours']:>8.2f}h {pct:>5.0f}%")

    if payload["top_days"]:
        print(f"\nTop {len(payload['top_days'])} Coding Days:")
        for rank, day in enumerate(payload["top_days"], 1):
            print(f"  #{rank} {day['date']}: {day['hours']:.2f} hours")
            for lang in day["languages"]:
                print(f"      {lang['name']:<16} {lang['hours']:.2f}h")

    print(f"{'=' * 60}")


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point for the monthly WakaTime summary."""
    parser = argparse.ArgumentParser(description="Summarise a WakaTime JSON export")
    parser.add_argument("json_file", nargs="?", default="wakatime.json",
                        help="Path to the WakaTime export (default: wakatime.json)")
    parser.add_argument("--month", "-m", type=_month_arg,
                        help="Month to summarise as YYYY-MM (default: month of the first day)")
    parser.add_argument("--limit", "-n", type=int, default=DEFAULT_TOP_DAYS,
                        help=f"Number of top coding days to list (default: {DEFAULT_TOP_DAYS})")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        records = load_export(args.json_file)
    except FileNotFoundError:
        logger.error("File not found: %s", args.json_file)
        sys.exit(1)
    except json.JSONDecodeError as e:
        logger.error("Invalid JSON in %s: %s", args.json_file, e)
        sys.exit(1)
    except ExportFormatError as e:
        logger.error("Not a WakaTime export: %s", e)
        sys.exit(1)

    payload = build_dashboard_payload(records, month=args.month, limit=args.limit)
    logger.debug("Built payload for %s", payload["selected_month"])
    print_summary_report(payload)


if __name__ == "__main__":
    main()
