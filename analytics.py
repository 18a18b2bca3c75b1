"""Core data processing for WakaTime coding-time analytics.

Loads a WakaTime JSON export into immutable daily records and derives the
per-month and all-time views shown on the dashboard.  Used by both the CLI
(wakatime_summary.py) and the web service (app.py).

Every derivation below is a pure function of its arguments: nothing here
holds state between calls or mutates the records it is given.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from numbers import Real
from typing import Any, Optional

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600
TOP_LANGUAGES_PER_DAY = 3
DEFAULT_TOP_DAYS = 5
DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class ExportFormatError(ValueError):
    """Raised when a decoded export does not have the expected shape."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LanguageTime:
    name: str
    seconds: float


@dataclass(frozen=True)
class DailyRecord:
    date: str
    total_seconds: float
    languages: tuple[LanguageTime, ...] = ()


@dataclass(frozen=True)
class DailyHoursPoint:
    date: str
    hours: float


@dataclass(frozen=True)
class LanguageShare:
    name: str
    total_seconds: float

    @property
    def hours(self) -> float:
        return self.total_seconds / SECONDS_PER_HOUR


@dataclass(frozen=True)
class MonthlyStats:
    total_hours: float
    avg_hours_per_day: float
    max_hours_per_day: float


@dataclass(frozen=True)
class TopLanguage:
    name: str
    seconds: float

    @property
    def hours(self) -> float:
        return self.seconds / SECONDS_PER_HOUR


@dataclass(frozen=True)
class TopDayEntry:
    date: str
    hours: float
    top_languages: tuple[TopLanguage, ...]


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def load_export(path: str = "wakatime.json") -> tuple[DailyRecord, ...]:
    """Load daily records from a WakaTime JSON export file.

    Args:
        path: Filesystem path to the export.  Defaults to "wakatime.json"
            in the current directory.

    Returns:
        Tuple of ``DailyRecord`` in the order the export lists them.

    Raises:
        FileNotFoundError: If the file at *path* does not exist.
        json.JSONDecodeError: If the file contains invalid JSON.
        ExportFormatError: If the JSON does not look like a WakaTime export.
    """
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)
    records = parse_export(payload)
    logger.info("Loaded %d days from %s", len(records), path)
    return records


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _parse_seconds(value: Any, where: str) -> float:
    """Validate a duration field, returning it unchanged."""
    if not _is_number(value):
        raise ExportFormatError(f"{where}: total_seconds must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ExportFormatError(f"{where}: total_seconds must be finite, got {value!r}")
    if value < 0:
        raise ExportFormatError(f"{where}: total_seconds must not be negative, got {value!r}")
    return value


def _parse_date(value: Any, where: str) -> str:
    """Validate an ISO ``YYYY-MM-DD`` calendar date string."""
    if not isinstance(value, str) or not DATE_RE.fullmatch(value):
        raise ExportFormatError(f"{where}: date must be a YYYY-MM-DD string, got {value!r}")
    try:
        date.fromisoformat(value)
    except ValueError:
        raise ExportFormatError(f"{where}: {value!r} is not a valid calendar date") from None
    return value


def _parse_languages(raw: Any, where: str) -> tuple[LanguageTime, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ExportFormatError(f"{where}: languages must be a list")

    languages = []
    seen: set[str] = set()
    for i, entry in enumerate(raw):
        lang_where = f"{where}, language {i}"
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
            raise ExportFormatError(f"{lang_where}: missing language name")
        name = entry["name"]
        if name in seen:
            raise ExportFormatError(f"{lang_where}: duplicate language {name!r}")
        seen.add(name)
        languages.append(LanguageTime(name, _parse_seconds(entry.get("total_seconds"), lang_where)))
    return tuple(languages)


def _parse_day(raw: Any, index: int) -> DailyRecord:
    where = f"day {index}"
    if not isinstance(raw, dict):
        raise ExportFormatError(f"{where}: expected an object")

    day = _parse_date(raw.get("date"), where)
    where = f"day {index} ({day})"

    grand_total = raw.get("grand_total")
    if not isinstance(grand_total, dict) or "total_seconds" not in grand_total:
        raise ExportFormatError(f"{where}: missing grand_total.total_seconds")

    return DailyRecord(
        date=day,
        total_seconds=_parse_seconds(grand_total["total_seconds"], where),
        languages=_parse_languages(raw.get("languages"), where),
    )


def parse_export(payload: Any) -> tuple[DailyRecord, ...]:
    """Convert a decoded WakaTime export into daily records.

    Only the shape is checked: each day needs a valid ``date``, a numeric
    ``grand_total.total_seconds`` and, optionally, a list of languages
    with a name and numeric ``total_seconds``.  Dates must be unique.

    Args:
        payload: The object returned by ``json.load`` on an export file.

    Returns:
        Tuple of ``DailyRecord`` preserving the export's day order.

    Raises:
        ExportFormatError: On the first structural problem found.
    """
    if not isinstance(payload, dict):
        raise ExportFormatError("export must be a JSON object")
    days = payload.get("days")
    if not isinstance(days, list):
        raise ExportFormatError("export has no 'days' list")

    records = []
    seen: set[str] = set()
    for i, raw in enumerate(days):
        record = _parse_day(raw, i)
        if record.date in seen:
            raise ExportFormatError(f"day {i}: duplicate date {record.date}")
        seen.add(record.date)
        records.append(record)

    if not records:
        logger.warning("Export contains no days; every view will be empty.")

    return tuple(records)


# ---------------------------------------------------------------------------
# Months
# ---------------------------------------------------------------------------

def month_of(day: str) -> str:
    """Return the "YYYY-MM" month key of an ISO date string."""
    return day[:7]


def list_months(records: tuple[DailyRecord, ...]) -> list[str]:
    """Return the distinct months present in *records*, oldest first."""
    return sorted({month_of(r.date) for r in records})


def default_month(records: tuple[DailyRecord, ...]) -> Optional[str]:
    """Month preselected after loading: that of the first record received."""
    if not records:
        return None
    return month_of(records[0].date)


def filter_by_month(records: tuple[DailyRecord, ...], month: str) -> tuple[DailyRecord, ...]:
    """Select the records dated within *month*, keeping their input order.

    An unknown month simply yields an empty tuple.
    """
    return tuple(r for r in records if month_of(r.date) == month)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def daily_hours(records: tuple[DailyRecord, ...]) -> list[DailyHoursPoint]:
    """Map each record to its tracked hours, rounded to 2 decimal places."""
    return [
        DailyHoursPoint(r.date, round(r.total_seconds / SECONDS_PER_HOUR, 2))
        for r in records
    ]


def language_shares(records: tuple[DailyRecord, ...]) -> list[LanguageShare]:
    """Sum tracked seconds per language across *records*.

    Language names are matched exactly.  The result lists languages in the
    order they were first seen, not by size; sort it to rank languages.

    Args:
        records: Daily records, typically one month from ``filter_by_month``.

    Returns:
        List of ``LanguageShare``, one per distinct language name.
    """
    totals: dict[str, float] = {}
    for r in records:
        for lang in r.languages:
            totals[lang.name] = totals.get(lang.name, 0) + lang.seconds
    return [LanguageShare(name, seconds) for name, seconds in totals.items()]


# ---------------------------------------------------------------------------
# Statistics and ranking
# ---------------------------------------------------------------------------

def monthly_stats(points: list[DailyHoursPoint]) -> Optional[MonthlyStats]:
    """Compute total, average and maximum hours over *points*.

    Returns:
        ``MonthlyStats``, or ``None`` when *points* is empty so that "no days
        tracked" stays distinguishable from "zero hours tracked".
    """
    if not points:
        return None
    hours = [p.hours for p in points]
    total = sum(hours)
    return MonthlyStats(
        total_hours=total,
        avg_hours_per_day=total / len(hours),
        max_hours_per_day=max(hours),
    )


def _top_languages(record: DailyRecord, count: int = TOP_LANGUAGES_PER_DAY) -> tuple[TopLanguage, ...]:
    # sorted() is stable, so equal durations keep the export's order
    ranked = sorted(record.languages, key=lambda lang: lang.seconds, reverse=True)
    return tuple(TopLanguage(lang.name, lang.seconds) for lang in ranked[:count])


def top_days(records: tuple[DailyRecord, ...], limit: int = DEFAULT_TOP_DAYS) -> list[TopDayEntry]:
    """Rank the whole history by tracked hours.

    Each entry carries the day's three most-used languages.  Sorting uses
    full-precision hours; days with equal hours keep their input order.

    Args:
        records: Every loaded record, not filtered by month.
        limit: Maximum number of entries to return.  Zero or negative
            returns an empty list.

    Returns:
        Up to *limit* ``TopDayEntry`` objects, most hours first.
    """
    if limit <= 0:
        return []
    entries = [
        TopDayEntry(r.date, r.total_seconds / SECONDS_PER_HOUR, _top_languages(r))
        for r in records
    ]
    entries.sort(key=lambda e: e.hours, reverse=True)
    return entries[:limit]


# ---------------------------------------------------------------------------
# Dashboard payload
# ---------------------------------------------------------------------------

def _stats_to_dict(stats: Optional[MonthlyStats]) -> Optional[dict[str, float]]:
    if stats is None:
        return None
    return {
        "total_hours": round(stats.total_hours, 2),
        "avg_hours_per_day": round(stats.avg_hours_per_day, 2),
        "max_hours_per_day": round(stats.max_hours_per_day, 2),
    }


def top_day_to_dict(entry: TopDayEntry) -> dict[str, Any]:
    return {
        "date": entry.date,
        "hours": round(entry.hours, 2),
        "languages": [
            {"name": lang.name, "hours": round(lang.hours, 2)}
            for lang in entry.top_languages
        ],
    }


def build_dashboard_payload(
    records: tuple[DailyRecord, ...],
    month: Optional[str] = None,
    limit: int = DEFAULT_TOP_DAYS,
) -> dict[str, Any]:
    """One-call entry point: compute every view the dashboard shows.

    Args:
        records: All loaded records (from ``load_export``).
        month: "YYYY-MM" month to break down.  Defaults to the month of the
            first record, mirroring the preselection after an upload.
        limit: Number of top days to rank across the whole history.

    Returns:
        JSON-ready dict with keys: generated_at, months, selected_month,
        stats (None when the month has no days), daily_hours,
        language_shares, top_days.  Hours are rounded to 2dp here.
    """
    selected = month if month is not None else default_month(records)
    month_records = filter_by_month(records, selected) if selected else ()
    points = daily_hours(month_records)

    return {
        "generated_at": datetime.now().isoformat(),
        "months": list_months(records),
        "selected_month": selected,
        "stats": _stats_to_dict(monthly_stats(points)),
        "daily_hours": [{"date": p.date, "hours": p.hours} for p in points],
        "language_shares": [
            {
                "name": share.name,
                "total_seconds": share.total_seconds,
                "hours": round(share.hours, 2),
            }
            for share in language_shares(month_records)
        ],
        "top_days": [top_day_to_dict(e) for e in top_days(records, limit)],
    }
