"""Shared test helpers for wakatime_stats tests.

Regular functions (not fixtures) that can be imported by any test module.
"""

from __future__ import annotations

from analytics import DailyRecord, LanguageTime


def make_day(date: str, total_seconds: float, languages: list[tuple[str, float]] | None = None) -> dict:
    """Build one raw export day dict.

    Args:
        date: ISO date string.
        total_seconds: Value for grand_total.total_seconds.
        languages: List of (name, seconds) pairs.

    Returns:
        A dict matching the WakaTime export day structure.
    """
    return {
        "date": date,
        "grand_total": {"total_seconds": total_seconds},
        "languages": [
            {"name": name, "total_seconds": seconds}
            for name, seconds in (languages or [])
        ],
    }


def make_export(days: list[dict]) -> dict:
    """Wrap raw day dicts in a top-level export object."""
    return {"days": days}


def make_record(date: str, total_seconds: float, languages: list[tuple[str, float]] | None = None) -> DailyRecord:
    """Build a DailyRecord directly, skipping the loader."""
    return DailyRecord(
        date=date,
        total_seconds=total_seconds,
        languages=tuple(LanguageTime(n, s) for n, s in (languages or [])),
    )
