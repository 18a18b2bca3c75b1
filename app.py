"""FastAPI service for the WakaTime Statistics Dashboard.

Serves the analytics views as JSON for a chart front end.  The loaded
export is cached (1-hour TTL since data only changes on a new WakaTime
export); every view is recomputed per request from the cached records.

Deployment: uvicorn app:app --host 127.0.0.1 --port 8204
"""

from __future__ import annotations

import json
import logging
import os
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Query

from analytics import (
    DEFAULT_TOP_DAYS,
    ExportFormatError,
    build_dashboard_payload,
    default_month,
    list_months,
    load_export,
    top_day_to_dict,
    top_days,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------
EXPORT_PATH = Path(
    os.environ.get("WAKATIME_EXPORT", Path(__file__).parent / "wakatime.json")
)
CACHE_TTL_SECONDS = 3600  # 1 hour
MONTH_PATTERN = r"^\d{4}-\d{2}$"

# Chart colours handed to the renderer; cycled over the language shares
PALETTE = ["#0088FE", "#00C49F", "#FFBB28", "#FF8042", "#8884d8"]

# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
app = FastAPI(
    title="WakaTime Statistics Dashboard",
    root_path="/wakatime_stats",
)

# ---------------------------------------------------------------------------
# Thread-safe cache
# ---------------------------------------------------------------------------
_cache_lock = threading.Lock()
_cache: dict[str, Any] = {
    "records": None,
    "loaded_at": 0.0,
    "loaded_at_iso": None,
}


def _load_records() -> tuple:
    """Load the export, translating loader errors into HTTP errors."""
    try:
        return load_export(str(EXPORT_PATH))
    except FileNotFoundError:
        logger.error("Export file not found: %s", EXPORT_PATH)
        raise HTTPException(status_code=503, detail="Data file not found")
    except json.JSONDecodeError as e:
        logger.error("Invalid JSON in %s: %s", EXPORT_PATH, e)
        raise HTTPException(status_code=500, detail=f"Invalid JSON in {EXPORT_PATH.name}")
    except ExportFormatError as e:
        logger.error("Malformed export %s: %s", EXPORT_PATH, e)
        raise HTTPException(status_code=500, detail=f"Malformed export: {e}")


def _reload_records() -> tuple[tuple, str]:
    """Load the export into the cache, returning the records and load time."""
    records = _load_records()
    loaded_at_iso = datetime.now().isoformat()

    with _cache_lock:
        _cache["records"] = records
        _cache["loaded_at"] = time.monotonic()
        _cache["loaded_at_iso"] = loaded_at_iso

    return records, loaded_at_iso


def _get_cached_records() -> tuple:
    """Return cached daily records, reloading if stale."""
    now = time.monotonic()
    with _cache_lock:
        if (
            _cache["records"] is not None
            and (now - _cache["loaded_at"]) < CACHE_TTL_SECONDS
        ):
            return _cache["records"]

    records, _ = _reload_records()
    return records


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@app.get("/health")
@app.get("/healthz")
def healthz():
    return {"status": "ok"}


@app.get("/api/months")
def api_months():
    """Return the months available for selection and the preselected one."""
    records = _get_cached_records()
    return {
        "months": list_months(records),
        "default_month": default_month(records),
    }


@app.get("/api/data")
def api_data(
    month: Optional[str] = Query(None, pattern=MONTH_PATTERN),
    limit: int = Query(DEFAULT_TOP_DAYS),
):
    """Return the dashboard payload for one month plus the all-time top days."""
    records = _get_cached_records()
    payload = build_dashboard_payload(records, month=month, limit=limit)
    payload["palette"] = PALETTE
    return payload


@app.get("/api/top-days")
def api_top_days(limit: int = Query(DEFAULT_TOP_DAYS)):
    """Return the most productive days across the whole history."""
    records = _get_cached_records()
    return {"top_days": [top_day_to_dict(e) for e in top_days(records, limit)]}


@app.get("/api/refresh")
def api_refresh():
    """Force a reload of the export file."""
    records, loaded_at_iso = _reload_records()
    return {
        "status": "refreshed",
        "days": len(records),
        "loaded_at": loaded_at_iso,
    }
