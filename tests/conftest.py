"""Shared fixtures for wakatime_stats tests."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from helpers import make_record


@pytest.fixture()
def sample_records():
    """Three days over two months, deliberately not in date order."""
    return (
        make_record("2019-10-17", 16200, [("JavaScript", 8100), ("CSS", 4050), ("HTML", 4050)]),
        make_record("2019-09-30", 7200, [("Python", 5400), ("JavaScript", 1800)]),
        make_record("2019-10-02", 3600, [("Python", 2400), ("CSS", 600), ("Bash", 300), ("JSON", 300)]),
    )


@pytest.fixture()
def client(sample_records):
    """TestClient for app.py with mocked export data.

    Patches load_export so no wakatime.json is needed.
    Resets the module-level cache between tests.
    """
    import app as app_module

    with patch.object(
        app_module, "_cache", {"records": None, "loaded_at": 0.0, "loaded_at_iso": None}
    ):
        with patch("app.load_export", return_value=sample_records):
            with TestClient(app_module.app) as tc:
                yield tc
