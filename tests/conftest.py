"""
Pytest fixtures for shiprisk tests. Uses a temporary SQLite DB seeded with the default suppliers.
"""

from __future__ import annotations

import httpx
import pytest

from shiprisk.config import DEFAULT_SUPPLIERS
from shiprisk.db import Repository
from shiprisk.models import Supplier, WeatherReport


@pytest.fixture
def repo(tmp_path):
    """Fresh repository holding the four default suppliers."""
    r = Repository(tmp_path / "shiprisk.db")
    r.seed_suppliers([Supplier(**s) for s in DEFAULT_SUPPLIERS])
    yield r
    r.close()


@pytest.fixture
def empty_repo(tmp_path):
    r = Repository(tmp_path / "empty.db")
    yield r
    r.close()


def make_weather(place: str = "London", condition: str = "Clear", **overrides) -> WeatherReport:
    fields = {
        "place": place,
        "condition": condition,
        "description": condition.lower(),
        "temperature_c": 18.0,
        "wind_speed_ms": 3.0,
        "visibility_m": 10_000.0,
        "humidity": 60.0,
    }
    fields.update(overrides)
    return WeatherReport(**fields)


def json_response(payload, status_code: int = 200, url: str = "https://example.test/") -> httpx.Response:
    """Real httpx.Response so raise_for_status() behaves like the network one."""
    return httpx.Response(status_code, json=payload, request=httpx.Request("GET", url))
