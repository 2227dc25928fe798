"""OpenWeather direct geocoding: place name → coordinates."""

from __future__ import annotations

import logging

import httpx

from shiprisk.config import HTTP_TIMEOUT, OPENWEATHER_API_KEY, OPENWEATHER_API_URL
from shiprisk.errors import ExternalServiceError
from shiprisk.models import GeoLocation

logger = logging.getLogger(__name__)


def _parse_location(data: dict) -> GeoLocation:
    return GeoLocation(
        name=data.get("name", ""),
        lat=float(data["lat"]),
        lon=float(data["lon"]),
        country=data.get("country", "") or "",
        state=data.get("state", "") or "",
    )


def geocode(place: str, api_key: str | None = None) -> GeoLocation | None:
    """Resolve a place name to its best match, or None if nothing matches."""
    key = api_key or OPENWEATHER_API_KEY
    if not key:
        raise ExternalServiceError("Missing OPENWEATHER_API_KEY")

    url = f"{OPENWEATHER_API_URL}/geo/1.0/direct"
    logger.debug("geocoding %r", place)
    try:
        resp = httpx.get(url, params={"q": place, "limit": 1, "appid": key}, timeout=HTTP_TIMEOUT)
        resp.raise_for_status()
        data = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("geocoding failed for %r: %s", place, exc)
        raise ExternalServiceError(f"Error geocoding {place!r}: {exc}") from exc

    if not data or not isinstance(data, list):
        return None
    try:
        return _parse_location(data[0])
    except (KeyError, TypeError, ValueError):
        return None
