"""OpenWeather current-conditions fetcher and the weather risk multiplier."""

from __future__ import annotations

import logging

import httpx

from shiprisk.config import HTTP_TIMEOUT, OPENWEATHER_API_KEY, OPENWEATHER_API_URL
from shiprisk.errors import ExternalServiceError
from shiprisk.models import WeatherReport

logger = logging.getLogger(__name__)

SEVERE_CONDITIONS = {"Thunderstorm", "Tornado", "Squall"}
WET_CONDITIONS = {"Rain", "Drizzle", "Snow"}
LOW_VISIBILITY_CONDITIONS = {"Fog", "Mist", "Haze", "Smoke", "Dust", "Sand", "Ash"}

MAX_WEATHER_FACTOR = 1.6


def _parse_weather(data: dict, place: str) -> WeatherReport:
    """Parse an OpenWeather /data/2.5/weather response (metric units)."""
    conditions = data.get("weather") or [{}]
    main = data.get("main") or {}
    wind = data.get("wind") or {}
    return WeatherReport(
        place=data.get("name") or place,
        condition=conditions[0].get("main", "Clear"),
        description=conditions[0].get("description", ""),
        temperature_c=float(main["temp"]),
        wind_speed_ms=float(wind.get("speed", 0) or 0),
        visibility_m=float(data["visibility"]) if data.get("visibility") is not None else None,
        humidity=float(main["humidity"]) if main.get("humidity") is not None else None,
        raw=data,
    )


def fetch_weather(
    place: str | None = None,
    lat: float | None = None,
    lon: float | None = None,
    api_key: str | None = None,
) -> WeatherReport:
    """Fetch current weather by place name or by coordinates."""
    key = api_key or OPENWEATHER_API_KEY
    if not key:
        raise ExternalServiceError("Missing OPENWEATHER_API_KEY")

    params: dict[str, object] = {"appid": key, "units": "metric"}
    if lat is not None and lon is not None:
        params.update(lat=lat, lon=lon)
        subject = place or f"{lat:.4f},{lon:.4f}"
    elif place:
        params["q"] = place
        subject = place
    else:
        raise ValueError("fetch_weather needs a place or lat/lon")

    logger.debug("fetching weather for %s", subject)
    try:
        resp = httpx.get(f"{OPENWEATHER_API_URL}/data/2.5/weather", params=params, timeout=HTTP_TIMEOUT)
        resp.raise_for_status()
        return _parse_weather(resp.json(), subject)
    except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
        logger.warning("weather lookup failed for %s: %s", subject, exc)
        raise ExternalServiceError(f"Error fetching weather data for {subject}: {exc}") from exc


def weather_risk_factor(report: WeatherReport) -> float:
    """Multiplier in [1.0, 1.6] reflecting how hostile conditions are for transport."""
    factor = 1.0

    if report.condition in SEVERE_CONDITIONS:
        factor += 0.3
    elif report.condition in WET_CONDITIONS:
        factor += 0.15

    low_visibility = report.visibility_m is not None and report.visibility_m < 1_000
    if report.condition in LOW_VISIBILITY_CONDITIONS or low_visibility:
        factor += 0.1

    if report.wind_speed_ms >= 17:
        factor += 0.2
    elif report.wind_speed_ms >= 10:
        factor += 0.1

    if report.temperature_c < -5 or report.temperature_c > 38:
        factor += 0.05

    return round(min(MAX_WEATHER_FACTOR, factor), 2)
