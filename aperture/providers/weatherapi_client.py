"""Optional second opinion from WeatherAPI.com ("SkyLink")."""
from __future__ import annotations

from typing import List

import requests

from aperture import config
from aperture.domain import DailySample, HourlySample, WeatherSeries
from aperture.errors import ProviderPayloadError
from aperture.providers import http_session
from aperture.providers.base import ProviderResult
from aperture.providers.common import clamp_percent, describe_failure, failed_url, hour_label
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="providers/weatherapi")

WEATHERAPI_FORECAST_URL = "https://api.weatherapi.com/v1/forecast.json"

SOURCE_NAME = "SkyLink"
DISCLAIMER = "Powered by WeatherAPI.com"
FORECAST_DAYS = 10
HOURLY_LIMIT = 24

# The payload carries text conditions only, so every sample gets the clear-sky code.
DEFAULT_WEATHER_CODE = 0


def fetch_forecast(
    latitude: float,
    longitude: float,
    *,
    api_key: str,
    timeout: float | None = None,
    http: requests.Session | None = None,
) -> dict:
    """Fetch the raw WeatherAPI.com forecast payload."""
    params = {
        "key": api_key,
        "q": f"{latitude},{longitude}",
        "days": FORECAST_DAYS,
        "aqi": "yes",
    }
    return http_session.get_json(WEATHERAPI_FORECAST_URL, params, timeout=timeout, http=http)


def _chance(entry: dict, rain_key: str, snow_key: str) -> float:
    # Zero rain chance falls through to snow chance, then to 0.
    return clamp_percent(entry.get(rain_key) or entry.get(snow_key) or 0)


def map_weatherapi_series(payload: dict) -> WeatherSeries:
    """Normalize a WeatherAPI.com payload (hours grouped by day) into the canonical series."""
    try:
        days = payload["forecast"]["forecastday"]
        hourly: List[HourlySample] = []
        for day in days:
            for h in day["hour"]:
                if len(hourly) >= HOURLY_LIMIT:
                    break
                hourly.append(
                    HourlySample(
                        time=hour_label(h["time"]),
                        temp_c=h.get("temp_c"),
                        temp_f=h.get("temp_f"),
                        precip_chance=_chance(h, "chance_of_rain", "chance_of_snow"),
                        cloud_cover=h.get("cloud"),
                        wind_speed_mph=h.get("wind_mph"),
                        wind_speed_kph=h.get("wind_kph"),
                        summary=(h.get("condition") or {}).get("text", ""),
                        weathercode=DEFAULT_WEATHER_CODE,
                    )
                )

        daily = [
            DailySample(
                date=d["date"],
                high_c=d["day"].get("maxtemp_c"),
                low_c=d["day"].get("mintemp_c"),
                high_f=d["day"].get("maxtemp_f"),
                low_f=d["day"].get("mintemp_f"),
                precip_chance=_chance(d["day"], "daily_chance_of_rain", "daily_chance_of_snow"),
                summary=(d["day"].get("condition") or {}).get("text", ""),
                weathercode=DEFAULT_WEATHER_CODE,
                sunrise=(d.get("astro") or {}).get("sunrise"),
                sunset=(d.get("astro") or {}).get("sunset"),
            )
            for d in days[:FORECAST_DAYS]
        ]
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise ProviderPayloadError(f"Malformed WeatherAPI.com payload: {exc!r}") from exc

    return WeatherSeries(name=SOURCE_NAME, hourly=hourly, daily=daily, disclaimer=DISCLAIMER)


def fetch_weatherapi_series(
    latitude: float,
    longitude: float,
    *,
    settings: config.Settings | None = None,
    http: requests.Session | None = None,
) -> ProviderResult:
    """Best-effort fetch + normalize; absence, never an exception, signals failure."""
    settings = settings or config.settings
    if not settings.weatherapi_key:
        return ProviderResult.absent(SOURCE_NAME, "no WeatherAPI.com key configured")

    try:
        payload = fetch_forecast(
            latitude,
            longitude,
            api_key=settings.weatherapi_key,
            timeout=settings.request_timeout_seconds,
            http=http,
        )
        series = map_weatherapi_series(payload)
    except Exception as exc:
        reason = describe_failure(exc)
        logger.warning(
            "WeatherAPI.com forecast unavailable: %s",
            reason,
            extra={"url": failed_url(exc)},
        )
        return ProviderResult.absent(SOURCE_NAME, reason)

    logger.info("Fetched WeatherAPI.com forecast", extra={"hours": len(series.hourly), "days": len(series.daily)})
    return ProviderResult.success(SOURCE_NAME, series)
