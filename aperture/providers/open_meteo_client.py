"""Base forecast and air-quality data from the Open-Meteo APIs."""
from __future__ import annotations

from typing import List, Optional

import requests

from aperture import config
from aperture.domain import AirQualityIndex, DailySample, HourlySample, WeatherSeries, describe_weather_code
from aperture.errors import ProviderPayloadError
from aperture.providers import http_session
from aperture.providers.common import clamp_percent, column_at, hour_label, maybe
from aperture.units import c_to_f, mps_to_kph, mps_to_mph
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="providers/open_meteo")

OPEN_METEO_WEATHER_URL = "https://api.open-meteo.com/v1/forecast"
OPEN_METEO_AIR_URL = "https://air-quality-api.open-meteo.com/v1/air-quality"

SOURCE_NAME = "AeroSource"
DISCLAIMER = "Based on Open-Meteo GFS/ECMWF models."

HOURLY_LIMIT = 24
DAILY_LIMIT = 10

# Wind speed is sampled at every ladder height; direction only at some of them.
WIND_SPEED_HEIGHTS_M = (10, 50, 80, 100, 120, 150, 180)
WIND_DIRECTION_HEIGHTS_M = (10, 80, 120, 180)

HOURLY_VARS = [
    "temperature_2m",
    "precipitation_probability",
    "weathercode",
    "cloudcover",
    "windgusts_10m",
    "visibility",
    *[f"windspeed_{h}m" for h in WIND_SPEED_HEIGHTS_M],
    *[f"winddirection_{h}m" for h in WIND_DIRECTION_HEIGHTS_M],
]

DAILY_VARS = [
    "weathercode",
    "temperature_2m_max",
    "temperature_2m_min",
    "uv_index_max",
    "precipitation_probability_max",
    "sunrise",
    "sunset",
]

# Units we request; anything else means the conversions below are wrong.
EXPECTED_HOURLY_UNITS = {
    "temperature_2m": {"°C"},
    "precipitation_probability": {"%"},
    "cloudcover": {"%"},
    "windspeed_10m": {"m/s"},
    "windgusts_10m": {"m/s"},
    "winddirection_10m": {"°"},
    "visibility": {"m"},
}


def _warn_on_unexpected_units(units: dict, *, context: str):
    """Log a warning if Open-Meteo returns units we did not request."""
    if not units:
        return
    for field, allowed in EXPECTED_HOURLY_UNITS.items():
        actual = units.get(field)
        if actual and actual not in allowed:
            logger.warning(
                "Unexpected Open-Meteo unit",
                extra={"context": context, "field": field, "unit": actual, "allowed": sorted(allowed)},
            )


def fetch_forecast(
    latitude: float,
    longitude: float,
    *,
    forecast_days: int | None = None,
    timeout: float | None = None,
    http: requests.Session | None = None,
) -> dict:
    """Fetch the raw base forecast payload (hourly/daily column arrays)."""
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "forecast_days": forecast_days or config.settings.forecast_days,
        "hourly": ",".join(HOURLY_VARS),
        "daily": ",".join(DAILY_VARS),
        "temperature_unit": "celsius",
        "windspeed_unit": "ms",
        "timeformat": "iso8601",
        "timezone": "auto",
    }
    logger.debug("Requesting Open-Meteo forecast", extra={"latitude": latitude, "longitude": longitude})
    data = http_session.get_json(OPEN_METEO_WEATHER_URL, params, timeout=timeout, http=http)
    _warn_on_unexpected_units(data.get("hourly_units", {}), context="forecast_hourly")
    return data


def fetch_air_quality(
    latitude: float,
    longitude: float,
    *,
    timeout: float | None = None,
    http: requests.Session | None = None,
) -> dict:
    """Fetch the raw hourly US AQI payload."""
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "hourly": "us_aqi",
    }
    logger.debug("Requesting Open-Meteo air quality", extra={"latitude": latitude, "longitude": longitude})
    return http_session.get_json(OPEN_METEO_AIR_URL, params, timeout=timeout, http=http)


def hourly_us_aqi(payload: dict | None) -> List[Optional[float]]:
    """Extract the hourly US AQI column, or an empty list when absent."""
    if not payload:
        return []
    return list((payload.get("hourly") or {}).get("us_aqi") or [])


def _map_hourly(hourly: dict) -> List[HourlySample]:
    out: List[HourlySample] = []
    for i, t in enumerate(hourly["time"][:HOURLY_LIMIT]):
        temp_c = column_at(hourly, "temperature_2m", i)
        wind_mps = column_at(hourly, "windspeed_10m", i)
        code = column_at(hourly, "weathercode", i)
        out.append(
            HourlySample(
                time=hour_label(t),
                temp_c=temp_c,
                temp_f=maybe(c_to_f, temp_c),
                precip_chance=clamp_percent(column_at(hourly, "precipitation_probability", i)),
                cloud_cover=column_at(hourly, "cloudcover", i),
                wind_speed_mph=maybe(mps_to_mph, wind_mps),
                wind_speed_kph=maybe(mps_to_kph, wind_mps),
                summary=describe_weather_code(code),
                weathercode=code if code is not None else 0,
            )
        )
    return out


def _map_daily(daily: dict) -> List[DailySample]:
    out: List[DailySample] = []
    for i, d in enumerate(daily["time"][:DAILY_LIMIT]):
        high_c = column_at(daily, "temperature_2m_max", i)
        low_c = column_at(daily, "temperature_2m_min", i)
        code = column_at(daily, "weathercode", i)
        out.append(
            DailySample(
                date=d,
                high_c=high_c,
                low_c=low_c,
                high_f=maybe(c_to_f, high_c),
                low_f=maybe(c_to_f, low_c),
                precip_chance=clamp_percent(column_at(daily, "precipitation_probability_max", i)),
                summary=describe_weather_code(code),
                weathercode=code if code is not None else 0,
                sunrise=column_at(daily, "sunrise", i),
                sunset=column_at(daily, "sunset", i),
            )
        )
    return out


def map_open_meteo_series(payload: dict, aqi: AirQualityIndex | None = None) -> WeatherSeries:
    """Normalize a base forecast payload into the canonical series."""
    try:
        hourly = _map_hourly(payload["hourly"])
        daily = _map_daily(payload["daily"])
        return WeatherSeries(name=SOURCE_NAME, hourly=hourly, daily=daily, aqi=aqi, disclaimer=DISCLAIMER)
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise ProviderPayloadError(f"Malformed Open-Meteo forecast payload: {exc!r}") from exc
