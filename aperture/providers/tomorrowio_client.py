"""Optional third opinion from Tomorrow.io ("MeteoPlus")."""
from __future__ import annotations

from typing import Dict, List

import requests

from aperture import config
from aperture.domain import DailySample, HourlySample, WeatherSeries, describe_weather_code
from aperture.errors import ProviderPayloadError
from aperture.providers import http_session
from aperture.providers.base import ProviderResult
from aperture.providers.common import clamp_percent, describe_failure, failed_url, hour_label, maybe
from aperture.units import c_to_f, mps_to_kph, mps_to_mph
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="providers/tomorrowio")

TOMORROWIO_FORECAST_URL = "https://api.tomorrow.io/v4/weather/forecast"

SOURCE_NAME = "MeteoPlus"
DISCLAIMER = "Powered by Tomorrow.io"
HOURLY_LIMIT = 24
DAILY_LIMIT = 10

UNKNOWN_WEATHER_CODE = 0

# Tomorrow.io weather codes -> WMO codes.
TOMORROW_CODE_MAP: Dict[int, int] = {
    0: 0,  # unknown
    1000: 0,  # clear, sunny
    1100: 1,  # mostly clear
    1101: 2,  # partly cloudy
    1102: 3,  # mostly cloudy
    1001: 3,  # cloudy
    2000: 45,  # fog
    2100: 45,  # light fog
    4000: 51,  # drizzle
    4001: 61,  # rain
    4200: 61,  # light rain
    4201: 65,  # heavy rain
    5000: 71,  # snow
    5001: 71,  # flurries
    5100: 71,  # light snow
    5101: 75,  # heavy snow
    6000: 61,  # freezing drizzle
    6001: 61,  # freezing rain
    6200: 61,  # light freezing rain
    6201: 65,  # heavy freezing rain
    7000: 71,  # ice pellets
    7101: 75,  # heavy ice pellets
    7102: 71,  # light ice pellets
    8000: 95,  # thunderstorm
}


def to_wmo_code(code) -> int:
    """Translate a Tomorrow.io code; anything unmapped becomes the unknown code."""
    if code is None:
        return UNKNOWN_WEATHER_CODE
    try:
        return TOMORROW_CODE_MAP.get(int(code), UNKNOWN_WEATHER_CODE)
    except (TypeError, ValueError):
        return UNKNOWN_WEATHER_CODE


def fetch_forecast(
    latitude: float,
    longitude: float,
    *,
    api_key: str,
    timeout: float | None = None,
    http: requests.Session | None = None,
) -> dict:
    """Fetch the raw Tomorrow.io forecast timelines."""
    params = {
        "location": f"{latitude},{longitude}",
        "apikey": api_key,
    }
    return http_session.get_json(TOMORROWIO_FORECAST_URL, params, timeout=timeout, http=http)


def map_tomorrowio_series(payload: dict) -> WeatherSeries:
    """Normalize Tomorrow.io hourly/daily timelines into the canonical series."""
    try:
        timelines = payload["timelines"]
        hourly: List[HourlySample] = []
        for h in timelines["hourly"][:HOURLY_LIMIT]:
            values = h["values"]
            temp_c = values.get("temperature")
            wind_mps = values.get("windSpeed")
            code = to_wmo_code(values.get("weatherCode"))
            hourly.append(
                HourlySample(
                    time=hour_label(h["time"]),
                    temp_c=temp_c,
                    temp_f=maybe(c_to_f, temp_c),
                    precip_chance=clamp_percent(values.get("precipitationProbability")),
                    cloud_cover=values.get("cloudCover"),
                    wind_speed_mph=maybe(mps_to_mph, wind_mps),
                    wind_speed_kph=maybe(mps_to_kph, wind_mps),
                    summary=describe_weather_code(code),
                    weathercode=code,
                )
            )

        daily: List[DailySample] = []
        for d in timelines["daily"][:DAILY_LIMIT]:
            values = d["values"]
            high_c = values.get("temperatureMax")
            low_c = values.get("temperatureMin")
            code = to_wmo_code(values.get("weatherCodeMax"))
            daily.append(
                DailySample(
                    date=d["time"].split("T")[0],
                    high_c=high_c,
                    low_c=low_c,
                    high_f=maybe(c_to_f, high_c),
                    low_f=maybe(c_to_f, low_c),
                    precip_chance=clamp_percent(values.get("precipitationProbabilityMax")),
                    summary=describe_weather_code(code),
                    weathercode=code,
                    sunrise=values.get("sunriseTime"),
                    sunset=values.get("sunsetTime"),
                )
            )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise ProviderPayloadError(f"Malformed Tomorrow.io payload: {exc!r}") from exc

    return WeatherSeries(name=SOURCE_NAME, hourly=hourly, daily=daily, disclaimer=DISCLAIMER)


def fetch_tomorrowio_series(
    latitude: float,
    longitude: float,
    *,
    settings: config.Settings | None = None,
    http: requests.Session | None = None,
) -> ProviderResult:
    """Best-effort fetch + normalize; absence, never an exception, signals failure."""
    settings = settings or config.settings
    if not settings.tomorrowio_key:
        return ProviderResult.absent(SOURCE_NAME, "no Tomorrow.io key configured")

    try:
        payload = fetch_forecast(
            latitude,
            longitude,
            api_key=settings.tomorrowio_key,
            timeout=settings.request_timeout_seconds,
            http=http,
        )
        series = map_tomorrowio_series(payload)
    except Exception as exc:
        reason = describe_failure(exc)
        logger.warning(
            "Tomorrow.io forecast unavailable: %s",
            reason,
            extra={"url": failed_url(exc)},
        )
        return ProviderResult.absent(SOURCE_NAME, reason)

    logger.info("Fetched Tomorrow.io forecast", extra={"hours": len(series.hourly), "days": len(series.daily)})
    return ProviderResult.success(SOURCE_NAME, series)
