"""Fan out to every upstream, then merge the survivors into one bundle."""
from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence

import requests

from aperture import config
from aperture.domain import (
    AirQualityIndex,
    AltitudeSample,
    DroneConditions,
    FetchResult,
    WeatherBundle,
    WeatherSeries,
)
from aperture.errors import BaseProviderError, ProviderPayloadError
from aperture.providers import open_meteo_client
from aperture.providers.base import CallableBaseSource, ProviderResult, WeatherProvider
from aperture.providers.common import describe_failure, failed_url
from aperture.providers.factory import build_optional_providers
from aperture.units import km_to_mi, m_to_ft, mps_to_kph, mps_to_kts, mps_to_mph
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="forecast_service")

# Fixed stand-in for "daytime" when reducing hourly AQI; not tied to sunrise/sunset.
DAYLIGHT_AQI_START = 6
DAYLIGHT_AQI_END = 20  # exclusive

# Below this surface wind (m/s) the gust ratio is meaningless and taken as 1.
GUST_RATIO_MIN_WIND_MPS = 0.1

SURFACE_HEIGHT_M = 10
LADDER_HEIGHTS_M = (10, 50, 80, 100, 120, 150, 180)

# Direction is not sampled at every speed height; borrow the nearest measured one.
DIRECTION_SOURCE_HEIGHT_M: Dict[int, int] = {
    10: 10,
    50: 80,
    80: 80,
    100: 120,
    120: 120,
    150: 180,
    180: 180,
}


def reduce_daylight_aqi(values: Sequence[Optional[float]]) -> Optional[AirQualityIndex]:
    """Worst daylight-hour AQI, else the first hour's, else nothing."""
    daylight = [v for v in values[DAYLIGHT_AQI_START:DAYLIGHT_AQI_END] if v is not None]
    if daylight:
        return AirQualityIndex.from_value(max(daylight))
    if values and values[0] is not None:
        return AirQualityIndex.from_value(values[0])
    return None


def _first(hourly: dict, key: str) -> Optional[float]:
    col = hourly.get(key)
    if not col:
        return None
    return col[0]


def _altitude_sample(altitude_ft: float, wind_mps: float, gust_mps: float, direction: float) -> AltitudeSample:
    return AltitudeSample(
        altitude_ft=altitude_ft,
        wind_speed_mph=mps_to_mph(wind_mps),
        wind_speed_kph=mps_to_kph(wind_mps),
        wind_speed_kts=mps_to_kts(wind_mps),
        gust_speed_mph=mps_to_mph(gust_mps),
        gust_speed_kph=mps_to_kph(gust_mps),
        gust_speed_kts=mps_to_kts(gust_mps),
        wind_direction=direction,
    )


def build_drone_conditions(payload: dict, *, source_name: str = open_meteo_client.SOURCE_NAME) -> DroneConditions:
    """
    Derive the hour-0 altitude wind ladder from the base forecast payload.

    The 10 m sensor rung is reported at 0 ft. Gusts above the surface are the
    rung's wind scaled by the surface gust/wind ratio.
    """
    try:
        hourly = payload["hourly"]
        daily = payload.get("daily") or {}

        surface_wind = _first(hourly, f"windspeed_{SURFACE_HEIGHT_M}m")
        surface_gust = _first(hourly, f"windgusts_{SURFACE_HEIGHT_M}m")
        surface_dir = _first(hourly, f"winddirection_{SURFACE_HEIGHT_M}m")

        if surface_wind is not None and surface_wind > GUST_RATIO_MIN_WIND_MPS and surface_gust is not None:
            gust_ratio = surface_gust / surface_wind
        else:
            gust_ratio = 1.0

        altitudes: List[AltitudeSample] = []
        for height in LADDER_HEIGHTS_M:
            wind_mps = _first(hourly, f"windspeed_{height}m")
            if wind_mps is None:
                logger.debug("No wind speed at rung; skipping", extra={"height_m": height})
                continue
            direction = _first(hourly, f"winddirection_{DIRECTION_SOURCE_HEIGHT_M[height]}m")
            if direction is None:
                direction = surface_dir if surface_dir is not None else 0.0

            if height == SURFACE_HEIGHT_M:
                gust_mps = surface_gust if surface_gust is not None else wind_mps
                altitude_ft = 0.0
            else:
                gust_mps = wind_mps * gust_ratio
                altitude_ft = m_to_ft(height)
            altitudes.append(_altitude_sample(altitude_ft, wind_mps, gust_mps, direction))

        visibility_m = _first(hourly, "visibility")
        visibility_km = visibility_m / 1000 if visibility_m is not None else None
        uv_max = (daily.get("uv_index_max") or [None])[0]

        return DroneConditions(
            altitudes=altitudes,
            uv_index_max=uv_max,
            visibility_km=visibility_km,
            visibility_mi=km_to_mi(visibility_km) if visibility_km is not None else None,
            source_name=source_name,
        )
    except (KeyError, TypeError, ValueError, IndexError, AttributeError) as exc:
        # pydantic ValidationError is a ValueError
        raise ProviderPayloadError(f"Malformed Open-Meteo wind payload: {exc!r}") from exc


def _default_base_source() -> CallableBaseSource:
    return CallableBaseSource(
        forecast=open_meteo_client.fetch_forecast,
        air_quality=open_meteo_client.fetch_air_quality,
    )


def _settle_air_quality(future: Future) -> Optional[AirQualityIndex]:
    try:
        values = open_meteo_client.hourly_us_aqi(future.result())
    except Exception as exc:
        logger.warning(
            "Air quality unavailable; bundle will omit AQI: %s",
            describe_failure(exc),
            extra={"url": failed_url(exc)},
        )
        return None
    aqi = reduce_daylight_aqi(values)
    if aqi is None:
        logger.info("Air quality payload had no usable values")
    return aqi


def _settle_optional(provider: WeatherProvider, future: Future) -> Optional[WeatherSeries]:
    try:
        result: ProviderResult = future.result()
    except Exception as exc:
        logger.warning("Optional provider %s raised: %s", provider.name, describe_failure(exc))
        return None
    if not result.ok:
        logger.info("Optional provider %s absent: %s", provider.name, result.reason)
        return None
    return result.series


def fetch_weather_bundle_or_raise(
    latitude: float,
    longitude: float,
    *,
    providers: Sequence[WeatherProvider] | None = None,
    base_source: CallableBaseSource | None = None,
    settings: config.Settings | None = None,
    http: requests.Session | None = None,
) -> FetchResult:
    """
    Fetch base forecast, air quality and every optional provider concurrently.

    All requests are allowed to settle; a failing one never cancels the
    others. Only a base-forecast failure is fatal (raised as
    BaseProviderError). The bundle keeps the order [base, *optional].
    """
    settings = settings or config.settings
    source = base_source or _default_base_source()
    optional = list(providers) if providers is not None else build_optional_providers(settings, http)

    logger.info(
        "Fetching weather bundle",
        extra={"latitude": latitude, "longitude": longitude, "optional_providers": [p.name for p in optional]},
    )

    request_kwargs = {"timeout": settings.request_timeout_seconds, "http": http}
    with ThreadPoolExecutor(max_workers=2 + len(optional), thread_name_prefix="forecast") as pool:
        base_future = pool.submit(
            source.fetch_forecast, latitude, longitude, forecast_days=settings.forecast_days, **request_kwargs
        )
        air_future = pool.submit(source.fetch_air_quality, latitude, longitude, **request_kwargs)
        optional_futures = [(p, pool.submit(p.fetch_series, latitude, longitude)) for p in optional]
    # Leaving the executor waits for every future, so all outcomes are settled here.

    try:
        base_payload = base_future.result()
    except Exception as exc:
        raise BaseProviderError(f"Failed to fetch base weather data ({describe_failure(exc)})") from exc

    aqi = _settle_air_quality(air_future)

    try:
        base_series = open_meteo_client.map_open_meteo_series(base_payload, aqi)
        drone = build_drone_conditions(base_payload)
    except ProviderPayloadError as exc:
        raise BaseProviderError(f"Base weather data was malformed: {exc}") from exc

    sources: List[WeatherSeries] = [base_series]
    for provider, future in optional_futures:
        series = _settle_optional(provider, future)
        if series is not None:
            sources.append(series)

    logger.info(
        "Built weather bundle",
        extra={"sources": [s.name for s in sources], "aqi": aqi.value if aqi else None},
    )
    return FetchResult(bundle=WeatherBundle(sources=sources), drone=drone)


def fetch_weather_bundle(
    latitude: float,
    longitude: float,
    *,
    providers: Sequence[WeatherProvider] | None = None,
    base_source: CallableBaseSource | None = None,
    settings: config.Settings | None = None,
    http: requests.Session | None = None,
) -> FetchResult | None:
    """Same as fetch_weather_bundle_or_raise, but None means nothing usable was fetched."""
    try:
        return fetch_weather_bundle_or_raise(
            latitude,
            longitude,
            providers=providers,
            base_source=base_source,
            settings=settings,
            http=http,
        )
    except BaseProviderError as exc:
        logger.error("Weather bundle fetch failed: %s", exc, extra={"latitude": latitude, "longitude": longitude})
        return None


def main():
    """Manual test helper for bundle aggregation."""
    result = fetch_weather_bundle(43.07, -89.40)
    if result is None:
        print("base provider unavailable")
        return
    for series in result.bundle.sources:
        first = series.hourly[0] if series.hourly else None
        print(f"{series.name}: {len(series.hourly)} hours, {len(series.daily)} days, "
              f"aqi={series.aqi.value if series.aqi else '-'}, first={first}")
    for rung in result.drone.altitudes:
        print(f"    {rung.altitude_ft:6.1f} ft  {rung.wind_speed_mph:5.1f} mph  "
              f"gust {rung.gust_speed_mph:5.1f}  dir {rung.wind_direction:5.1f}")


if __name__ == "__main__":
    main()
