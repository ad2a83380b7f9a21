"""HTTP API exposing forecast bundles, altitude wind and sun windows."""

import datetime as dt
import hmac
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from pydantic import BaseModel, Field

from .altitude import MAX_ALTITUDE_FT, WindBand, interpolate_at_altitude, wind_band
from .config import settings
from .domain import AltitudeSample, Coordinate, FetchResult, SpeedUnit, TimeFormat, WindAtAltitude
from .errors import BaseProviderError
from .forecast_service import fetch_weather_bundle_or_raise
from .geocoding import parse_coordinates, resolve_location, search_places
from .solar import blue_hour_window, golden_hour_window, sun_times
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="api")


def require_api_key(x_api_key: str | None = Header(default=None)):
    """Validate the X-API-Key header against the configured static key, if any."""
    if not settings.api_key:
        logger.debug("No API key configured; allowing all requests")
        return

    if not x_api_key:
        logger.debug("No API key provided")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")

    if hmac.compare_digest(str(x_api_key), str(settings.api_key)):
        return

    logger.debug("Invalid API key provided")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


router = APIRouter(dependencies=[Depends(require_api_key)])


class WindRequest(BaseModel):
    """Altitude ladder from a previous forecast fetch plus the height to query."""
    altitudes: List[AltitudeSample]
    altitude_ft: float = Field(ge=0, le=MAX_ALTITUDE_FT)
    unit: SpeedUnit = SpeedUnit.MPH


class WindResponse(BaseModel):
    """Interpolated wind and its strength band."""
    altitude_ft: float
    wind: WindAtAltitude
    band: WindBand


class HourWindowModel(BaseModel):
    """Formatted morning/evening window."""
    am: str
    pm: str


class SunResponse(BaseModel):
    """Sun events for a day. Null instants mean the sun never reaches that elevation."""
    date: dt.date
    timezone: str
    sunrise: Optional[dt.datetime] = None
    sunset: Optional[dt.datetime] = None
    dawn: Optional[dt.datetime] = None
    dusk: Optional[dt.datetime] = None
    golden_hour_end: Optional[dt.datetime] = None
    golden_hour: Optional[dt.datetime] = None
    golden_hour_window: HourWindowModel
    blue_hour_window: HourWindowModel


def _resolve_zone(tz_str: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz_str)
    except (ZoneInfoNotFoundError, ValueError):
        raise HTTPException(status_code=400, detail=f"Invalid timezone: {tz_str}")


@router.get("/forecast", response_model=FetchResult)
def get_forecast(
    lat: float = Query(ge=-90, le=90),
    lon: float = Query(ge=-180, le=180),
):
    """Fetch and merge every provider's forecast for a coordinate."""
    try:
        return fetch_weather_bundle_or_raise(lat, lon)
    except BaseProviderError as exc:
        logger.error("Forecast request failed: %s", exc, extra={"latitude": lat, "longitude": lon})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))


@router.post("/wind", response_model=WindResponse)
def post_wind(req: WindRequest):
    """Interpolate wind at the requested height from a ladder of rungs."""
    wind = interpolate_at_altitude(req.altitudes, req.altitude_ft, req.unit)
    if req.unit is SpeedUnit.MPH:
        speed_mph = wind.wind_speed
    else:
        speed_mph = interpolate_at_altitude(req.altitudes, req.altitude_ft, SpeedUnit.MPH).wind_speed
    return WindResponse(altitude_ft=req.altitude_ft, wind=wind, band=wind_band(speed_mph))


@router.get("/sun", response_model=SunResponse)
def get_sun(
    lat: float = Query(ge=-90, le=90),
    lon: float = Query(ge=-180, le=180),
    date: Optional[dt.date] = None,
    tz: str = "UTC",
    time_format: Optional[TimeFormat] = None,
):
    """Sunrise, sunset, golden-hour and blue-hour windows for a day and place."""
    zone = _resolve_zone(tz)
    day = date or dt.datetime.now(zone).date()
    fmt = time_format or TimeFormat(settings.default_time_format)

    times = sun_times(day, lat, lon, tz=zone)
    golden = golden_hour_window(lat, lon, day, fmt, tz=zone)
    blue = blue_hour_window(lat, lon, day, fmt, tz=zone)

    return SunResponse(
        date=day,
        timezone=tz,
        sunrise=times.sunrise,
        sunset=times.sunset,
        dawn=times.dawn,
        dusk=times.dusk,
        golden_hour_end=times.golden_hour_end,
        golden_hour=times.golden_hour,
        golden_hour_window=HourWindowModel(am=golden.am, pm=golden.pm),
        blue_hour_window=HourWindowModel(am=blue.am, pm=blue.pm),
    )


@router.get("/geocode", response_model=List[Coordinate])
def get_geocode(q: str = Query(min_length=1), resolve: bool = False):
    """
    Place suggestions for a search box; "lat, lon" literals echo back as one result.

    With `resolve=true` the single best match is returned instead (retrying
    with the text before the first comma), or an empty list.
    """
    if resolve:
        match = resolve_location(q)
        return [match] if match is not None else []
    literal = parse_coordinates(q)
    if literal is not None:
        return [literal]
    return search_places(q)
