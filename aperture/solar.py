"""Sun event times for photography planning.

Sunrise, sunset, twilight and golden-hour instants come from ``astral.sun``
for the location's observer, so no upstream call is needed.

When the sun never reaches a target elevation on a given day (polar day or
night) astral raises ``ValueError``; the affected events are ``None`` here, the
"invalid instant". Callers render a placeholder for them; nothing here raises.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Callable, Optional, Tuple
from zoneinfo import ZoneInfo

from astral import LocationInfo, Observer
from astral.sun import SunDirection, dawn, dusk, midnight, noon, sunrise, sunset, time_at_elevation

from aperture.domain import TimeFormat

# Geometric sun elevations (degrees, no refraction) for events astral has no helper for.
SUNRISE_END_ELEVATION = -0.3
GOLDEN_HOUR_ELEVATION = 6.0

# Depression below the horizon for each twilight.
CIVIL_DEPRESSION = 6.0
NAUTICAL_DEPRESSION = 12.0
ASTRONOMICAL_DEPRESSION = 18.0

INVALID_TIME_TEXT = "--:--"


@dataclass(frozen=True)
class SunTimes:
    """Sun events for one local calendar day. ``None`` marks an invalid instant."""
    solar_noon: dt.datetime
    nadir: dt.datetime
    sunrise: Optional[dt.datetime] = None
    sunset: Optional[dt.datetime] = None
    sunrise_end: Optional[dt.datetime] = None
    sunset_start: Optional[dt.datetime] = None
    dawn: Optional[dt.datetime] = None
    dusk: Optional[dt.datetime] = None
    nautical_dawn: Optional[dt.datetime] = None
    nautical_dusk: Optional[dt.datetime] = None
    night_end: Optional[dt.datetime] = None
    night: Optional[dt.datetime] = None
    golden_hour_end: Optional[dt.datetime] = None
    golden_hour: Optional[dt.datetime] = None


@dataclass(frozen=True)
class HourWindow:
    """Formatted morning/evening window, each as "<start> - <end>"."""
    am: str
    pm: str


def is_valid_instant(instant: Optional[dt.datetime]) -> bool:
    return instant is not None


def _resolve_zone(tz: str | dt.tzinfo | None) -> dt.tzinfo:
    if tz is None:
        return dt.timezone.utc
    if isinstance(tz, str):
        return ZoneInfo(tz)
    return tz


def observer_at(lat: float, lon: float) -> Observer:
    """Sea-level astral observer for a coordinate."""
    return LocationInfo(latitude=lat, longitude=lon).observer


def _event(compute: Callable[..., dt.datetime], *args, **kwargs) -> Optional[dt.datetime]:
    try:
        return compute(*args, **kwargs)
    except ValueError:
        # The sun does not reach this elevation on this day.
        return None


def sun_times(
    day: dt.date,
    lat: float,
    lon: float,
    *,
    tz: str | dt.tzinfo | None = None,
) -> SunTimes:
    """Compute all sun events for `day` (a local civil date in `tz`, UTC by default)."""
    zone = _resolve_zone(tz)
    observer = observer_at(lat, lon)

    def twilight(compute, depression: float) -> Optional[dt.datetime]:
        return _event(compute, observer, day, depression=depression, tzinfo=zone)

    def at_elevation(elevation: float, direction: SunDirection) -> Optional[dt.datetime]:
        return _event(
            time_at_elevation, observer, elevation, day, direction, tzinfo=zone, with_refraction=False
        )

    return SunTimes(
        solar_noon=noon(observer, day, tzinfo=zone),
        nadir=midnight(observer, day, tzinfo=zone),
        sunrise=_event(sunrise, observer, day, tzinfo=zone),
        sunset=_event(sunset, observer, day, tzinfo=zone),
        sunrise_end=at_elevation(SUNRISE_END_ELEVATION, SunDirection.RISING),
        sunset_start=at_elevation(SUNRISE_END_ELEVATION, SunDirection.SETTING),
        dawn=twilight(dawn, CIVIL_DEPRESSION),
        dusk=twilight(dusk, CIVIL_DEPRESSION),
        nautical_dawn=twilight(dawn, NAUTICAL_DEPRESSION),
        nautical_dusk=twilight(dusk, NAUTICAL_DEPRESSION),
        night_end=twilight(dawn, ASTRONOMICAL_DEPRESSION),
        night=twilight(dusk, ASTRONOMICAL_DEPRESSION),
        golden_hour_end=at_elevation(GOLDEN_HOUR_ELEVATION, SunDirection.RISING),
        golden_hour=at_elevation(GOLDEN_HOUR_ELEVATION, SunDirection.SETTING),
    )


def solar_times(
    day: dt.date,
    lat: float,
    lon: float,
    *,
    tz: str | dt.tzinfo | None = None,
) -> Tuple[Optional[dt.datetime], Optional[dt.datetime]]:
    """Return (sunrise, sunset) for the day."""
    zone = _resolve_zone(tz)
    observer = observer_at(lat, lon)
    return (
        _event(sunrise, observer, day, tzinfo=zone),
        _event(sunset, observer, day, tzinfo=zone),
    )


def format_clock(instant: Optional[dt.datetime], time_format: TimeFormat | str = TimeFormat.TWELVE_HOUR) -> str:
    """Format an instant as "7:05 PM" (12h) or "19:05" (24h)."""
    if not is_valid_instant(instant):
        return INVALID_TIME_TEXT
    if TimeFormat(time_format) is TimeFormat.TWENTY_FOUR_HOUR:
        return f"{instant.hour:02d}:{instant.minute:02d}"
    hour = instant.hour % 12 or 12
    suffix = "AM" if instant.hour < 12 else "PM"
    return f"{hour}:{instant.minute:02d} {suffix}"


def _window(start, end, time_format) -> str:
    return f"{format_clock(start, time_format)} - {format_clock(end, time_format)}"


def golden_hour_window(
    lat: float,
    lon: float,
    day: dt.date | None = None,
    time_format: TimeFormat | str = TimeFormat.TWELVE_HOUR,
    *,
    tz: str | dt.tzinfo | None = None,
) -> HourWindow:
    """Morning golden hour runs sunrise to golden-hour end; evening runs golden hour to sunset."""
    day = day or dt.datetime.now(_resolve_zone(tz)).date()
    times = sun_times(day, lat, lon, tz=tz)
    return HourWindow(
        am=_window(times.sunrise, times.golden_hour_end, time_format),
        pm=_window(times.golden_hour, times.sunset, time_format),
    )


def blue_hour_window(
    lat: float,
    lon: float,
    day: dt.date | None = None,
    time_format: TimeFormat | str = TimeFormat.TWELVE_HOUR,
    *,
    tz: str | dt.tzinfo | None = None,
) -> HourWindow:
    """Morning blue hour runs dawn to sunrise; evening runs sunset to dusk."""
    day = day or dt.datetime.now(_resolve_zone(tz)).date()
    times = sun_times(day, lat, lon, tz=tz)
    return HourWindow(
        am=_window(times.dawn, times.sunrise, time_format),
        pm=_window(times.sunset, times.dusk, time_format),
    )
