"""Wind speed, gust and direction at an arbitrary height between ladder rungs."""
from __future__ import annotations

from enum import Enum
from typing import Sequence

from aperture.domain import AltitudeSample, SpeedUnit, WindAtAltitude

# Highest altitude the flight planner lets a user query.
MAX_ALTITUDE_FT = 550


class WindBand(str, Enum):
    """Coarse wind strength band for a speed in mph."""
    CALM = "calm"
    BREEZY = "breezy"
    STRONG = "strong"


def wind_band(speed_mph: float) -> WindBand:
    if speed_mph < 10:
        return WindBand.CALM
    if speed_mph < 20:
        return WindBand.BREEZY
    return WindBand.STRONG


def _lerp(lower: float, upper: float, factor: float) -> float:
    return lower + factor * (upper - lower)


def _lerp_direction(lower: float, upper: float, factor: float) -> float:
    """Interpolate along the shortest arc; the result stays in [0, 360)."""
    diff = upper - lower
    if diff > 180:
        diff -= 360
    if diff < -180:
        diff += 360
    direction = lower + factor * diff
    if direction < 0:
        direction += 360
    if direction >= 360:
        direction -= 360
    return direction


def interpolate_at_altitude(
    ladder: Sequence[AltitudeSample],
    query_ft: float,
    unit: SpeedUnit = SpeedUnit.MPH,
) -> WindAtAltitude:
    """
    Linearly interpolate wind between the two rungs bracketing `query_ft`.

    Queries below the lowest rung or above the highest return that rung's
    values unchanged (no extrapolation). An empty ladder yields zeros.
    """
    unit = SpeedUnit(unit)
    if not ladder:
        return WindAtAltitude(unit=unit)

    rungs = sorted(ladder, key=lambda r: r.altitude_ft)

    if query_ft <= rungs[0].altitude_ft:
        return _at_rung(rungs[0], unit)
    if query_ft >= rungs[-1].altitude_ft:
        return _at_rung(rungs[-1], unit)

    lower, upper = rungs[0], rungs[-1]
    for below, above in zip(rungs, rungs[1:]):
        if below.altitude_ft <= query_ft <= above.altitude_ft:
            lower, upper = below, above
            break

    span = upper.altitude_ft - lower.altitude_ft
    if span == 0:
        return _at_rung(lower, unit)
    factor = (query_ft - lower.altitude_ft) / span

    lower_wind, lower_gust = lower.speeds(unit)
    upper_wind, upper_gust = upper.speeds(unit)
    return WindAtAltitude(
        wind_speed=_lerp(lower_wind, upper_wind, factor),
        gust_speed=_lerp(lower_gust, upper_gust, factor),
        direction=_lerp_direction(lower.wind_direction, upper.wind_direction, factor),
        unit=unit,
    )


def _at_rung(rung: AltitudeSample, unit: SpeedUnit) -> WindAtAltitude:
    wind, gust = rung.speeds(unit)
    return WindAtAltitude(wind_speed=wind, gust_speed=gust, direction=rung.wind_direction, unit=unit)
