"""Canonical forecast vocabulary shared by every upstream adapter.

Each upstream payload is normalized into these models; nothing downstream
(HTTP layer, interpolation, solar windows) ever looks at a provider's native
shape. All models are frozen snapshots rebuilt on every location fetch.
"""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Callable, Dict, List, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _FrozenModel(BaseModel):
    """Base model: immutable, strict extra handling."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class SpeedUnit(str, Enum):
    """Display unit for wind speeds."""
    MPH = "mph"
    KPH = "kph"
    KTS = "kts"


class TimeFormat(str, Enum):
    """Clock style for formatted sun times."""
    TWELVE_HOUR = "12h"
    TWENTY_FOUR_HOUR = "24h"


class AqiCategory(str, Enum):
    """US AQI health category."""
    GOOD = "Good"
    MODERATE = "Moderate"
    UNHEALTHY_FOR_SENSITIVE = "Unhealthy for Sensitive Groups"
    UNHEALTHY = "Unhealthy"
    VERY_UNHEALTHY = "Very Unhealthy"
    HAZARDOUS = "Hazardous"
    UNKNOWN = "Unknown"


# Inclusive upper bounds of each category; anything above the last is hazardous.
AQI_BREAKPOINTS: Tuple[Tuple[int, AqiCategory], ...] = (
    (50, AqiCategory.GOOD),
    (100, AqiCategory.MODERATE),
    (150, AqiCategory.UNHEALTHY_FOR_SENSITIVE),
    (200, AqiCategory.UNHEALTHY),
    (300, AqiCategory.VERY_UNHEALTHY),
)


def aqi_category(value: float | None) -> AqiCategory:
    """Map a US AQI value onto its category."""
    if value is None:
        return AqiCategory.UNKNOWN
    for upper, category in AQI_BREAKPOINTS:
        if value <= upper:
            return category
    return AqiCategory.HAZARDOUS


# WMO weather interpretation codes as used by the base provider.
WMO_CODE_LABELS: Dict[int, str] = {
    0: "Clear Sky",
    1: "Mainly Clear",
    2: "Partly Cloudy",
    3: "Overcast",
    45: "Foggy",
    48: "Foggy",
    51: "Drizzle",
    53: "Drizzle",
    55: "Drizzle",
    61: "Rain",
    63: "Rain",
    65: "Rain",
    71: "Snow",
    73: "Snow",
    75: "Snow",
    80: "Rain Showers",
    81: "Rain Showers",
    82: "Rain Showers",
    85: "Snow Showers",
    86: "Snow Showers",
    95: "Thunderstorm",
    96: "Thunderstorm with Hail",
    99: "Thunderstorm with Hail",
}


def describe_weather_code(code: int | None) -> str:
    """Human label for a WMO code, falling back to the raw number."""
    if code is None:
        return "Unknown"
    return WMO_CODE_LABELS.get(int(code), f"Weather code: {code}")


class Coordinate(_FrozenModel):
    """A named location. `name` is a display label, not a key."""
    lat: float
    lon: float
    name: str

    def same_place(self, other: Coordinate | None) -> bool:
        """Locations are matched by exact name only, never by lat/lon."""
        return other is not None and self.name == other.name


def is_favorite(coordinate: Coordinate, favorites: Sequence[Coordinate]) -> bool:
    """Return True if a favorite with the same (case-sensitive) name exists."""
    return any(coordinate.same_place(f) for f in favorites)


class HourlySample(_FrozenModel):
    """One hour of a provider's forecast horizon."""
    time: str  # "HH:00" in the provider's local clock
    temp_c: float | None = None
    temp_f: float | None = None
    precip_chance: float = Field(default=0.0, ge=0.0, le=100.0)
    cloud_cover: float | None = None
    wind_speed_mph: float | None = None
    wind_speed_kph: float | None = None
    summary: str = ""
    weathercode: int = 0


class DailySample(_FrozenModel):
    """One calendar day of a provider's forecast."""
    date: dt.date
    high_c: float | None = None
    low_c: float | None = None
    high_f: float | None = None
    low_f: float | None = None
    precip_chance: float = Field(default=0.0, ge=0.0, le=100.0)
    summary: str = ""
    weathercode: int = 0
    sunrise: str | None = None
    sunset: str | None = None


class AirQualityIndex(_FrozenModel):
    """Single daily US AQI figure."""
    value: int
    category: AqiCategory

    @classmethod
    def from_value(cls, value: float) -> AirQualityIndex:
        """Round to the reported integer first so value and category always agree."""
        rounded = int(round(value))
        return cls(value=rounded, category=aqi_category(rounded))


class WeatherSeries(_FrozenModel):
    """Canonical per-provider output."""
    name: str
    hourly: List[HourlySample] = Field(default_factory=list, max_length=24)
    daily: List[DailySample] = Field(default_factory=list, max_length=10)
    aqi: AirQualityIndex | None = None
    disclaimer: str | None = None


class WeatherBundle(_FrozenModel):
    """All series for one fetch. Index 0 is always the base provider."""
    sources: List[WeatherSeries] = Field(min_length=1)

    @property
    def base(self) -> WeatherSeries:
        return self.sources[0]


_SPEED_LOOKUP: Dict[SpeedUnit, Callable[["AltitudeSample"], Tuple[float, float]]] = {
    SpeedUnit.MPH: lambda s: (s.wind_speed_mph, s.gust_speed_mph),
    SpeedUnit.KPH: lambda s: (s.wind_speed_kph, s.gust_speed_kph),
    SpeedUnit.KTS: lambda s: (s.wind_speed_kts, s.gust_speed_kts),
}


class AltitudeSample(_FrozenModel):
    """One rung of the altitude wind ladder, in all speed units at once."""
    altitude_ft: float
    wind_speed_mph: float
    wind_speed_kph: float
    wind_speed_kts: float
    gust_speed_mph: float
    gust_speed_kph: float
    gust_speed_kts: float
    wind_direction: float = Field(ge=0.0, lt=360.0)

    @field_validator("wind_direction", mode="before")
    @classmethod
    def wrap_direction(cls, v):
        """Upstreams report north as either 0 or 360."""
        if v is None:
            return v
        return float(v) % 360.0

    def speeds(self, unit: SpeedUnit) -> Tuple[float, float]:
        """Return (wind, gust) in the requested unit."""
        return _SPEED_LOOKUP[SpeedUnit(unit)](self)

    def wind_speed(self, unit: SpeedUnit) -> float:
        return self.speeds(unit)[0]

    def gust_speed(self, unit: SpeedUnit) -> float:
        return self.speeds(unit)[1]


class DroneConditions(_FrozenModel):
    """Low-altitude flying conditions derived from the base provider's first hour."""
    altitudes: List[AltitudeSample] = Field(max_length=7)
    uv_index_max: float | None = None
    visibility_km: float | None = None
    visibility_mi: float | None = None
    source_name: str


class WindAtAltitude(_FrozenModel):
    """Interpolated wind at a single query altitude."""
    wind_speed: float = 0.0
    gust_speed: float = 0.0
    direction: float = 0.0
    unit: SpeedUnit = SpeedUnit.MPH


class FetchResult(_FrozenModel):
    """Everything a successful location fetch produces."""
    bundle: WeatherBundle
    drone: DroneConditions
