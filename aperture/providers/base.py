"""Interfaces shared by the upstream forecast providers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from aperture.domain import WeatherSeries


@dataclass(frozen=True)
class ProviderResult:
    """Outcome of a best-effort provider: a series, or nothing plus the reason."""
    provider: str
    series: Optional[WeatherSeries] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.series is not None

    @classmethod
    def success(cls, provider: str, series: WeatherSeries) -> ProviderResult:
        return cls(provider=provider, series=series)

    @classmethod
    def absent(cls, provider: str, reason: str) -> ProviderResult:
        return cls(provider=provider, reason=reason)


class WeatherProvider(Protocol):
    """Anything that can produce an optional weather series for a coordinate."""

    name: str

    def fetch_series(self, latitude: float, longitude: float) -> ProviderResult:
        """Return the provider's series; never raises."""
        ...


@dataclass
class CallableWeatherProvider(WeatherProvider):
    """Wrap a fetch callable so providers can be swapped or faked."""

    name: str
    fetch: Callable[[float, float], ProviderResult]

    def fetch_series(self, latitude: float, longitude: float) -> ProviderResult:
        """Delegate to the configured callable."""
        return self.fetch(latitude, longitude)


@dataclass
class CallableBaseSource:
    """The two raw base calls (forecast, air quality), swappable for tests or caches."""

    forecast: Callable[..., dict]
    air_quality: Callable[..., dict]

    def fetch_forecast(self, *args, **kwargs) -> dict:
        """Delegate to the configured forecast callable."""
        return self.forecast(*args, **kwargs)

    def fetch_air_quality(self, *args, **kwargs) -> dict:
        """Delegate to the configured air-quality callable."""
        return self.air_quality(*args, **kwargs)
