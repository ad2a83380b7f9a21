"""Upstream forecast providers and their adapters into the canonical model."""

from .base import CallableBaseSource, CallableWeatherProvider, ProviderResult, WeatherProvider
from .factory import build_optional_providers
from .open_meteo_client import fetch_air_quality, fetch_forecast, map_open_meteo_series
from .tomorrowio_client import fetch_tomorrowio_series, map_tomorrowio_series
from .weatherapi_client import fetch_weatherapi_series, map_weatherapi_series

__all__ = [
    "build_optional_providers",
    "CallableBaseSource",
    "CallableWeatherProvider",
    "ProviderResult",
    "WeatherProvider",
    "fetch_air_quality",
    "fetch_forecast",
    "map_open_meteo_series",
    "fetch_tomorrowio_series",
    "map_tomorrowio_series",
    "fetch_weatherapi_series",
    "map_weatherapi_series",
]
