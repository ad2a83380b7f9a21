"""Factory helpers for choosing which optional providers run at startup."""

from __future__ import annotations

from functools import partial
from typing import List

import requests

from aperture import config
from aperture.providers.base import CallableWeatherProvider, WeatherProvider
from aperture.providers import tomorrowio_client, weatherapi_client
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="providers/factory")


def build_optional_providers(
    settings: config.Settings | None = None,
    http: requests.Session | None = None,
) -> List[WeatherProvider]:
    """Instantiate the credential-gated providers, in bundle order."""
    settings = settings or config.settings
    providers: List[WeatherProvider] = []

    if settings.weatherapi_key:
        logger.info("WeatherAPI.com provider enabled")
        providers.append(
            CallableWeatherProvider(
                name=weatherapi_client.SOURCE_NAME,
                fetch=partial(weatherapi_client.fetch_weatherapi_series, settings=settings, http=http),
            )
        )
    else:
        logger.info("WeatherAPI.com provider disabled; no key configured")

    if settings.tomorrowio_key:
        logger.info("Tomorrow.io provider enabled")
        providers.append(
            CallableWeatherProvider(
                name=tomorrowio_client.SOURCE_NAME,
                fetch=partial(tomorrowio_client.fetch_tomorrowio_series, settings=settings, http=http),
            )
        )
    else:
        logger.info("Tomorrow.io provider disabled; no key configured")

    return providers
