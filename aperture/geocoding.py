"""Turn free-text place names (or "lat, lon" literals) into coordinates."""
from __future__ import annotations

import re
from typing import List, Optional

import requests

from aperture import config
from aperture.domain import Coordinate
from aperture.providers import http_session
from aperture.providers.common import describe_failure
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="geocoding")

GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"

MIN_QUERY_LENGTH = 3
AUTOCOMPLETE_COUNT = 5

# Latitude within +-90, longitude within +-180, separated by a comma.
LAT_LON_PATTERN = re.compile(
    r"^-?([1-8]?\d(\.\d+)?|90(\.0+)?),\s*-?((1[0-7]\d(\.\d+)?|180(\.0+)?)|(\d{1,2}(\.\d+)?))$"
)


def parse_coordinates(text: str) -> Optional[Coordinate]:
    """Return a Coordinate for a "lat, lon" literal, or None if `text` is not one."""
    text = text.strip()
    if not LAT_LON_PATTERN.match(text):
        return None
    lat_text, lon_text = text.split(",")
    lat, lon = float(lat_text), float(lon_text)
    return Coordinate(lat=lat, lon=lon, name=f"Coordinates ({lat:.2f}, {lon:.2f})")


def _display_name(item: dict) -> str:
    parts = [item.get("name"), item.get("admin1"), item.get("country")]
    return ", ".join(p for p in parts if p)


def _to_coordinate(item: dict) -> Coordinate:
    return Coordinate(lat=item["latitude"], lon=item["longitude"], name=_display_name(item))


def _search(name: str, count: int, *, http: requests.Session | None, timeout: float | None) -> List[dict]:
    params = {"name": name, "count": count, "language": "en", "format": "json"}
    data = http_session.get_json(GEOCODING_URL, params, timeout=timeout, http=http)
    results = data.get("results")
    return results if isinstance(results, list) else []


def search_places(
    text: str,
    count: int = AUTOCOMPLETE_COUNT,
    *,
    settings: config.Settings | None = None,
    http: requests.Session | None = None,
) -> List[Coordinate]:
    """Autocomplete suggestions for a partially typed place name."""
    if not text or len(text.strip()) < MIN_QUERY_LENGTH:
        return []
    settings = settings or config.settings
    try:
        results = _search(text, count, http=http, timeout=settings.request_timeout_seconds)
        return [_to_coordinate(item) for item in results]
    except Exception as exc:
        logger.error("Place search failed: %s", describe_failure(exc), extra={"query": text})
        return []


def resolve_location(
    text: str,
    *,
    settings: config.Settings | None = None,
    http: requests.Session | None = None,
) -> Optional[Coordinate]:
    """
    Resolve a location string to a single Coordinate.

    "lat, lon" literals short-circuit the lookup. Otherwise the full text is
    searched; if that finds nothing and the text has commas ("Detroit,
    Michigan, US") the first segment alone is tried.
    """
    literal = parse_coordinates(text)
    if literal is not None:
        return literal

    settings = settings or config.settings
    timeout = settings.request_timeout_seconds
    try:
        results = _search(text, 1, http=http, timeout=timeout)
        if not results and "," in text:
            simple_name = text.split(",")[0].strip()
            if len(simple_name) > 1:
                logger.debug("Retrying geocode with first segment", extra={"query": simple_name})
                results = _search(simple_name, 1, http=http, timeout=timeout)
        if results:
            return _to_coordinate(results[0])
        return None
    except Exception as exc:
        logger.error("Location lookup failed: %s", describe_failure(exc), extra={"query": text})
        return None
