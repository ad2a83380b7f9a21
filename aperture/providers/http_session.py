"""Shared HTTP session for every upstream client."""
from __future__ import annotations

import requests
import requests_cache
from retry_requests import retry

from aperture import config
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="providers/http_session")


def build_session(settings: config.Settings | None = None) -> requests.Session:
    """Return a cached session that retries transient upstream failures."""
    settings = settings or config.settings
    cache_session = requests_cache.CachedSession(
        settings.http_cache_name,
        backend=settings.http_cache_backend,
        expire_after=settings.http_cache_expire_seconds,
    )
    logger.info(
        "Built cached upstream session",
        extra={
            "backend": settings.http_cache_backend,
            "expire_after": settings.http_cache_expire_seconds,
            "retries": settings.http_retries,
        },
    )
    return retry(cache_session, retries=settings.http_retries, backoff_factor=settings.http_backoff_factor)


session = build_session()


def get_json(url: str, params: dict, *, timeout: float | None = None, http: requests.Session | None = None) -> dict:
    """GET `url` and decode its JSON body; non-2xx responses raise."""
    timeout = timeout if timeout is not None else config.settings.request_timeout_seconds
    resp = (http or session).get(url, params=params, timeout=timeout)
    resp.raise_for_status()
    return resp.json()
