"""Small normalization helpers shared by the provider adapters."""
from __future__ import annotations

import datetime as dt
from typing import Any, Callable, Mapping, Optional

from aperture.errors import ProviderPayloadError
from utils.logging_utils import mask_url_secrets


def hour_label(timestamp: str) -> str:
    """Turn an upstream timestamp into an "HH:00" label on its own clock."""
    parsed = dt.datetime.fromisoformat(timestamp.strip().replace("Z", "+00:00"))
    return f"{parsed.hour:02d}:00"


def clamp_percent(value: Optional[float]) -> float:
    """Clamp a probability into [0, 100]; a missing value counts as 0."""
    if value is None:
        return 0.0
    return float(min(100.0, max(0.0, value)))


def maybe(convert: Callable[[float], float], value: Optional[float]) -> Optional[float]:
    """Apply a unit conversion, passing missing readings through as None."""
    if value is None:
        return None
    return convert(value)


def column_at(columns: Mapping[str, Any], key: str, index: int) -> Any:
    """Value at `index` of a column array, or None if the column is missing or short."""
    col = columns.get(key)
    if col is None or index >= len(col):
        return None
    return col[index]


def describe_failure(exc: BaseException) -> str:
    """Short, credential-free description of an upstream failure.

    requests embeds the full URL (query string included) in HTTPError messages,
    so those are reduced to the status code.
    """
    response = getattr(exc, "response", None)
    if response is not None and getattr(response, "status_code", None) is not None:
        return f"HTTP {response.status_code}"
    if isinstance(exc, ProviderPayloadError):
        return str(exc)
    return exc.__class__.__name__


def failed_url(exc: BaseException) -> str:
    """Masked URL of the request that failed, if requests recorded one."""
    request = getattr(exc, "request", None)
    url = getattr(request, "url", None)
    return mask_url_secrets(url) if url else ""
