"""
Logging for the forecast service.

The process entrypoint calls ``setup_logging(level=..., job_name=...)`` once;
modules take a logger from ``get_tagged_logger(__name__, tag=...)`` and attach
structured fields with ``extra=``:

    logger = get_tagged_logger(__name__, tag="providers/open_meteo")
    logger.info("Requesting forecast", extra={"latitude": lat, "longitude": lon})

which renders as

    2024-06-01 12:00:00 | INFO | aperture_api | providers/open_meteo | Requesting forecast | latitude=43.07 longitude=-89.4

Upstream URLs carry API keys in their query strings, so any structured value
that looks like a URL passes through ``mask_url_secrets`` before it is written.
"""

from __future__ import annotations

import logging
import logging.config
from typing import Any, Mapping, MutableMapping, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

# Records logged before setup_logging() still get a timestamp and a level.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(job_name)s | %(tag)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Query parameters whose values must never be logged.
SENSITIVE_QUERY_TOKENS = ("key", "token", "secret", "pass", "pwd")

# Attributes every LogRecord has; anything else on a record came from `extra=`.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("x", logging.INFO, __file__, 0, "", None, None))
) | {"message", "asctime", "tag", "job_name", "taskName"}

_CONFIGURED = False


def mask_url_secrets(url: str) -> str:
    """Return `url` with credential query values and userinfo replaced by ``***``.

    >>> mask_url_secrets("https://api.weatherapi.com/v1/forecast.json?key=abc&q=1,2")
    'https://api.weatherapi.com/v1/forecast.json?key=%2A%2A%2A&q=1%2C2'
    """
    try:
        parsed = urlparse(url)
        port = parsed.port
    except ValueError:
        return url

    query = urlencode(
        [
            (name, "***" if any(t in name.lower() for t in SENSITIVE_QUERY_TOKENS) else value)
            for name, value in parse_qsl(parsed.query, keep_blank_values=True)
        ]
    )

    if not parsed.hostname:
        return urlunparse(parsed._replace(query=query)) if parsed.query else url

    userinfo = ""
    if parsed.username:
        userinfo = "***:***@" if parsed.password is not None else "***@"
    netloc = f"{userinfo}{parsed.hostname}" + (f":{port}" if port else "")
    return urlunparse(parsed._replace(netloc=netloc, query=query))


def _render_field(value: Any) -> str:
    if isinstance(value, str) and "://" in value:
        return mask_url_secrets(value)
    return str(value)


class MaxLevelFilter(logging.Filter):
    """Pass only records at or below `max_level` (keeps WARNING+ off stdout)."""

    def __init__(self, max_level: int) -> None:
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        return record.levelno <= self.max_level


class RecordContextFilter(logging.Filter):
    """
    Give every record the `job_name` and `tag` the format string expects.

    Third-party loggers (uvicorn, urllib3, requests_cache) never set a tag, so
    theirs is the last segment of the logger name.
    """

    def __init__(self, job_name: Optional[str] = None) -> None:
        super().__init__()
        self.job_name = job_name or "-"

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "job_name"):
            record.job_name = self.job_name
        if not hasattr(record, "tag"):
            record.tag = record.name.rsplit(".", 1)[-1] if record.name else "-"
        return True


class StructuredFormatter(logging.Formatter):
    """Standard formatter that appends `extra=` fields as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS and not k.startswith("_")}
        if not fields:
            return line
        rendered = " ".join(f"{k}={_render_field(v)}" for k, v in sorted(fields.items()))
        return f"{line} | {rendered}"


class TaggedLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges per-call `extra=` with its own tag instead of replacing it."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**(kwargs.get("extra") or {}), **self.extra}
        return msg, kwargs


def build_logging_config(*, level: str | int = "INFO", job_name: Optional[str] = None) -> Mapping[str, Any]:
    """dictConfig for the service: DEBUG/INFO to stdout, WARNING and above to stderr."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "context": {"()": RecordContextFilter, "job_name": job_name},
            "below_warning": {"()": MaxLevelFilter, "max_level": logging.INFO},
        },
        "formatters": {
            "structured": {"()": StructuredFormatter, "fmt": LOG_FORMAT, "datefmt": DATE_FORMAT},
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "structured",
                "filters": ["context", "below_warning"],
                "level": "DEBUG",
                "stream": "ext://sys.stdout",
            },
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": "structured",
                "filters": ["context"],
                "level": "WARNING",
                "stream": "ext://sys.stderr",
            },
        },
        "root": {"level": level, "handlers": ["stdout", "stderr"]},
    }


def setup_logging(*, level: str | int = "INFO", job_name: Optional[str] = None, override_existing: bool = False) -> None:
    """Install the service logging config; later calls are no-ops unless `override_existing`."""
    global _CONFIGURED

    if _CONFIGURED and not override_existing:
        return
    logging.config.dictConfig(build_logging_config(level=level, job_name=job_name))
    _CONFIGURED = True


def get_tagged_logger(name: str, *, tag: Optional[str] = None) -> TaggedLoggerAdapter:
    """Logger whose records all carry `tag` (default: last segment of `name`)."""
    return TaggedLoggerAdapter(logging.getLogger(name), {"tag": tag or name.rsplit(".", 1)[-1]})
