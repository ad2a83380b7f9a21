"""Application configuration pulled from environment variables via pydantic."""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the forecast service."""
    model_config = SettingsConfigDict(env_prefix="APERTURE_", extra="ignore")

    # Optional upstreams are disabled entirely when their key is unset.
    weatherapi_key: str | None = None
    tomorrowio_key: str | None = None

    api_key: str | None = None
    forecast_days: int = 10
    request_timeout_seconds: float = 10.0
    http_cache_name: str = ".cache"
    http_cache_backend: str = "sqlite"
    http_cache_expire_seconds: int = 3600
    http_retries: int = 3
    http_backoff_factor: float = 0.2
    log_level: str = "INFO"
    default_time_format: str = "12h"

    @field_validator("weatherapi_key", "tomorrowio_key", "api_key", mode="after")
    @classmethod
    def blank_is_unset(cls, v: str | None) -> str | None:
        """Treat empty strings from the environment as missing credentials."""
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("default_time_format", mode="after")
    @classmethod
    def check_time_format(cls, v: str) -> str:
        if v not in ("12h", "24h"):
            raise ValueError("default_time_format must be '12h' or '24h'")
        return v


SECRET_FIELDS = {"weatherapi_key", "tomorrowio_key", "api_key"}

settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4, exclude=SECRET_FIELDS)}")
