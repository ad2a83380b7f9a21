import os

import uvicorn

from aperture.config import settings
from utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="server")


def log_enabled_providers() -> None:
    """Say up front which optional upstreams this process will query."""
    enabled = [name for name, key in (("WeatherAPI.com", settings.weatherapi_key),
                                      ("Tomorrow.io", settings.tomorrowio_key)) if key]
    if enabled:
        logger.info("Optional providers enabled: %s", ", ".join(enabled))
    else:
        logger.info("No optional provider keys set; serving the base forecast only")


if __name__ == "__main__":
    setup_logging(level=settings.log_level, job_name="aperture_api")
    log_enabled_providers()

    uvicorn.run(
        "aperture.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=False,
    )
