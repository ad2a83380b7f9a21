import os

# Keep the shared upstream session off disk and unauthenticated during tests.
os.environ.setdefault("APERTURE_HTTP_CACHE_BACKEND", "memory")
os.environ.setdefault("APERTURE_HTTP_RETRIES", "0")
for _key in ("APERTURE_WEATHERAPI_KEY", "APERTURE_TOMORROWIO_KEY", "APERTURE_API_KEY"):
    os.environ.pop(_key, None)
