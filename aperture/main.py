"""FastAPI application setup for Aperture Forecast."""

from fastapi import FastAPI

from .api import router as api_router

app = FastAPI(title="Aperture Forecast")


@app.get("/healthz")
def healthz():
    """Liveness check; does not touch any upstream."""
    return {"status": "ok"}


# API routes
app.include_router(api_router, prefix="/v1")
