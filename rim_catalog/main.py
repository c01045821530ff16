"""FastAPI application for the used-rim catalog."""

import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from rim_catalog.api.routes import limiter, router
from rim_catalog.core.config import get_settings, validate_settings
from rim_catalog.core.dependencies import (
    check_row_store_health,
    get_facet_index,
    get_row_store,
)
from rim_catalog.core.logging import log_request, log_response, logger, setup_logging

# Validate settings on startup
try:
    validate_settings()
except ValueError as e:
    logger.error(f"Configuration error: {e}")
    raise

settings = get_settings()
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - warm the facet index on startup."""
    logger.info("Starting rim catalog API...")
    store = get_row_store(settings)
    facets = await get_facet_index(store, settings).refresh()
    logger.info(f"Facet index ready with {len(facets.models)} models")
    yield
    logger.info("Shutting down...")


app = FastAPI(
    title="Rim Catalog API",
    description="Catalog of used wheels grouped by model, size, bolt pattern and finish",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Admin-Key"],
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    log_request(request.method, request.url.path)

    response = await call_next(request)

    duration_ms = (time.time() - start) * 1000
    log_response(request.method, request.url.path, response.status_code, duration_ms)

    return response


app.include_router(router, prefix="/api")


class HealthResponse(BaseModel):
    status: str
    supabase: dict[str, Any] | None = None


@app.get("/health", response_model=HealthResponse)
async def health_check(
    detailed: bool = False,
    store=Depends(get_row_store),
):
    """
    Health check endpoint.

    - Basic: Returns {"status": "healthy"}
    - Detailed (?detailed=true): Checks Supabase connectivity
    """
    if not detailed:
        return {"status": "healthy"}

    supabase_health = await check_row_store_health(store, settings.wheels_table)
    overall = "healthy" if supabase_health["status"] == "healthy" else "degraded"
    return {"status": overall, "supabase": supabase_health}
