"""
FastAPI Main Application
Entry point for the pricing API server
Source: https://fastapi.tiangolo.com/
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pricing_engine import __version__
from pricing_engine.api.routes import health, pricing
from pricing_engine.core.config import get_pricing_settings
from pricing_engine.core.enums import PricingErrorKind
from pricing_engine.gateways.pricing_data_client import reset_pricing_data_client
from pricing_engine.services.errors import validation_message
from pricing_engine.utils.errors import PricingHTTPError, http_error_for
from pricing_engine.utils.logging import get_logger, setup_logging

settings = get_pricing_settings()

# Setup logging
setup_logging(
    level=settings.LOG_LEVEL,
    log_file=settings.LOG_FILE,
    json_logs=settings.JSON_LOGS or settings.is_production,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore[no-untyped-def]  # noqa: ARG001
    """
    Application lifespan manager.

    Source: https://fastapi.tiangolo.com/advanced/events/
    """
    # Startup
    logger.info(f"Starting pricing engine in {settings.ENVIRONMENT} mode")
    logger.info(f"Reference data: {settings.INTEGRATION_MODE.value}")

    yield

    # Shutdown
    logger.info("Shutting down pricing engine")
    await reset_pricing_data_client()


app = FastAPI(
    title="Procedure Pricing Engine API",
    description="Rule-based procedure pricing with contract overrides, adjustments and coverage policy",
    version=__version__,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
    openapi_url="/openapi.json" if not settings.is_production else None,
    lifespan=lifespan,
)

# CORS middleware
# Source: https://fastapi.tiangolo.com/tutorial/cors/
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PricingHTTPError)
async def pricing_error_handler(request: Request, exc: PricingHTTPError) -> JSONResponse:  # noqa: ARG001
    """Render pricing failures as a bare ``{kind, message}`` body."""
    return JSONResponse(status_code=exc.status_code, content=exc.detail)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError  # noqa: ARG001
) -> JSONResponse:
    """Render malformed request bodies as an InvalidInput body."""
    error = http_error_for(PricingErrorKind.INVALID_INPUT, validation_message(list(exc.errors())))
    return JSONResponse(status_code=error.status_code, content=error.detail)


# Include routers
app.include_router(health.router)
app.include_router(pricing.router)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "name": "Procedure Pricing Engine API",
        "version": __version__,
        "environment": settings.ENVIRONMENT,
        "currency": settings.CURRENCY_CODE,
        "docs": "/docs" if not settings.is_production else "disabled",
    }
