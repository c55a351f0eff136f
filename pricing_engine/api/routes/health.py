"""
Health Check Routes
Service health monitoring endpoints
Source: https://microservices.io/patterns/observability/health-check-api.html
"""

from typing import Any

from fastapi import APIRouter

from pricing_engine import __version__
from pricing_engine.core.config import get_pricing_settings

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Basic health check endpoint for load balancers and monitoring."""
    settings = get_pricing_settings()
    return {
        "status": "healthy",
        "service": "pricing-engine",
        "version": __version__,
        "integrationMode": settings.INTEGRATION_MODE.value,
    }
