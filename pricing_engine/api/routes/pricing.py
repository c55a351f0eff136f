"""
Procedure Pricing API Endpoints.

Provides:
- Single pricing calculation
- Batch pricing calculation

Failures come back as ``{kind, message}`` bodies: 422 InvalidInput,
404 NoRuleFound, 409 MissingPointRate, 503 ReferenceDataUnavailable.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends
from pydantic import Field

from pricing_engine.core.config import get_pricing_settings
from pricing_engine.core.enums import PricingErrorKind
from pricing_engine.gateways.base import GatewayError
from pricing_engine.schemas.pricing import (
    CalculationOutcome,
    CalculationResult,
    PricingModel,
)
from pricing_engine.services.pricing_engine import PricingEngine, get_pricing_engine
from pricing_engine.utils.errors import http_error_for
from pricing_engine.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(
    prefix="/api/pricing",
    tags=["pricing"],
)


# =============================================================================
# Request/Response Schemas
# =============================================================================


class BatchPricingRequest(PricingModel):
    """Batch of calculation requests (validated one by one by the engine)."""

    requests: list[Any] = Field(..., min_length=1)


class BatchPricingResponse(PricingModel):
    """One outcome per request, in request order."""

    total: int
    succeeded: int
    failed: int
    outcomes: list[CalculationOutcome]


# =============================================================================
# Endpoints
# =============================================================================


@router.post(
    "/calculate",
    response_model=CalculationResult,
)
async def calculate_price(
    payload: dict[str, Any] = Body(..., description="Pricing calculation request"),
    engine: PricingEngine = Depends(get_pricing_engine),
) -> CalculationResult:
    """
    Calculate the price of one procedure.

    Returns:
        Fully explained calculation result.
    """
    try:
        outcome = await engine.calculate(payload)
    except GatewayError as e:
        logger.error(f"Pricing data unavailable: {e}")
        raise http_error_for(PricingErrorKind.REFERENCE_DATA_UNAVAILABLE, str(e))

    if outcome.error is not None:
        raise http_error_for(outcome.error.kind, outcome.error.message)
    return outcome.result


@router.post(
    "/calculate/batch",
    response_model=BatchPricingResponse,
)
async def calculate_price_batch(
    request: BatchPricingRequest,
    engine: PricingEngine = Depends(get_pricing_engine),
) -> BatchPricingResponse:
    """
    Calculate many procedures concurrently.

    A failed item never fails the batch; its outcome carries the error.
    """
    max_items = get_pricing_settings().BATCH_MAX_ITEMS
    if len(request.requests) > max_items:
        raise http_error_for(
            PricingErrorKind.INVALID_INPUT,
            f"Batch has {len(request.requests)} requests; at most {max_items} are allowed",
        )

    outcomes = await engine.calculate_batch(request.requests)
    succeeded = sum(1 for outcome in outcomes if outcome.succeeded)

    return BatchPricingResponse(
        total=len(outcomes),
        succeeded=succeeded,
        failed=len(outcomes) - succeeded,
        outcomes=outcomes,
    )
