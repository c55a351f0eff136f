"""
Pricing Data Service Client.

Async httpx client for the external pricing data service that owns the
reference data (rules, point rates, factor definitions, contract terms).
List endpoints return Spring-style pages (``content``, ``last``, ``number``);
the client walks every page.
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from pricing_engine.core.config import get_pricing_settings
from pricing_engine.gateways.base import GatewayError
from pricing_engine.schemas.pricing import (
    ContractOverride,
    PointRate,
    PricingFactorDefinition,
    PricingRule,
)

logger = logging.getLogger(__name__)

PROVIDER = "pricing_data_service"


class PricingDataError(GatewayError):
    """Raised when reference data cannot be fetched or parsed."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, provider=PROVIDER, original_error=original_error)
        self.status_code = status_code


class PricingDataClient:
    """
    Read-only client for the pricing data service.

    Endpoints:
        GET /api/pricing/rules
        GET /api/point-rates
        GET /api/pricing/pricing-factors
        GET /api/contracts/{id}/pricing-terms
    """

    PAGE_SIZE = 100
    MAX_PAGES = 50

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_pricing_settings()
        self.base_url = (base_url or settings.DATA_SERVICE_URL).rstrip("/")
        self.timeout_seconds = timeout_seconds or settings.DATA_SERVICE_TIMEOUT_SECONDS
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_seconds,
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
        return self._http_client

    async def _get(self, path: str, params: Optional[dict[str, Any]] = None) -> httpx.Response:
        query = {k: v for k, v in (params or {}).items() if v is not None}
        try:
            return await self._client().get(path, params=query)
        except httpx.TimeoutException as e:
            raise PricingDataError(
                f"Pricing data service timed out on {path}",
                original_error=e,
            )
        except httpx.ConnectError as e:
            raise PricingDataError(
                f"Cannot connect to pricing data service at {self.base_url}",
                original_error=e,
            )
        except httpx.HTTPError as e:
            raise PricingDataError(f"Request to {path} failed: {e}", original_error=e)

    @staticmethod
    def _json(response: httpx.Response, path: str) -> Any:
        if response.status_code != 200:
            raise PricingDataError(
                f"Pricing data service returned {response.status_code} for {path}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise PricingDataError(
                f"Pricing data service returned invalid JSON for {path}",
                status_code=response.status_code,
                original_error=e,
            )

    async def _get_all(self, path: str, params: Optional[dict[str, Any]] = None) -> list[dict]:
        """Fetch every page of a paginated list endpoint."""
        items: list[dict] = []
        page = 0
        while page < self.MAX_PAGES:
            response = await self._get(path, {**(params or {}), "page": page, "size": self.PAGE_SIZE})
            payload = self._json(response, path)

            if isinstance(payload, list):
                return items + payload
            if not isinstance(payload, dict):
                raise PricingDataError(f"Unexpected payload from {path}")

            items.extend(payload.get("content") or [])
            if payload.get("last", True):
                return items
            page += 1

        logger.warning(f"Stopped paging {path} after {self.MAX_PAGES} pages")
        return items

    @staticmethod
    def _parse(model: type, records: list[dict], path: str) -> list:
        try:
            return [model.model_validate(record) for record in records]
        except ValidationError as e:
            raise PricingDataError(
                f"Invalid {model.__name__} record from {path}: "
                f"{e.errors()[0].get('msg', 'validation failed')}",
                original_error=e,
            )

    async def fetch_rules(
        self,
        procedure_id: int,
        price_list_id: Optional[int] = None,
    ) -> list[PricingRule]:
        """Fetch pricing rules for a procedure (optionally one price list)."""
        path = "/api/pricing/rules"
        records = await self._get_all(
            path, {"procedureId": procedure_id, "priceListId": price_list_id}
        )
        return self._parse(PricingRule, records, path)

    async def fetch_point_rates(
        self,
        insurance_degree_id: int,
        valid_on: Optional[str] = None,
    ) -> list[PointRate]:
        """Fetch point rates for an insurance degree."""
        path = "/api/point-rates"
        records = await self._get_all(
            path, {"insuranceDegreeId": insurance_degree_id, "validOn": valid_on}
        )
        return self._parse(PointRate, records, path)

    async def fetch_factor_definitions(self) -> list[PricingFactorDefinition]:
        """Fetch all pricing factor definitions."""
        path = "/api/pricing/pricing-factors"
        records = await self._get_all(path)
        return self._parse(PricingFactorDefinition, records, path)

    async def fetch_contract_terms(self, contract_id: int) -> Optional[ContractOverride]:
        """Fetch contract pricing terms; None when the contract is unknown."""
        path = f"/api/contracts/{contract_id}/pricing-terms"
        response = await self._get(path)
        if response.status_code == 404:
            return None
        payload = self._json(response, path)
        return self._parse(ContractOverride, [payload], path)[0]

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None


# Singleton instance
_pricing_data_client: Optional[PricingDataClient] = None


def get_pricing_data_client() -> PricingDataClient:
    """Get or create the singleton pricing data client."""
    global _pricing_data_client
    if _pricing_data_client is None:
        _pricing_data_client = PricingDataClient()
    return _pricing_data_client


async def reset_pricing_data_client() -> None:
    """Close and drop the singleton client (for testing)."""
    global _pricing_data_client
    if _pricing_data_client is not None:
        await _pricing_data_client.close()
    _pricing_data_client = None
