"""
Base Reference Data Adapter.

Read-only repositories over the pricing reference data, working either
from in-memory demo data or from the external pricing data service.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

from pricing_engine.core.enums import IntegrationMode
from pricing_engine.gateways.pricing_data_client import (
    PricingDataClient,
    get_pricing_data_client,
)

# Adapters share the engine-wide integration mode values
AdapterMode = IntegrationMode

T = TypeVar("T", bound=BaseModel)


class BaseAdapter(ABC, Generic[T]):
    """
    Base class for read-only reference data adapters.

    Demo mode serves records seeded into memory; live mode reads them
    through the pricing data client.
    """

    id_field: str = "id"

    def __init__(
        self,
        mode: AdapterMode = AdapterMode.DEMO,
        client: Optional[PricingDataClient] = None,
        seed_defaults: bool = True,
    ):
        """
        Initialize adapter.

        Args:
            mode: Operating mode (demo or live)
            client: Pricing data client for live mode (singleton if omitted)
            seed_defaults: Seed the built-in demo records in demo mode
        """
        self._mode = mode
        self._client = client
        self._demo_data: dict[Any, T] = {}
        if mode == AdapterMode.DEMO and seed_defaults:
            self._seed_default_data()

    @property
    def mode(self) -> AdapterMode:
        """Get current operating mode."""
        return self._mode

    def is_demo_mode(self) -> bool:
        """Check if running in demo mode."""
        return self._mode == AdapterMode.DEMO

    @property
    def client(self) -> PricingDataClient:
        """Pricing data client used in live mode."""
        if self._client is None:
            self._client = get_pricing_data_client()
        return self._client

    @abstractmethod
    def _seed_default_data(self) -> None:
        """Seed the built-in demo records."""

    def clear_demo_data(self) -> None:
        """Clear all demo data."""
        self._demo_data.clear()

    def seed_demo_data(self, entities: list[T]) -> None:
        """Seed demo records, keyed by ``id_field``; later records replace earlier ones."""
        for entity in entities:
            entity_id = getattr(entity, self.id_field, None)
            if entity_id is not None:
                self._demo_data[entity_id] = entity

    def get_demo_count(self) -> int:
        """Get count of demo data entries."""
        return len(self._demo_data)
