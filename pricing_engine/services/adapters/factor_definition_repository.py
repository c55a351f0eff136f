"""
Pricing Factor Definition Repository.
"""

from typing import Optional

from pricing_engine.schemas.pricing import PricingFactorDefinition
from pricing_engine.services.adapters.base import AdapterMode, BaseAdapter
from pricing_engine.services.adapters.demo_data import demo_factor_definitions


class FactorDefinitionRepository(BaseAdapter[PricingFactorDefinition]):
    """Read-only access to pricing factor definitions, keyed by factor key."""

    id_field = "key"

    def _seed_default_data(self) -> None:
        self.seed_demo_data(demo_factor_definitions())

    async def list_all(self) -> list[PricingFactorDefinition]:
        """All factor definitions."""
        if self.is_demo_mode():
            return list(self._demo_data.values())
        return await self.client.fetch_factor_definitions()


_factor_definition_repository: Optional[FactorDefinitionRepository] = None


def get_factor_definition_repository(
    mode: AdapterMode = AdapterMode.DEMO,
) -> FactorDefinitionRepository:
    """Get singleton FactorDefinitionRepository instance."""
    global _factor_definition_repository
    if _factor_definition_repository is None:
        _factor_definition_repository = FactorDefinitionRepository(mode)
    return _factor_definition_repository
