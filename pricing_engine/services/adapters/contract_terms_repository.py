"""
Contract Pricing Terms Repository.
"""

from typing import Optional

from pricing_engine.schemas.pricing import ContractOverride
from pricing_engine.services.adapters.base import AdapterMode, BaseAdapter
from pricing_engine.services.adapters.demo_data import demo_contracts


class ContractTermsRepository(BaseAdapter[ContractOverride]):
    """Read-only access to contract pricing terms."""

    id_field = "contract_id"

    def _seed_default_data(self) -> None:
        self.seed_demo_data(demo_contracts())

    async def get_by_id(self, contract_id: int) -> Optional[ContractOverride]:
        """Contract terms by contract id; None when unknown."""
        if self.is_demo_mode():
            return self._demo_data.get(contract_id)
        return await self.client.fetch_contract_terms(contract_id)


_contract_terms_repository: Optional[ContractTermsRepository] = None


def get_contract_terms_repository(
    mode: AdapterMode = AdapterMode.DEMO,
) -> ContractTermsRepository:
    """Get singleton ContractTermsRepository instance."""
    global _contract_terms_repository
    if _contract_terms_repository is None:
        _contract_terms_repository = ContractTermsRepository(mode)
    return _contract_terms_repository
