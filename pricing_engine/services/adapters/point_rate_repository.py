"""
Point Rate Repository.
"""

import logging
from datetime import date
from typing import Optional

from pricing_engine.schemas.pricing import PointRate
from pricing_engine.services.adapters.base import AdapterMode, BaseAdapter
from pricing_engine.services.adapters.demo_data import demo_point_rates

logger = logging.getLogger(__name__)


class PointRateRepository(BaseAdapter[PointRate]):
    """Read-only access to point rates."""

    def _seed_default_data(self) -> None:
        self.seed_demo_data(demo_point_rates())

    async def find_rates(self, insurance_degree_id: int, as_of: date) -> list[PointRate]:
        """Point rates for an insurance degree valid on a date."""
        if self.is_demo_mode():
            rates = list(self._demo_data.values())
        else:
            rates = await self.client.fetch_point_rates(
                insurance_degree_id, valid_on=as_of.isoformat()
            )

        return [
            rate for rate in rates
            if rate.insurance_degree.id == insurance_degree_id and rate.is_valid_on(as_of)
        ]


_point_rate_repository: Optional[PointRateRepository] = None


def get_point_rate_repository(mode: AdapterMode = AdapterMode.DEMO) -> PointRateRepository:
    """Get singleton PointRateRepository instance."""
    global _point_rate_repository
    if _point_rate_repository is None:
        _point_rate_repository = PointRateRepository(mode)
    return _point_rate_repository
