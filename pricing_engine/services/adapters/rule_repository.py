"""
Pricing Rule Repository.

Candidate rules for a procedure, price list and insurance degree. Rules
with no price list or no insurance degree are wildcards and are always
returned as candidates for their procedure.
"""

import logging
from typing import Optional

from pricing_engine.schemas.pricing import PricingRule
from pricing_engine.services.adapters.base import AdapterMode, BaseAdapter
from pricing_engine.services.adapters.demo_data import demo_rules

logger = logging.getLogger(__name__)


def _is_candidate(
    rule: PricingRule,
    procedure_id: int,
    price_list_id: int,
    insurance_degree_id: int,
) -> bool:
    return (
        rule.procedure_id == procedure_id
        and rule.price_list_id in (None, price_list_id)
        and rule.insurance_degree_id in (None, insurance_degree_id)
    )


class RuleRepository(BaseAdapter[PricingRule]):
    """Read-only access to pricing rules."""

    def _seed_default_data(self) -> None:
        self.seed_demo_data(demo_rules())

    async def find_candidates(
        self,
        procedure_id: int,
        price_list_id: int,
        insurance_degree_id: int,
    ) -> list[PricingRule]:
        """Rules for the procedure whose price list and degree match or are wildcards."""
        if self.is_demo_mode():
            rules = list(self._demo_data.values())
        else:
            # Price-list agnostic rules are only found without the priceListId filter
            rules = await self.client.fetch_rules(procedure_id)

        candidates = [
            rule for rule in rules
            if _is_candidate(rule, procedure_id, price_list_id, insurance_degree_id)
        ]
        logger.debug(
            f"{len(candidates)} candidate rule(s) for procedure={procedure_id}, "
            f"price_list={price_list_id}, degree={insurance_degree_id}"
        )
        return candidates


_rule_repository: Optional[RuleRepository] = None


def get_rule_repository(mode: AdapterMode = AdapterMode.DEMO) -> RuleRepository:
    """Get singleton RuleRepository instance."""
    global _rule_repository
    if _rule_repository is None:
        _rule_repository = RuleRepository(mode)
    return _rule_repository
