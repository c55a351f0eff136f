"""
Reference Data Adapters for Demo/Live Mode.

Read-only repositories the pricing engine reads its reference data from.
"""

from pricing_engine.services.adapters.base import AdapterMode, BaseAdapter
from pricing_engine.services.adapters.contract_terms_repository import (
    ContractTermsRepository,
    get_contract_terms_repository,
)
from pricing_engine.services.adapters.factor_definition_repository import (
    FactorDefinitionRepository,
    get_factor_definition_repository,
)
from pricing_engine.services.adapters.point_rate_repository import (
    PointRateRepository,
    get_point_rate_repository,
)
from pricing_engine.services.adapters.rule_repository import (
    RuleRepository,
    get_rule_repository,
)


__all__ = [
    # Base
    "AdapterMode",
    "BaseAdapter",
    # Repositories
    "ContractTermsRepository",
    "get_contract_terms_repository",
    "FactorDefinitionRepository",
    "get_factor_definition_repository",
    "PointRateRepository",
    "get_point_rate_repository",
    "RuleRepository",
    "get_rule_repository",
]
