"""
Services Layer for the Pricing Engine.

Exports the pipeline stages and the orchestrating engine.
"""

from pricing_engine.services.adjustment_engine import AdjustmentOutcome, apply_adjustments
from pricing_engine.services.base_price import (
    BasePrice,
    BasePriceCalculator,
    compute_base,
    select_point_rate,
)
from pricing_engine.services.conditions import (
    ConditionCheck,
    check_conditions,
    conditions_hold,
    evaluate_condition,
)
from pricing_engine.services.contract_overlay import OverlayResult, apply_contract
from pricing_engine.services.coverage_policy import CoverageDecision, decide_coverage
from pricing_engine.services.errors import (
    InvalidInputError,
    MissingPointRateError,
    NoRuleFoundError,
    PricingError,
)
from pricing_engine.services.factor_resolver import FactorResolution, resolve_factors
from pricing_engine.services.pricing_engine import (
    PricingEngine,
    get_pricing_engine,
    reset_pricing_engine,
)
from pricing_engine.services.rule_matcher import RuleSelection, select_rule


__all__ = [
    # Stages
    "FactorResolution",
    "resolve_factors",
    "ConditionCheck",
    "check_conditions",
    "conditions_hold",
    "evaluate_condition",
    "RuleSelection",
    "select_rule",
    "BasePrice",
    "BasePriceCalculator",
    "compute_base",
    "select_point_rate",
    "OverlayResult",
    "apply_contract",
    "AdjustmentOutcome",
    "apply_adjustments",
    "CoverageDecision",
    "decide_coverage",
    # Errors
    "PricingError",
    "InvalidInputError",
    "NoRuleFoundError",
    "MissingPointRateError",
    # Engine
    "PricingEngine",
    "get_pricing_engine",
    "reset_pricing_engine",
]
