"""
Pydantic Schemas for the Pricing Engine.
"""

from pricing_engine.schemas.pricing import (
    AdjustmentCase,
    AppliedAdjustment,
    CalculationOutcome,
    CalculationResult,
    CapTerms,
    ConditionalFixedPrice,
    ContractContext,
    ContractOverride,
    CopayTerms,
    DiscountApplied,
    DiscountSchedule,
    FactorResolutionWarning,
    FactorValue,
    FailedCondition,
    InsuranceDegree,
    PointRate,
    PointRateUsed,
    PointTier,
    PriceList,
    PricingCalculationRequest,
    PricingErrorDetail,
    PricingFactorDefinition,
    PricingRule,
    RuleCondition,
    RuleDiscount,
    RuleDiscountBlock,
    RuleEvaluation,
)

__all__ = [
    # Reference data
    "PricingFactorDefinition",
    "FactorValue",
    "FactorResolutionWarning",
    "PriceList",
    "InsuranceDegree",
    "PointRate",
    "RuleCondition",
    "ConditionalFixedPrice",
    "PointTier",
    "AdjustmentCase",
    "RuleDiscount",
    "RuleDiscountBlock",
    "PricingRule",
    "DiscountSchedule",
    "ContractOverride",
    # Request
    "ContractContext",
    "PricingCalculationRequest",
    # Result
    "AppliedAdjustment",
    "DiscountApplied",
    "PointRateUsed",
    "CopayTerms",
    "CapTerms",
    "FailedCondition",
    "RuleEvaluation",
    "CalculationResult",
    "PricingErrorDetail",
    "CalculationOutcome",
]
