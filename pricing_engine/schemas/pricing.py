"""
Pydantic Schemas for Procedure Pricing.

Reference data (rules, factor definitions, point rates, contract terms)
is read-only input to the engine. Wire names are camelCase to match the
pricing data service; attributes are snake_case. Money amounts are
Decimal and serialize to JSON as exact decimal strings.
"""

import json
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from pricing_engine.core.enums import (
    AdjustmentType,
    ConditionOperator,
    CopayType,
    DiscountSource,
    FactorDataType,
    PricingErrorKind,
    PricingMethod,
    ResolutionWarningKind,
)


# Upper bound for amounts a caller injects into RANGE and PERCENTAGE pricing
MAX_INJECTED_AMOUNT = Decimal("1000000000000")


class PricingModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReferenceModel(PricingModel):
    """Base model for immutable reference data."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# =============================================================================
# Factor Schemas
# =============================================================================


class PricingFactorDefinition(ReferenceModel):
    """Declared pricing factor."""

    id: Optional[int] = None
    key: str = Field(..., min_length=1, description="Unique factor key")
    name_en: Optional[str] = None
    data_type: FactorDataType
    allowed_values: list[str] = Field(
        default_factory=list,
        description="Ordered allowed values (SELECT factors)",
    )

    @field_validator("allowed_values", mode="before")
    @classmethod
    def parse_allowed_values(cls, v: Any) -> list[str]:
        """Accept a list, a JSON array string, or a comma-separated string."""
        if v is None:
            return []
        if isinstance(v, str):
            text = v.strip()
            if not text:
                return []
            try:
                parsed = json.loads(text)
            except ValueError:
                parsed = None
            if isinstance(parsed, list):
                return [str(item) for item in parsed]
            return [item.strip() for item in text.split(",") if item.strip()]
        return [str(item) for item in v]


class FactorValue(ReferenceModel):
    """A raw factor value coerced to its declared type."""

    key: str
    data_type: FactorDataType
    value: Any
    converted: bool = Field(
        default=True,
        description="False when a numeric factor could not be parsed",
    )


class FactorResolutionWarning(PricingModel):
    """Non-fatal problem found while resolving factors or price lists."""

    kind: ResolutionWarningKind
    factor: Optional[str] = None
    message: str


# =============================================================================
# Catalog Schemas
# =============================================================================


class PriceList(ReferenceModel):
    """Catalog of procedure prices."""

    id: int
    code: str
    name_en: str


class InsuranceDegree(ReferenceModel):
    """Coverage tier (e.g. VIP, Standard)."""

    id: int
    code: str
    name_en: str


class PointRate(ReferenceModel):
    """Currency value of one pricing point for an insurance degree."""

    id: int
    insurance_degree: InsuranceDegree
    point_price: Decimal = Field(..., ge=0)
    min_point_price: Optional[Decimal] = Field(None, ge=0)
    max_point_price: Optional[Decimal] = Field(None, ge=0)
    result_min: Optional[Decimal] = Field(None, ge=0)
    result_max: Optional[Decimal] = Field(None, ge=0)
    valid_from: date
    valid_to: Optional[date] = None

    def is_valid_on(self, as_of: date) -> bool:
        """Check if the rate applies on a date (inclusive window)."""
        if as_of < self.valid_from:
            return False
        return self.valid_to is None or as_of <= self.valid_to


# =============================================================================
# Rule Schemas
# =============================================================================


class RuleCondition(ReferenceModel):
    """A single (factor, operator, expected value) condition."""

    factor: str = Field(..., min_length=1)
    operator: ConditionOperator
    value: Any = None

    @field_validator("operator", mode="before")
    @classmethod
    def parse_operator(cls, v: Any) -> ConditionOperator:
        if isinstance(v, ConditionOperator):
            return v
        operator = ConditionOperator.parse(v)
        if operator is None:
            raise ValueError(f"Unsupported condition operator '{v}'")
        return operator

    def describe(self) -> str:
        """Human-readable form, e.g. ``patient_age BETWEEN [60, 120]``."""
        if self.value is None:
            return f"{self.factor} {self.operator.value}"
        return f"{self.factor} {self.operator.value} {self.value}"


class ConditionalFixedPrice(ReferenceModel):
    """Fixed price that applies only when its conditions hold."""

    price: Decimal = Field(..., ge=0)
    conditions: list[RuleCondition] = Field(default_factory=list)


class PointTier(ReferenceModel):
    """Point count that applies only when its conditions hold."""

    points: Decimal = Field(..., ge=0)
    conditions: list[RuleCondition] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def single_condition(cls, data: Any) -> Any:
        """Accept the single ``condition`` form used by older rule payloads."""
        if isinstance(data, dict) and "condition" in data and "conditions" not in data:
            data = dict(data)
            condition = data.pop("condition")
            data["conditions"] = [condition] if condition else []
        return data


class AdjustmentCase(ReferenceModel):
    """Conditional surcharge or discount applied after base pricing."""

    adjustment_type: AdjustmentType
    amount: Decimal = Field(..., description="Delta (FIXED) or percent (PERCENT)")
    conditions: list[RuleCondition] = Field(default_factory=list)
    factor_key: Optional[str] = None
    case_label: Optional[str] = None

    @property
    def resolved_factor_key(self) -> str:
        if self.factor_key:
            return self.factor_key
        if self.conditions:
            return self.conditions[0].factor
        return ""

    def describe(self) -> str:
        if self.case_label:
            return self.case_label
        if not self.conditions:
            return "always"
        return " AND ".join(c.describe() for c in self.conditions)


# Authored adjustment types that mean "percentage of the running amount"
PERCENT_ADJUSTMENT_TYPES = frozenset({"PERCENT", "PERCENT_ADJUSTMENT"})


def _first(data: dict, *names: str) -> Any:
    for name in names:
        if data.get(name) is not None:
            return data[name]
    return None


def expand_adjustment(entry: Any) -> list[Any]:
    """
    Expand an authored adjustment into ordered adjustment cases.

    The admin console stores adjustments per factor: a ``cases`` map from
    factor value to delta, ``tiers`` (``value``/``add``/``percent``) and
    ``logicBlocks`` (``whenConditions``/``add``/``addPercent``), plus an
    optional unconditional ``percent``. Entries already in case form pass
    through unchanged. Expanded cases are labelled with the matched value.
    """
    if not isinstance(entry, dict):
        return [entry]
    if not any(key in entry for key in ("cases", "tiers", "logicBlocks", "logic_blocks")):
        return [entry]

    factor_key = _first(entry, "factorKey", "factor_key")
    kind = str(entry.get("type") or "ADD").upper()
    case_type = AdjustmentType.PERCENT if kind in PERCENT_ADJUSTMENT_TYPES else AdjustmentType.FIXED
    expanded: list[dict[str, Any]] = []

    def when_equal(value: Any) -> list[dict[str, Any]]:
        return [{"factor": factor_key, "operator": ConditionOperator.EQUALS, "value": value}]

    def add_case(adjustment_type: AdjustmentType, amount: Any, conditions: list, label: Optional[str]) -> None:
        if amount is None or amount == "":
            return
        expanded.append({
            "adjustment_type": adjustment_type,
            "amount": amount,
            "conditions": conditions,
            "factor_key": factor_key,
            "case_label": label,
        })

    for value, delta in (entry.get("cases") or {}).items():
        add_case(case_type, delta, when_equal(value), str(value))

    for tier in entry.get("tiers") or []:
        value = tier.get("value")
        conditions = when_equal(value) if value not in (None, "") else []
        label = str(value) if value not in (None, "") else None
        add_case(AdjustmentType.FIXED, tier.get("add"), conditions, label)
        add_case(AdjustmentType.PERCENT, tier.get("percent"), conditions, label)

    for block in _first(entry, "logicBlocks", "logic_blocks") or []:
        conditions = _first(block, "whenConditions", "when_conditions") or []
        add_case(AdjustmentType.FIXED, block.get("add"), conditions, None)
        add_case(AdjustmentType.PERCENT, _first(block, "addPercent", "add_percent"), conditions, None)

    add_case(AdjustmentType.PERCENT, entry.get("percent"), [], None)
    return expanded


class RuleDiscountBlock(ReferenceModel):
    """Discount percentage applying when its conditions hold."""

    percent: Decimal = Field(..., ge=0, le=100)
    when_conditions: list[RuleCondition] = Field(default_factory=list)


class RuleDiscount(ReferenceModel):
    """Rule-level discount definition."""

    apply: bool = True
    period_value: Optional[int] = Field(None, ge=0)
    period_unit: Optional[str] = None
    logic_blocks: list[RuleDiscountBlock] = Field(default_factory=list)


class PricingRule(ReferenceModel):
    """Pricing rule reference record."""

    id: int
    procedure_id: int
    price_list_id: Optional[int] = Field(None, description="None = any price list")
    insurance_degree_id: Optional[int] = Field(None, description="None = any degree")
    conditions: list[RuleCondition] = Field(default_factory=list)

    pricing_method: PricingMethod
    fixed_amount: Optional[Decimal] = Field(None, ge=0)
    conditional_fixed: list[ConditionalFixedPrice] = Field(default_factory=list)
    point_multiplier: Optional[Decimal] = Field(None, ge=0)
    point_tiers: list[PointTier] = Field(default_factory=list)
    min_points: Optional[Decimal] = Field(None, ge=0, description="Lower bound on the point count")
    max_points: Optional[Decimal] = Field(None, ge=0, description="Upper bound on the point count")
    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    nominal_amount: Optional[Decimal] = Field(None, ge=0)
    percentage: Optional[Decimal] = Field(None, ge=0)
    reference_amount: Optional[Decimal] = Field(None, ge=0)

    priority: int = 0
    effective_from: date
    effective_to: Optional[date] = None

    # Coverage policy
    coverage: bool = True
    coverage_reason: Optional[str] = None
    preapproval_required: bool = False
    preapproval_reason: Optional[str] = None

    # Plan defaults (contract overrides win)
    deductible: Optional[Decimal] = Field(None, ge=0)
    copay: Optional[Decimal] = Field(None, ge=0)
    copay_type: Optional[CopayType] = None

    adjustments: list[AdjustmentCase] = Field(default_factory=list)
    discount: Optional[RuleDiscount] = None

    @field_validator("adjustments", mode="before")
    @classmethod
    def expand_adjustments(cls, v: Any) -> Any:
        """Flatten authored per-factor adjustments into ordered cases."""
        if not isinstance(v, (list, tuple)):
            return v
        expanded: list[Any] = []
        for entry in v:
            expanded.extend(expand_adjustment(entry))
        return expanded

    @model_validator(mode="after")
    def check_invariants(self) -> "PricingRule":
        if self.effective_to is not None and self.effective_from > self.effective_to:
            raise ValueError("effective_from must not be after effective_to")

        method = self.pricing_method
        if method == PricingMethod.FIXED:
            if self.fixed_amount is None and not self.conditional_fixed:
                raise ValueError("FIXED rules need fixed_amount or conditional_fixed")
        elif method == PricingMethod.POINTS:
            if self.point_multiplier is None and not self.point_tiers:
                raise ValueError("POINTS rules need point_multiplier or point_tiers")
            if (
                self.min_points is not None
                and self.max_points is not None
                and self.min_points > self.max_points
            ):
                raise ValueError("min_points must not exceed max_points")
        elif method == PricingMethod.RANGE:
            if self.min_price is None or self.max_price is None:
                raise ValueError("RANGE rules need min_price and max_price")
            if self.min_price > self.max_price:
                raise ValueError("min_price must not exceed max_price")
        elif method == PricingMethod.PERCENTAGE:
            if self.percentage is None:
                raise ValueError("PERCENTAGE rules need percentage")
        return self

    def is_effective_on(self, as_of: date) -> bool:
        """Check the inclusive effective window; open end means no upper bound."""
        if as_of < self.effective_from:
            return False
        return self.effective_to is None or as_of <= self.effective_to


# =============================================================================
# Contract Schemas
# =============================================================================


class DiscountSchedule(ReferenceModel):
    """Contract discount valid over a period."""

    id: int
    percentage: Decimal = Field(..., ge=0, le=100)
    valid_from: date
    valid_to: Optional[date] = None
    period_value: Optional[int] = Field(None, ge=0)
    period_unit: str = "DAYS"

    def is_active_on(self, as_of: date) -> bool:
        if as_of < self.valid_from:
            return False
        return self.valid_to is None or as_of <= self.valid_to

    @property
    def period_label(self) -> str:
        """ISO 8601 interval of the validity period; open end shown as ``..``."""
        end = self.valid_to.isoformat() if self.valid_to else ".."
        return f"{self.valid_from.isoformat()}/{end}"


class ContractOverride(ReferenceModel):
    """Contract-specific pricing terms."""

    contract_id: int
    override_price_list_id: Optional[int] = None
    discount_schedule: Optional[DiscountSchedule] = None
    deductible_override: Optional[Decimal] = Field(None, ge=0)
    copay_override: Optional[Decimal] = Field(None, ge=0)
    copay_type: Optional[CopayType] = None
    annual_cap: Optional[Decimal] = Field(None, ge=0)
    monthly_cap: Optional[Decimal] = Field(None, ge=0)
    per_case_cap: Optional[Decimal] = Field(None, ge=0)


# =============================================================================
# Request Schemas
# =============================================================================


class ContractContext(PricingModel):
    """Contract the calculation is made under."""

    contract_id: int = Field(..., gt=0)


class PricingCalculationRequest(PricingModel):
    """Request for a single pricing calculation."""

    procedure_id: int = Field(..., gt=0)
    price_list_id: int = Field(..., gt=0)
    insurance_degree_id: int = Field(..., gt=0)
    as_of: date = Field(..., alias="date", description="Calculation date")
    factors: dict[str, Any] = Field(default_factory=dict)
    contract_context: Optional[ContractContext] = None

    # Injected amounts for RANGE and PERCENTAGE rules
    base_amount: Optional[Decimal] = Field(
        None, ge=0, le=MAX_INJECTED_AMOUNT, decimal_places=4
    )
    reference_amount: Optional[Decimal] = Field(
        None, ge=0, le=MAX_INJECTED_AMOUNT, decimal_places=4
    )


# =============================================================================
# Result Schemas
# =============================================================================


class AppliedAdjustment(PricingModel):
    """Adjustment case that changed the price."""

    type: str
    factor_key: str
    case_matched: str
    amount: Decimal


class DiscountApplied(PricingModel):
    """Discount that reduced the price."""

    discount_id: int
    pct: Decimal
    period: str
    unit: Optional[str] = None
    source: DiscountSource = DiscountSource.CONTRACT


class PointRateUsed(PricingModel):
    """Point rate used by a POINTS rule."""

    point_rate_id: int
    point_price: Decimal
    insurance_degree: InsuranceDegree


class CopayTerms(PricingModel):
    """Effective copay (informational)."""

    amount: Decimal
    copay_type: CopayType
    source: DiscountSource


class CapTerms(PricingModel):
    """Contract caps surfaced on the result (not enforced)."""

    annual_cap: Optional[Decimal] = None
    monthly_cap: Optional[Decimal] = None
    per_case_cap: Optional[Decimal] = None


class FailedCondition(PricingModel):
    """Condition that did not hold for a candidate rule."""

    factor: str
    operator: str
    expected: Any = None
    actual: Any = None


class RuleEvaluation(PricingModel):
    """How one temporally valid candidate rule fared."""

    rule_id: int
    priority: int
    matched: bool
    failed_conditions: list[FailedCondition] = Field(default_factory=list)


class RulePricingSummary(PricingModel):
    """Pricing parameters of the selected rule."""

    mode: PricingMethod
    fixed_price: Optional[Decimal] = None
    points: Optional[Decimal] = None
    min_points: Optional[Decimal] = None
    max_points: Optional[Decimal] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    percentage: Optional[Decimal] = None


class RuleSummary(PricingModel):
    """What the selected rule says, for display next to the result."""

    conditions: list[RuleCondition] = Field(default_factory=list)
    pricing: RulePricingSummary
    discount: Optional[RuleDiscount] = None
    adjustments: list[AdjustmentCase] = Field(default_factory=list)

    @classmethod
    def from_rule(cls, rule: PricingRule) -> "RuleSummary":
        return cls(
            conditions=rule.conditions,
            pricing=RulePricingSummary(
                mode=rule.pricing_method,
                fixed_price=rule.fixed_amount,
                points=rule.point_multiplier,
                min_points=rule.min_points,
                max_points=rule.max_points,
                min_price=rule.min_price,
                max_price=rule.max_price,
                percentage=rule.percentage,
            ),
            discount=rule.discount,
            adjustments=rule.adjustments,
        )


class CalculationResult(PricingModel):
    """Fully explained pricing result."""

    final_price: Decimal
    base_price: Decimal = Decimal("0.00")

    covered: bool
    coverage_reason: Optional[str] = None
    requires_preapproval: bool = False
    preapproval_reason: Optional[str] = None

    selected_rule_id: Optional[int] = None
    selected_rule: Optional[RuleSummary] = None
    selection_reason: Optional[str] = None
    override_price_list_id: Optional[int] = None

    adjustments_applied: list[AppliedAdjustment] = Field(default_factory=list)
    discount_applied: Optional[DiscountApplied] = None
    deductible_applied: Optional[Decimal] = None
    point_rate_used: Optional[PointRateUsed] = None
    copay: Optional[CopayTerms] = None
    caps: Optional[CapTerms] = None

    evaluated_rules: list[RuleEvaluation] = Field(default_factory=list)
    warnings: list[FactorResolutionWarning] = Field(default_factory=list)


class PricingErrorDetail(PricingModel):
    """Explained failure: a kind and a plain message."""

    kind: PricingErrorKind
    message: str


class CalculationOutcome(PricingModel):
    """Result or explained failure for one calculation request."""

    procedure_id: Optional[int] = None
    price_list_id: Optional[int] = None
    insurance_degree_id: Optional[int] = None
    as_of: Optional[date] = Field(None, alias="date")

    result: Optional[CalculationResult] = None
    error: Optional[PricingErrorDetail] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None
