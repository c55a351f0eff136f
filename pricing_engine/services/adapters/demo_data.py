"""
Demo Reference Data.

Built-in records served by the adapters in demo mode: a consultation
priced FIXED with factor-driven adjustments, an X-ray priced in POINTS,
a bounded RANGE procedure and a PERCENTAGE procedure.
"""

from datetime import date
from decimal import Decimal

from pricing_engine.core.enums import (
    AdjustmentType,
    ConditionOperator,
    CopayType,
    FactorDataType,
    PricingMethod,
)
from pricing_engine.schemas.pricing import (
    AdjustmentCase,
    ConditionalFixedPrice,
    ContractOverride,
    DiscountSchedule,
    InsuranceDegree,
    PointRate,
    PointTier,
    PricingFactorDefinition,
    PricingRule,
    RuleCondition,
    RuleDiscount,
    RuleDiscountBlock,
)

VIP = InsuranceDegree(id=1, code="VIP", name_en="VIP")
STANDARD = InsuranceDegree(id=2, code="STD", name_en="Standard")

GENERAL_PRICE_LIST_ID = 1
CORPORATE_PRICE_LIST_ID = 2

CONSULTATION = 1001
XRAY = 2001
PHYSIOTHERAPY = 3001
SURGERY = 4001


def demo_factor_definitions() -> list[PricingFactorDefinition]:
    return [
        PricingFactorDefinition(id=1, key="patient_age", name_en="Patient age", data_type=FactorDataType.INTEGER),
        PricingFactorDefinition(
            id=2,
            key="visit_type",
            name_en="Visit type",
            data_type=FactorDataType.SELECT,
            allowed_values=["OUTPATIENT", "INPATIENT", "EMERGENCY"],
        ),
        PricingFactorDefinition(id=3, key="night_shift", name_en="Night shift", data_type=FactorDataType.BOOLEAN),
        PricingFactorDefinition(id=4, key="session_count", name_en="Sessions", data_type=FactorDataType.NUMBER),
        PricingFactorDefinition(id=5, key="admission_date", name_en="Admission date", data_type=FactorDataType.DATE),
    ]


def demo_rules() -> list[PricingRule]:
    night_shift = RuleCondition(factor="night_shift", operator=ConditionOperator.IS_TRUE)
    senior = RuleCondition(factor="patient_age", operator=ConditionOperator.GREATER_THAN_OR_EQUAL, value=60)

    return [
        # Consultation: catch-all and a more specific senior rule
        PricingRule(
            id=101,
            procedure_id=CONSULTATION,
            price_list_id=GENERAL_PRICE_LIST_ID,
            pricing_method=PricingMethod.FIXED,
            fixed_amount=Decimal("50.00"),
            effective_from=date(2024, 1, 1),
            coverage_reason="Covered consultation",
            deductible=Decimal("5.00"),
            copay=Decimal("10.00"),
            copay_type=CopayType.PERCENT,
            adjustments=[
                AdjustmentCase(
                    adjustment_type=AdjustmentType.PERCENT,
                    amount=Decimal("10"),
                    conditions=[night_shift],
                    case_label="Night shift surcharge",
                ),
                AdjustmentCase(
                    adjustment_type=AdjustmentType.FIXED,
                    amount=Decimal("15"),
                    conditions=[RuleCondition(
                        factor="visit_type", operator=ConditionOperator.EQUALS, value="EMERGENCY"
                    )],
                ),
            ],
        ),
        PricingRule(
            id=102,
            procedure_id=CONSULTATION,
            price_list_id=GENERAL_PRICE_LIST_ID,
            conditions=[senior],
            pricing_method=PricingMethod.FIXED,
            fixed_amount=Decimal("40.00"),
            conditional_fixed=[ConditionalFixedPrice(
                price=Decimal("30.00"),
                conditions=[RuleCondition(
                    factor="patient_age", operator=ConditionOperator.GREATER_THAN_OR_EQUAL, value=75
                )],
            )],
            effective_from=date(2024, 1, 1),
            coverage_reason="Covered consultation (senior rate)",
        ),
        PricingRule(
            id=103,
            procedure_id=CONSULTATION,
            price_list_id=CORPORATE_PRICE_LIST_ID,
            pricing_method=PricingMethod.FIXED,
            fixed_amount=Decimal("45.00"),
            effective_from=date(2024, 1, 1),
            coverage_reason="Covered consultation (corporate list)",
        ),
        # X-ray: points, degree-specific
        PricingRule(
            id=201,
            procedure_id=XRAY,
            price_list_id=GENERAL_PRICE_LIST_ID,
            insurance_degree_id=VIP.id,
            pricing_method=PricingMethod.POINTS,
            point_multiplier=Decimal("20"),
            point_tiers=[PointTier(
                points=Decimal("30"),
                conditions=[RuleCondition(
                    factor="visit_type", operator=ConditionOperator.EQUALS, value="EMERGENCY"
                )],
            )],
            effective_from=date(2024, 1, 1),
            coverage_reason="Covered imaging",
        ),
        PricingRule(
            id=202,
            procedure_id=XRAY,
            pricing_method=PricingMethod.POINTS,
            point_multiplier=Decimal("20"),
            priority=-1,
            effective_from=date(2024, 1, 1),
            coverage_reason="Covered imaging",
        ),
        # Physiotherapy: bounded range with a rule-level discount
        PricingRule(
            id=301,
            procedure_id=PHYSIOTHERAPY,
            pricing_method=PricingMethod.RANGE,
            min_price=Decimal("100.00"),
            max_price=Decimal("500.00"),
            nominal_amount=Decimal("250.00"),
            effective_from=date(2024, 1, 1),
            coverage_reason="Covered rehabilitation",
            discount=RuleDiscount(
                apply=True,
                period_value=30,
                period_unit="DAYS",
                logic_blocks=[RuleDiscountBlock(
                    percent=Decimal("20"),
                    when_conditions=[RuleCondition(
                        factor="session_count", operator=ConditionOperator.GREATER_THAN_OR_EQUAL, value=10
                    )],
                )],
            ),
        ),
        # Surgery: percentage of an injected reference amount
        PricingRule(
            id=401,
            procedure_id=SURGERY,
            pricing_method=PricingMethod.PERCENTAGE,
            percentage=Decimal("80"),
            reference_amount=Decimal("10000.00"),
            effective_from=date(2024, 1, 1),
            coverage_reason="Covered surgery",
            preapproval_required=True,
            preapproval_reason="Elective surgery requires pre-approval",
        ),
    ]


def demo_point_rates() -> list[PointRate]:
    return [
        PointRate(
            id=1,
            insurance_degree=VIP,
            point_price=Decimal("2.50"),
            valid_from=date(2024, 1, 1),
            valid_to=date(2024, 12, 31),
        ),
        PointRate(
            id=2,
            insurance_degree=VIP,
            point_price=Decimal("2.75"),
            result_max=Decimal("75.00"),
            valid_from=date(2025, 1, 1),
        ),
        PointRate(
            id=3,
            insurance_degree=STANDARD,
            point_price=Decimal("2.00"),
            min_point_price=Decimal("2.20"),
            valid_from=date(2024, 1, 1),
        ),
    ]


def demo_contracts() -> list[ContractOverride]:
    return [
        ContractOverride(
            contract_id=9001,
            discount_schedule=DiscountSchedule(
                id=11,
                percentage=Decimal("10"),
                valid_from=date(2024, 1, 1),
                valid_to=date(2026, 12, 31),
                period_value=3,
                period_unit="YEARS",
            ),
            deductible_override=Decimal("0"),
            copay_override=Decimal("20.00"),
            copay_type=CopayType.FIXED,
            annual_cap=Decimal("50000.00"),
            per_case_cap=Decimal("5000.00"),
        ),
        ContractOverride(
            contract_id=9002,
            override_price_list_id=CORPORATE_PRICE_LIST_ID,
            monthly_cap=Decimal("2000.00"),
        ),
    ]
