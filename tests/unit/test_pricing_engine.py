"""
Unit Tests for the Pricing Engine Orchestrator.

Tests:
- End-to-end scenarios (FIXED, POINTS, contract discount)
- Explained failures (InvalidInput, NoRuleFound, MissingPointRate)
- Override price list fallback
- Idempotence and batch isolation
"""

import asyncio
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from pricing_engine.core.enums import (
    AdjustmentType,
    PricingErrorKind,
    PricingMethod,
    ResolutionWarningKind,
)
from pricing_engine.gateways.pricing_data_client import PricingDataError
from pricing_engine.schemas.pricing import (
    AdjustmentCase,
    ContractOverride,
    DiscountSchedule,
    PricingCalculationRequest,
    RuleCondition,
)
from pricing_engine.services.pricing_engine import PricingEngine


class TestScenarios:
    """Tests for complete calculations."""

    @pytest.mark.asyncio
    async def test_fixed_catch_all(self, engine, repositories, make_rule, base_request):
        """FIXED 50 catch-all rule prices at 50.00, covered, no pre-approval."""
        repositories.rules.seed_demo_data([make_rule(id=7, coverage=True, preapproval_required=False)])

        outcome = await engine.calculate(base_request)

        assert outcome.succeeded
        result = outcome.result
        assert result.final_price == Decimal("50.00")
        assert result.base_price == Decimal("50.00")
        assert result.covered is True
        assert result.requires_preapproval is False
        assert result.selected_rule_id == 7
        assert result.selection_reason
        assert result.selected_rule.pricing.mode == PricingMethod.FIXED
        assert result.selected_rule.pricing.fixed_price == Decimal("50")
        assert result.selected_rule.conditions == []
        assert result.evaluated_rules[0].matched is True

    @pytest.mark.asyncio
    async def test_outside_window_no_rule_found(self, engine, repositories, make_rule, base_request):
        """A date outside the only rule's window is NoRuleFound with the keys echoed."""
        repositories.rules.seed_demo_data([make_rule()])
        base_request["date"] = "2025-06-01"

        outcome = await engine.calculate(base_request)

        assert outcome.error.kind == PricingErrorKind.NO_RULE_FOUND
        assert (outcome.procedure_id, outcome.price_list_id, outcome.insurance_degree_id) == (1, 1, 1)
        assert outcome.as_of == date(2025, 6, 1)
        assert "procedure 1" in outcome.error.message
        assert "2025-06-01" in outcome.error.message

        declined = outcome.result
        assert declined.final_price == Decimal("0.00")
        assert declined.covered is False
        assert declined.coverage_reason == "no applicable pricing rule"
        assert declined.requires_preapproval is False
        assert declined.preapproval_reason == "not applicable"
        assert declined.selected_rule_id is None
        assert declined.selected_rule is None

    @pytest.mark.asyncio
    async def test_points_without_rate(self, engine, repositories, make_rule, base_request):
        """A POINTS rule with no point rate for the degree is MissingPointRate."""
        repositories.rules.seed_demo_data([make_rule(
            id=2,
            pricing_method=PricingMethod.POINTS,
            fixed_amount=None,
            point_multiplier=Decimal("20"),
        )])

        outcome = await engine.calculate(base_request)

        assert outcome.result is None
        assert outcome.error.kind == PricingErrorKind.MISSING_POINT_RATE
        assert "insurance degree 1" in outcome.error.message

    @pytest.mark.asyncio
    async def test_points_with_rate(self, engine, repositories, make_rule, make_point_rate, base_request):
        repositories.rules.seed_demo_data([make_rule(
            pricing_method=PricingMethod.POINTS,
            fixed_amount=None,
            point_multiplier=Decimal("20"),
        )])
        repositories.point_rates.seed_demo_data([make_point_rate(id=4)])

        outcome = await engine.calculate(base_request)

        assert outcome.result.final_price == Decimal("50.00")
        used = outcome.result.point_rate_used
        assert used.point_rate_id == 4
        assert used.point_price == Decimal("2.50")
        assert used.insurance_degree.code == "VIP"

    @pytest.mark.asyncio
    async def test_contract_discount(self, engine, repositories, make_rule, base_request):
        """An active 10% contract discount reduces the base by 10%."""
        repositories.rules.seed_demo_data([make_rule()])
        repositories.contracts.seed_demo_data([ContractOverride(
            contract_id=5,
            discount_schedule=DiscountSchedule(
                id=3,
                percentage=Decimal("10"),
                valid_from=date(2024, 1, 1),
                valid_to=date(2024, 12, 31),
            ),
        )])
        base_request["contractContext"] = {"contractId": 5}

        outcome = await engine.calculate(base_request)

        result = outcome.result
        assert result.base_price == Decimal("50.00")
        assert result.final_price == Decimal("45.00")
        assert result.discount_applied.pct == Decimal("10")
        assert result.discount_applied.discount_id == 3

    @pytest.mark.asyncio
    async def test_full_pipeline(self, engine, repositories, make_rule, base_request):
        """Discount, then adjustments in order, then the deductible."""
        repositories.rules.seed_demo_data([make_rule(
            fixed_amount=Decimal("100"),
            deductible=Decimal("5"),
            adjustments=[
                AdjustmentCase(
                    adjustment_type=AdjustmentType.PERCENT,
                    amount=Decimal("10"),
                    conditions=[RuleCondition(factor="night_shift", operator="IS_TRUE")],
                ),
                AdjustmentCase(adjustment_type=AdjustmentType.FIXED, amount=Decimal("-5")),
            ],
        )])
        base_request["factors"] = {"night_shift": "true"}

        outcome = await engine.calculate(base_request)

        result = outcome.result
        # 100 -> 110 -> 105, minus deductible 5
        assert result.final_price == Decimal("100.00")
        assert result.deductible_applied == Decimal("5.00")
        assert [a.amount for a in result.adjustments_applied] == [Decimal("10.00"), Decimal("-5.00")]


class TestInvalidInput:
    """Tests for rejected requests."""

    @pytest.mark.asyncio
    async def test_missing_field(self, engine, base_request):
        del base_request["procedureId"]

        outcome = await engine.calculate(base_request)

        assert outcome.error.kind == PricingErrorKind.INVALID_INPUT
        assert outcome.error.message == "Missing required field 'procedureId'"
        assert outcome.result is None

    @pytest.mark.asyncio
    async def test_message_is_plain_text(self, engine, base_request):
        base_request["date"] = "not-a-date"

        outcome = await engine.calculate(base_request)

        assert outcome.error.kind == PricingErrorKind.INVALID_INPUT
        assert outcome.error.message.startswith("Invalid value for 'date'")
        assert "{" not in outcome.error.message

    @pytest.mark.asyncio
    async def test_rejected_before_lookups(self, repositories, base_request):
        rules = AsyncMock()
        engine = PricingEngine(
            rules=rules,
            point_rates=repositories.point_rates,
            factor_definitions=repositories.factor_definitions,
            contracts=repositories.contracts,
        )
        base_request["priceListId"] = 0

        outcome = await engine.calculate(base_request)

        assert outcome.error.kind == PricingErrorKind.INVALID_INPUT
        rules.find_candidates.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_contract(self, engine, repositories, make_rule, base_request):
        repositories.rules.seed_demo_data([make_rule()])
        base_request["contractContext"] = {"contractId": 404}

        outcome = await engine.calculate(base_request)

        assert outcome.error.kind == PricingErrorKind.INVALID_INPUT
        assert outcome.error.message == "Contract 404 was not found"

    @pytest.mark.asyncio
    async def test_accepts_model_request(self, engine, repositories, make_rule):
        repositories.rules.seed_demo_data([make_rule()])
        request = PricingCalculationRequest(
            procedure_id=1,
            price_list_id=1,
            insurance_degree_id=1,
            as_of=date(2024, 6, 1),
        )

        outcome = await engine.calculate(request)

        assert outcome.result.final_price == Decimal("50.00")

    @pytest.mark.asyncio
    async def test_reference_amount_bounded(self, engine, base_request):
        base_request["referenceAmount"] = "1e13"

        outcome = await engine.calculate(base_request)

        assert outcome.error.kind == PricingErrorKind.INVALID_INPUT
        assert outcome.error.message.startswith("Invalid value for 'referenceAmount'")

    @pytest.mark.asyncio
    async def test_amount_too_large_to_round(self, engine, repositories, make_rule, base_request):
        """A rule amount with more digits than Decimal can round is InvalidInput."""
        repositories.rules.seed_demo_data([make_rule(
            pricing_method=PricingMethod.PERCENTAGE,
            fixed_amount=None,
            percentage=Decimal("80"),
            reference_amount=Decimal("1e30"),
        )])

        outcome = await engine.calculate(base_request)

        assert outcome.result is None
        assert outcome.error.kind == PricingErrorKind.INVALID_INPUT
        assert "too large" in outcome.error.message


class TestOverridePriceList:
    """Tests for contract override price lists."""

    @pytest.mark.asyncio
    async def test_override_used(self, engine, repositories, make_rule, base_request):
        repositories.rules.seed_demo_data([
            make_rule(id=1, price_list_id=1, fixed_amount=Decimal("50")),
            make_rule(id=2, price_list_id=2, fixed_amount=Decimal("45")),
        ])
        repositories.contracts.seed_demo_data([ContractOverride(contract_id=5, override_price_list_id=2)])
        base_request["contractContext"] = {"contractId": 5}

        outcome = await engine.calculate(base_request)

        assert outcome.result.selected_rule_id == 2
        assert outcome.result.override_price_list_id == 2
        assert outcome.result.final_price == Decimal("45.00")

    @pytest.mark.asyncio
    async def test_override_fallback(self, engine, repositories, make_rule, base_request):
        repositories.rules.seed_demo_data([make_rule(id=1, price_list_id=1)])
        repositories.contracts.seed_demo_data([ContractOverride(contract_id=5, override_price_list_id=2)])
        base_request["contractContext"] = {"contractId": 5}

        outcome = await engine.calculate(base_request)

        assert outcome.result.selected_rule_id == 1
        assert outcome.result.override_price_list_id is None
        kinds = [w.kind for w in outcome.result.warnings]
        assert ResolutionWarningKind.OVERRIDE_PRICE_LIST_FALLBACK in kinds


class TestDeterminism:
    """Tests for idempotence and warnings."""

    @pytest.mark.asyncio
    async def test_idempotent(self, engine, repositories, make_rule, base_request):
        repositories.rules.seed_demo_data([
            make_rule(id=1),
            make_rule(id=2, conditions=[RuleCondition(factor="patient_age", operator=">=", value=60)]),
        ])
        base_request["factors"] = {"patient_age": 70, "unknown": "x"}

        first = await engine.calculate(base_request)
        second = await engine.calculate(base_request)

        assert first.result == second.result
        assert first.model_dump(mode="json") == second.model_dump(mode="json")

    @pytest.mark.asyncio
    async def test_resolution_warnings_attached(self, engine, repositories, make_rule, base_request):
        repositories.rules.seed_demo_data([make_rule()])
        base_request["factors"] = {"visit_type": "walk-in"}

        outcome = await engine.calculate(base_request)

        assert outcome.result.warnings[0].kind == ResolutionWarningKind.INVALID_SELECTION

    @pytest.mark.asyncio
    async def test_warnings_on_no_rule_found(self, engine, base_request):
        base_request["factors"] = {"unknown": "x"}

        outcome = await engine.calculate(base_request)

        assert outcome.error.kind == PricingErrorKind.NO_RULE_FOUND
        assert outcome.result.warnings[0].kind == ResolutionWarningKind.UNKNOWN_FACTOR


class TestBatch:
    """Tests for batch calculations."""

    @pytest.mark.asyncio
    async def test_failures_isolated(self, engine, repositories, make_rule, base_request):
        repositories.rules.seed_demo_data([make_rule()])
        outside = {**base_request, "date": "2030-01-01"}
        invalid = {**base_request, "procedureId": -1}

        outcomes = await engine.calculate_batch([base_request, outside, invalid, base_request])

        assert len(outcomes) == 4
        assert outcomes[0].succeeded and outcomes[3].succeeded
        assert outcomes[1].error.kind == PricingErrorKind.NO_RULE_FOUND
        assert outcomes[2].error.kind == PricingErrorKind.INVALID_INPUT
        assert outcomes[0].result == outcomes[3].result

    @pytest.mark.asyncio
    async def test_oversized_amount_fails_alone(self, engine, repositories, make_rule, base_request):
        repositories.rules.seed_demo_data([
            make_rule(
                pricing_method=PricingMethod.PERCENTAGE,
                fixed_amount=None,
                percentage=Decimal("100"),
                reference_amount=Decimal("1e30"),
            ),
            make_rule(id=2, procedure_id=2),
        ])
        second = {**base_request, "procedureId": 2}

        outcomes = await engine.calculate_batch([base_request, second])

        assert outcomes[0].error.kind == PricingErrorKind.INVALID_INPUT
        assert outcomes[0].procedure_id == 1
        assert outcomes[1].succeeded
        assert outcomes[1].result.final_price == Decimal("50.00")

    @pytest.mark.asyncio
    async def test_reference_data_failure_per_item(self, repositories, base_request):
        rules = AsyncMock()
        rules.find_candidates.side_effect = PricingDataError("Pricing data service returned 500")
        engine = PricingEngine(
            rules=rules,
            point_rates=repositories.point_rates,
            factor_definitions=repositories.factor_definitions,
            contracts=repositories.contracts,
        )
        invalid = {**base_request, "procedureId": "abc"}

        outcomes = await engine.calculate_batch([base_request, invalid])

        assert outcomes[0].error.kind == PricingErrorKind.REFERENCE_DATA_UNAVAILABLE
        assert outcomes[0].procedure_id == 1
        assert outcomes[0].insurance_degree_id == 1
        assert outcomes[0].as_of == date(2024, 6, 1)
        assert outcomes[1].error.kind == PricingErrorKind.INVALID_INPUT

    @pytest.mark.asyncio
    async def test_single_calculation_propagates_data_failure(self, repositories, base_request):
        rules = AsyncMock()
        rules.find_candidates.side_effect = PricingDataError("down")
        engine = PricingEngine(
            rules=rules,
            point_rates=repositories.point_rates,
            factor_definitions=repositories.factor_definitions,
            contracts=repositories.contracts,
        )

        with pytest.raises(PricingDataError):
            await engine.calculate(base_request)

    @pytest.mark.asyncio
    async def test_empty_batch(self, engine):
        assert await engine.calculate_batch([]) == []

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, engine, repositories, make_rule, base_request):
        repositories.rules.seed_demo_data([make_rule()])

        async def blocked(*_args, **_kwargs):
            await asyncio.Event().wait()

        repositories.rules.find_candidates = blocked
        task = asyncio.create_task(engine.calculate_batch([base_request]))
        await asyncio.sleep(0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task


class TestDemoData:
    """Tests against the built-in demo reference data."""

    @pytest.fixture
    def demo_engine(self):
        return PricingEngine()

    @pytest.mark.asyncio
    async def test_consultation_with_deductible(self, demo_engine):
        outcome = await demo_engine.calculate({
            "procedureId": 1001,
            "priceListId": 1,
            "insuranceDegreeId": 1,
            "date": "2024-06-01",
        })

        assert outcome.result.selected_rule_id == 101
        assert outcome.result.final_price == Decimal("45.00")
        assert outcome.result.copay.amount == Decimal("10.00")

    @pytest.mark.asyncio
    async def test_consultation_under_contract(self, demo_engine):
        outcome = await demo_engine.calculate({
            "procedureId": 1001,
            "priceListId": 1,
            "insuranceDegreeId": 1,
            "date": "2024-06-01",
            "contractContext": {"contractId": 9001},
        })

        result = outcome.result
        assert result.discount_applied.pct == Decimal("10")
        assert result.final_price == Decimal("45.00")
        assert result.deductible_applied == Decimal("0.00")
        assert result.caps.annual_cap == Decimal("50000.00")

    @pytest.mark.asyncio
    async def test_xray_in_points(self, demo_engine):
        outcome = await demo_engine.calculate({
            "procedureId": 2001,
            "priceListId": 1,
            "insuranceDegreeId": 1,
            "date": "2024-06-01",
            "factors": {"visit_type": "EMERGENCY"},
        })

        assert outcome.result.selected_rule_id == 201
        assert outcome.result.final_price == Decimal("75.00")
        assert outcome.result.point_rate_used.point_rate_id == 1
