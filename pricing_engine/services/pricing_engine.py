"""
Procedure Pricing Engine.

Orchestrates a pricing calculation end to end:
- Request validation
- Factor resolution against declared definitions
- Rule selection (contract override price list first, when set)
- Base price, contract overlay, adjustments and deductible
- Coverage and pre-approval policy

Every stage is a pure function; this class is the only place that reads
the reference data repositories. Explained failures (invalid input, no
rule, missing point rate) come back as outcomes, never as exceptions.
"""

import asyncio
import logging
from typing import Any, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from pricing_engine.core.config import get_pricing_settings
from pricing_engine.core.enums import (
    PricingErrorKind,
    PricingMethod,
    ResolutionWarningKind,
)
from pricing_engine.gateways.base import GatewayError
from pricing_engine.schemas.pricing import (
    CalculationOutcome,
    CalculationResult,
    ContractOverride,
    FactorResolutionWarning,
    FactorValue,
    PointRate,
    PointRateUsed,
    PricingCalculationRequest,
    PricingErrorDetail,
    RuleSummary,
)
from pricing_engine.services.adapters import (
    ContractTermsRepository,
    FactorDefinitionRepository,
    PointRateRepository,
    RuleRepository,
    get_contract_terms_repository,
    get_factor_definition_repository,
    get_point_rate_repository,
    get_rule_repository,
)
from pricing_engine.services.adjustment_engine import apply_adjustments
from pricing_engine.services.base_price import BasePriceCalculator
from pricing_engine.services.contract_overlay import apply_contract
from pricing_engine.services.coverage_policy import decide_coverage
from pricing_engine.services.errors import (
    InvalidInputError,
    NoRuleFoundError,
    PricingError,
    validation_message,
)
from pricing_engine.services.factor_resolver import resolve_factors
from pricing_engine.services.rule_matcher import RuleSelection, select_rule
from pricing_engine.utils.money import ZERO, MoneyOverflowError, round_money

logger = logging.getLogger(__name__)

RequestInput = Union[PricingCalculationRequest, Mapping[str, Any]]


class PricingEngine:
    """
    Procedure pricing calculation engine.

    Stateless per request; safe to share across concurrent calculations.
    """

    def __init__(
        self,
        rules: Optional[RuleRepository] = None,
        point_rates: Optional[PointRateRepository] = None,
        factor_definitions: Optional[FactorDefinitionRepository] = None,
        contracts: Optional[ContractTermsRepository] = None,
        decimal_places: Optional[int] = None,
    ):
        """
        Initialize the engine.

        Args:
            rules: Pricing rule repository
            point_rates: Point rate repository
            factor_definitions: Factor definition repository
            contracts: Contract terms repository
            decimal_places: Currency minor unit (settings default)
        """
        settings = get_pricing_settings()
        mode = settings.INTEGRATION_MODE
        self.rules = rules or get_rule_repository(mode)
        self.point_rates = point_rates or get_point_rate_repository(mode)
        self.factor_definitions = factor_definitions or get_factor_definition_repository(mode)
        self.contracts = contracts or get_contract_terms_repository(mode)
        self.decimal_places = (
            settings.MONEY_DECIMAL_PLACES if decimal_places is None else decimal_places
        )
        self.base_price_calculator = BasePriceCalculator(self.decimal_places)

    @staticmethod
    def _validate(request: RequestInput) -> PricingCalculationRequest:
        if isinstance(request, PricingCalculationRequest):
            return request
        if not isinstance(request, Mapping):
            raise InvalidInputError("Calculation request must be an object")
        try:
            return PricingCalculationRequest.model_validate(request)
        except ValidationError as e:
            raise InvalidInputError(validation_message(e.errors())) from e

    async def calculate(self, request: RequestInput) -> CalculationOutcome:
        """
        Calculate the price of one procedure.

        Args:
            request: Calculation request (model or camelCase mapping)

        Returns:
            CalculationOutcome with a result, an explained error, or both
            (a NoRuleFound outcome carries a declined result)

        Raises:
            GatewayError: Reference data could not be read
        """
        try:
            req = self._validate(request)
        except InvalidInputError as e:
            logger.info(f"Rejected pricing request: {e.message}")
            return CalculationOutcome(
                error=PricingErrorDetail(kind=e.kind, message=e.message),
            )

        outcome = CalculationOutcome(
            procedure_id=req.procedure_id,
            price_list_id=req.price_list_id,
            insurance_degree_id=req.insurance_degree_id,
            as_of=req.as_of,
        )
        warnings: list[FactorResolutionWarning] = []

        try:
            outcome.result = await self._calculate(req, warnings)
        except NoRuleFoundError as e:
            outcome.result = self._declined_result(e, warnings)
            outcome.error = PricingErrorDetail(kind=e.kind, message=e.message)
        except PricingError as e:
            logger.info(f"Pricing failed ({e.kind.value}): {e.message}")
            outcome.error = PricingErrorDetail(kind=e.kind, message=e.message)
        except MoneyOverflowError as e:
            logger.info(f"Pricing failed (InvalidInput): {e}")
            outcome.error = PricingErrorDetail(
                kind=PricingErrorKind.INVALID_INPUT, message=str(e)
            )

        return outcome

    async def _calculate(
        self,
        req: PricingCalculationRequest,
        warnings: list[FactorResolutionWarning],
    ) -> CalculationResult:
        definitions = await self.factor_definitions.list_all()
        resolution = resolve_factors(req.factors, definitions)
        warnings.extend(resolution.warnings)
        factors = resolution.as_map()

        contract = await self._load_contract(req)
        selection, override_used = await self._select(req, factors, contract, warnings)
        rule = selection.rule

        rates: list[PointRate] = []
        if rule.pricing_method == PricingMethod.POINTS:
            degree_id = rule.insurance_degree_id or req.insurance_degree_id
            rates = await self.point_rates.find_rates(degree_id, req.as_of)

        base = self.base_price_calculator.compute_base(
            rule,
            factors,
            req.as_of,
            req.insurance_degree_id,
            rates,
            base_amount=req.base_amount,
            reference_amount=req.reference_amount,
        )
        overlay = apply_contract(
            base.amount, rule, contract, req.as_of, factors, self.decimal_places
        )
        adjusted = apply_adjustments(
            overlay.amount,
            factors,
            rule.adjustments,
            overlay.deductible,
            self.decimal_places,
        )
        coverage = decide_coverage(rule)

        point_rate_used = None
        if base.point_rate is not None:
            point_rate_used = PointRateUsed(
                point_rate_id=base.point_rate.id,
                point_price=base.point_rate.point_price,
                insurance_degree=base.point_rate.insurance_degree,
            )

        logger.info(
            f"Priced procedure {req.procedure_id} with rule {rule.id}: "
            f"base={base.amount}, final={adjusted.final_amount}, covered={coverage.covered}"
        )

        return CalculationResult(
            final_price=adjusted.final_amount,
            base_price=base.amount,
            covered=coverage.covered,
            coverage_reason=coverage.coverage_reason,
            requires_preapproval=coverage.requires_preapproval,
            preapproval_reason=coverage.preapproval_reason,
            selected_rule_id=rule.id,
            selected_rule=RuleSummary.from_rule(rule),
            selection_reason=selection.reason,
            override_price_list_id=override_used,
            adjustments_applied=adjusted.applied,
            discount_applied=overlay.discount_applied,
            deductible_applied=adjusted.deductible_applied,
            point_rate_used=point_rate_used,
            copay=overlay.copay,
            caps=overlay.caps,
            evaluated_rules=selection.evaluations,
            warnings=warnings,
        )

    async def _load_contract(self, req: PricingCalculationRequest) -> Optional[ContractOverride]:
        if req.contract_context is None:
            return None
        contract_id = req.contract_context.contract_id
        contract = await self.contracts.get_by_id(contract_id)
        if contract is None:
            raise InvalidInputError(f"Contract {contract_id} was not found")
        return contract

    async def _select(
        self,
        req: PricingCalculationRequest,
        factors: Mapping[str, FactorValue],
        contract: Optional[ContractOverride],
        warnings: list[FactorResolutionWarning],
    ) -> tuple[RuleSelection, Optional[int]]:
        """Select a rule, preferring the contract's override price list."""
        override_id = contract.override_price_list_id if contract is not None else None

        if override_id is not None and override_id != req.price_list_id:
            candidates = await self.rules.find_candidates(
                req.procedure_id, override_id, req.insurance_degree_id
            )
            try:
                selection = select_rule(
                    req.procedure_id,
                    override_id,
                    req.insurance_degree_id,
                    req.as_of,
                    factors,
                    candidates,
                )
                return selection, override_id
            except NoRuleFoundError:
                message = (
                    f"Override price list {override_id} has no rule for procedure "
                    f"{req.procedure_id}; priced from price list {req.price_list_id}"
                )
                logger.warning(message)
                warnings.append(FactorResolutionWarning(
                    kind=ResolutionWarningKind.OVERRIDE_PRICE_LIST_FALLBACK,
                    message=message,
                ))

        candidates = await self.rules.find_candidates(
            req.procedure_id, req.price_list_id, req.insurance_degree_id
        )
        selection = select_rule(
            req.procedure_id,
            req.price_list_id,
            req.insurance_degree_id,
            req.as_of,
            factors,
            candidates,
        )
        return selection, None

    def _declined_result(
        self,
        error: NoRuleFoundError,
        warnings: list[FactorResolutionWarning],
    ) -> CalculationResult:
        coverage = decide_coverage(None)
        return CalculationResult(
            final_price=round_money(ZERO, self.decimal_places),
            base_price=round_money(ZERO, self.decimal_places),
            covered=coverage.covered,
            coverage_reason=coverage.coverage_reason,
            requires_preapproval=coverage.requires_preapproval,
            preapproval_reason=coverage.preapproval_reason,
            evaluated_rules=error.evaluations,
            warnings=warnings,
        )

    async def calculate_batch(self, requests: Sequence[RequestInput]) -> list[CalculationOutcome]:
        """
        Calculate many requests concurrently.

        One outcome per request, in request order. Reference data failures
        are reported on the affected item only.
        """
        results = await asyncio.gather(
            *(self.calculate(request) for request in requests),
            return_exceptions=True,
        )

        outcomes: list[CalculationOutcome] = []
        for request, result in zip(requests, results):
            if isinstance(result, CalculationOutcome):
                outcomes.append(result)
            elif isinstance(result, GatewayError):
                logger.error(f"Reference data unavailable for batch item: {result}")
                outcome = CalculationOutcome(
                    error=PricingErrorDetail(
                        kind=PricingErrorKind.REFERENCE_DATA_UNAVAILABLE,
                        message=str(result),
                    ),
                )
                # Gateway errors are raised after validation succeeded
                req = self._validate(request)
                outcome.procedure_id = req.procedure_id
                outcome.price_list_id = req.price_list_id
                outcome.insurance_degree_id = req.insurance_degree_id
                outcome.as_of = req.as_of
                outcomes.append(outcome)
            else:
                raise result

        succeeded = sum(1 for o in outcomes if o.succeeded)
        logger.info(f"Batch priced: {succeeded}/{len(outcomes)} succeeded")
        return outcomes


# =============================================================================
# Singleton Instances
# =============================================================================


_pricing_engine: Optional[PricingEngine] = None


def get_pricing_engine() -> PricingEngine:
    """Get singleton pricing engine instance."""
    global _pricing_engine
    if _pricing_engine is None:
        _pricing_engine = PricingEngine()
    return _pricing_engine


def reset_pricing_engine() -> None:
    """Drop the singleton engine (for testing)."""
    global _pricing_engine
    _pricing_engine = None
