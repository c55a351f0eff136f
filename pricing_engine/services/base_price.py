"""
Base Price Calculator.

Computes the raw price from the selected rule's pricing method:
- FIXED: fixed amount (or the first matching conditional fixed price)
- POINTS: point rate x point multiplier (or the first matching tier),
  point count clamped to [min_points, max_points]
- RANGE: caller/nominal amount clamped to [min_price, max_price]
- PERCENTAGE: percentage of an injected reference amount

The result is rounded half-up to the currency minor unit once, at the end.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from pricing_engine.core.enums import PricingMethod
from pricing_engine.schemas.pricing import FactorValue, PointRate, PricingRule
from pricing_engine.services.conditions import conditions_hold
from pricing_engine.services.errors import InvalidInputError, MissingPointRateError
from pricing_engine.utils.money import clamp, percent_of, round_money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BasePrice:
    """Base price plus the point rate it used, if any."""

    amount: Decimal
    point_rate: Optional[PointRate] = None


def select_point_rate(
    point_rates: Iterable[PointRate],
    insurance_degree_id: int,
    as_of: date,
) -> Optional[PointRate]:
    """
    Pick the point rate for a degree valid on a date.

    Latest valid_from wins; equal start dates fall back to the highest id.
    """
    valid = [
        rate for rate in point_rates
        if rate.insurance_degree.id == insurance_degree_id and rate.is_valid_on(as_of)
    ]
    if not valid:
        return None
    return max(valid, key=lambda r: (r.valid_from, r.id))


class BasePriceCalculator:
    """Computes base prices for rules."""

    def __init__(self, decimal_places: int = 2):
        self.decimal_places = decimal_places

    def compute_base(
        self,
        rule: PricingRule,
        factors: Mapping[str, FactorValue],
        as_of: date,
        insurance_degree_id: int,
        point_rates: Iterable[PointRate] = (),
        base_amount: Optional[Decimal] = None,
        reference_amount: Optional[Decimal] = None,
    ) -> BasePrice:
        """
        Compute the base price for a rule.

        Args:
            rule: Selected pricing rule
            factors: Resolved factors by key
            as_of: Calculation date
            insurance_degree_id: Request degree, used when the rule is a wildcard
            point_rates: Candidate point rates (POINTS rules)
            base_amount: Caller-supplied amount to clamp (RANGE rules)
            reference_amount: Caller-supplied reference (PERCENTAGE rules)

        Raises:
            MissingPointRateError: POINTS rule without a valid point rate
            InvalidInputError: RANGE/PERCENTAGE rule without an amount to work from
        """
        method = rule.pricing_method
        point_rate: Optional[PointRate] = None

        if method == PricingMethod.FIXED:
            amount = self._fixed(rule, factors)
        elif method == PricingMethod.POINTS:
            degree_id = rule.insurance_degree_id or insurance_degree_id
            point_rate = select_point_rate(point_rates, degree_id, as_of)
            if point_rate is None:
                raise MissingPointRateError(rule.id, degree_id, as_of)
            amount = self._points(rule, factors, point_rate)
        elif method == PricingMethod.RANGE:
            amount = self._range(rule, base_amount)
        elif method == PricingMethod.PERCENTAGE:
            amount = self._percentage(rule, reference_amount)
        else:
            raise InvalidInputError(f"Unsupported pricing method {method}")

        amount = round_money(amount, self.decimal_places)
        logger.debug(f"Base price for rule {rule.id} ({method.value}): {amount}")
        return BasePrice(amount=amount, point_rate=point_rate)

    @staticmethod
    def _fixed(rule: PricingRule, factors: Mapping[str, FactorValue]) -> Decimal:
        for entry in rule.conditional_fixed:
            if conditions_hold(entry.conditions, factors):
                return entry.price
        if rule.fixed_amount is None:
            raise InvalidInputError(
                f"Pricing rule {rule.id} has no fixed price for the given factors"
            )
        return rule.fixed_amount

    @staticmethod
    def _points(
        rule: PricingRule,
        factors: Mapping[str, FactorValue],
        point_rate: PointRate,
    ) -> Decimal:
        points = rule.point_multiplier
        for tier in rule.point_tiers:
            if conditions_hold(tier.conditions, factors):
                points = tier.points
                break
        if points is None:
            raise InvalidInputError(
                f"Pricing rule {rule.id} has no point count for the given factors"
            )
        points = clamp(points, rule.min_points, rule.max_points)

        unit_price = clamp(
            point_rate.point_price,
            point_rate.min_point_price,
            point_rate.max_point_price,
        )
        return clamp(unit_price * points, point_rate.result_min, point_rate.result_max)

    @staticmethod
    def _range(rule: PricingRule, base_amount: Optional[Decimal]) -> Decimal:
        amount = base_amount if base_amount is not None else rule.nominal_amount
        if amount is None:
            raise InvalidInputError(
                f"Pricing rule {rule.id} is a range rule but neither the request "
                f"nor the rule supplies an amount to clamp"
            )
        return clamp(amount, rule.min_price, rule.max_price)

    @staticmethod
    def _percentage(rule: PricingRule, reference_amount: Optional[Decimal]) -> Decimal:
        reference = reference_amount if reference_amount is not None else rule.reference_amount
        if reference is None:
            raise InvalidInputError(
                f"Pricing rule {rule.id} is a percentage rule but no reference amount was supplied"
            )
        return percent_of(reference, rule.percentage)


def compute_base(
    rule: PricingRule,
    factors: Mapping[str, FactorValue],
    as_of: date,
    insurance_degree_id: int,
    point_rates: Iterable[PointRate] = (),
    base_amount: Optional[Decimal] = None,
    reference_amount: Optional[Decimal] = None,
    decimal_places: int = 2,
) -> BasePrice:
    """Compute a base price with a calculator rounding to ``decimal_places``."""
    return BasePriceCalculator(decimal_places).compute_base(
        rule,
        factors,
        as_of,
        insurance_degree_id,
        point_rates,
        base_amount=base_amount,
        reference_amount=reference_amount,
    )
