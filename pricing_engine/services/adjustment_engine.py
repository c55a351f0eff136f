"""
Adjustment Engine.

Applies a rule's conditional adjustment cases to the running amount in
definition order, then subtracts the deductible (never below zero).
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Mapping, Optional, Sequence

from pricing_engine.core.enums import AdjustmentType
from pricing_engine.schemas.pricing import AdjustmentCase, AppliedAdjustment, FactorValue
from pricing_engine.services.conditions import conditions_hold
from pricing_engine.utils.money import ZERO, percent_of, round_money

logger = logging.getLogger(__name__)


@dataclass
class AdjustmentOutcome:
    """Final amount plus the adjustments and deductible that produced it."""

    final_amount: Decimal
    applied: list[AppliedAdjustment] = field(default_factory=list)
    deductible_applied: Optional[Decimal] = None


def apply_adjustments(
    amount: Decimal,
    factors: Mapping[str, FactorValue],
    cases: Sequence[AdjustmentCase],
    deductible: Optional[Decimal] = None,
    decimal_places: int = 2,
) -> AdjustmentOutcome:
    """
    Apply adjustment cases and the deductible.

    Each satisfied case changes the running amount: FIXED adds its amount
    (negative amounts are discounts), PERCENT adds that percentage of the
    running amount. The amount is rounded once, after the deductible.
    """
    running = amount
    applied: list[AppliedAdjustment] = []

    for case in cases:
        if not conditions_hold(case.conditions, factors):
            continue

        if case.adjustment_type == AdjustmentType.PERCENT:
            delta = percent_of(running, case.amount)
        else:
            delta = case.amount

        running = running + delta
        applied.append(AppliedAdjustment(
            type=case.adjustment_type.value,
            factor_key=case.resolved_factor_key,
            case_matched=case.describe(),
            amount=round_money(delta, decimal_places),
        ))

    if running < ZERO:
        running = ZERO

    deductible_applied: Optional[Decimal] = None
    if deductible is not None:
        deductible_applied = min(deductible, running)
        running = running - deductible_applied
        deductible_applied = round_money(deductible_applied, decimal_places)

    final_amount = round_money(running, decimal_places)

    if applied:
        logger.debug(
            f"Applied {len(applied)} adjustment(s): {amount} -> {final_amount}"
        )

    return AdjustmentOutcome(
        final_amount=final_amount,
        applied=applied,
        deductible_applied=deductible_applied,
    )
