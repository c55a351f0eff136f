"""
Contract Overlay.

Applies contract-specific terms to a base price:
- Active contract discount schedule reduces the amount
- Without an active contract discount, the rule's own discount applies
- Deductible/copay overrides replace the rule defaults
- Caps are surfaced as-is (consumption is not tracked here)
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Mapping, Optional

from pricing_engine.core.enums import CopayType, DiscountSource
from pricing_engine.schemas.pricing import (
    CapTerms,
    ContractOverride,
    CopayTerms,
    DiscountApplied,
    FactorValue,
    PricingRule,
    RuleDiscountBlock,
)
from pricing_engine.services.conditions import conditions_hold
from pricing_engine.utils.money import ZERO, percent_of, round_money

logger = logging.getLogger(__name__)


@dataclass
class OverlayResult:
    """Amount after contract terms plus the terms that take effect downstream."""

    amount: Decimal
    discount_applied: Optional[DiscountApplied] = None
    deductible: Optional[Decimal] = None
    copay: Optional[CopayTerms] = None
    caps: Optional[CapTerms] = None


def _rule_discount_block(
    rule: PricingRule,
    factors: Mapping[str, FactorValue],
) -> Optional[RuleDiscountBlock]:
    discount = rule.discount
    if discount is None or not discount.apply:
        return None
    for block in discount.logic_blocks:
        if conditions_hold(block.when_conditions, factors):
            return block
    return None


def _effective_copay(
    rule: PricingRule,
    contract: Optional[ContractOverride],
) -> Optional[CopayTerms]:
    if contract is not None and contract.copay_override is not None:
        return CopayTerms(
            amount=contract.copay_override,
            copay_type=contract.copay_type or CopayType.FIXED,
            source=DiscountSource.CONTRACT,
        )
    if rule.copay is not None:
        return CopayTerms(
            amount=rule.copay,
            copay_type=rule.copay_type or CopayType.FIXED,
            source=DiscountSource.RULE,
        )
    return None


def _caps(contract: Optional[ContractOverride]) -> Optional[CapTerms]:
    if contract is None:
        return None
    if contract.annual_cap is None and contract.monthly_cap is None and contract.per_case_cap is None:
        return None
    return CapTerms(
        annual_cap=contract.annual_cap,
        monthly_cap=contract.monthly_cap,
        per_case_cap=contract.per_case_cap,
    )


def apply_contract(
    base_amount: Decimal,
    rule: PricingRule,
    contract: Optional[ContractOverride],
    as_of: date,
    factors: Mapping[str, FactorValue],
    decimal_places: int = 2,
) -> OverlayResult:
    """
    Apply contract terms (or rule defaults) to a base amount.

    Args:
        base_amount: Rounded base price
        rule: Selected pricing rule
        contract: Contract terms, if the request named a contract
        as_of: Calculation date
        factors: Resolved factors by key (for rule discount blocks)
        decimal_places: Currency minor unit

    Returns:
        OverlayResult with the discounted amount and effective terms
    """
    amount = base_amount
    discount_applied: Optional[DiscountApplied] = None

    schedule = contract.discount_schedule if contract is not None else None
    if schedule is not None and schedule.is_active_on(as_of):
        amount = amount - percent_of(amount, schedule.percentage)
        discount_applied = DiscountApplied(
            discount_id=schedule.id,
            pct=schedule.percentage,
            period=schedule.period_label,
            unit=schedule.period_unit,
            source=DiscountSource.CONTRACT,
        )
    else:
        if schedule is not None:
            logger.debug(
                f"Contract {contract.contract_id} discount {schedule.id} "
                f"not active on {as_of.isoformat()}"
            )
        block = _rule_discount_block(rule, factors)
        if block is not None and block.percent > 0:
            rule_discount = rule.discount
            amount = amount - percent_of(amount, block.percent)
            period = (
                f"{rule_discount.period_value}"
                if rule_discount.period_value is not None
                else ""
            )
            discount_applied = DiscountApplied(
                discount_id=rule.id,
                pct=block.percent,
                period=period,
                unit=rule_discount.period_unit,
                source=DiscountSource.RULE,
            )

    if amount < 0:
        amount = ZERO
    amount = round_money(amount, decimal_places)

    if contract is not None and contract.deductible_override is not None:
        deductible = contract.deductible_override
    else:
        deductible = rule.deductible

    if discount_applied is not None:
        logger.debug(
            f"{discount_applied.source.value.title()} discount {discount_applied.pct}% "
            f"applied: {base_amount} -> {amount}"
        )

    return OverlayResult(
        amount=amount,
        discount_applied=discount_applied,
        deductible=deductible,
        copay=_effective_copay(rule, contract),
        caps=_caps(contract),
    )


