"""
Rule Matcher.

Selects the single best pricing rule for a procedure, price list,
insurance degree and date:
1. Keep rules whose keys match (price list / degree may be wildcards)
   and whose effective window contains the date
2. Keep rules whose every condition holds
3. Break ties by priority, then condition count, then latest
   effective_from, then lowest rule id
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Mapping, Optional

from pricing_engine.schemas.pricing import FactorValue, PricingRule, RuleEvaluation
from pricing_engine.services.conditions import check_conditions
from pricing_engine.services.errors import NoRuleFoundError

logger = logging.getLogger(__name__)


@dataclass
class RuleSelection:
    """Selected rule with the reason it won."""

    rule: PricingRule
    reason: str
    evaluations: list[RuleEvaluation] = field(default_factory=list)


def _keys_match(
    rule: PricingRule,
    procedure_id: int,
    price_list_id: int,
    insurance_degree_id: int,
) -> bool:
    if rule.procedure_id != procedure_id:
        return False
    if rule.price_list_id is not None and rule.price_list_id != price_list_id:
        return False
    if rule.insurance_degree_id is not None and rule.insurance_degree_id != insurance_degree_id:
        return False
    return True


def _ranking_key(rule: PricingRule) -> tuple[int, int, int, int]:
    """Sort key; smallest sorts first, i.e. wins."""
    return (
        -rule.priority,
        -len(rule.conditions),
        -rule.effective_from.toordinal(),
        rule.id,
    )


def _selection_reason(winner: PricingRule, runner_up: Optional[PricingRule], matched: int) -> str:
    if runner_up is None:
        if winner.conditions:
            return f"Only matching rule; all {len(winner.conditions)} conditions satisfied"
        return "Only matching rule (catch-all, no conditions)"

    prefix = f"Selected among {matched} matching rules"
    if winner.priority != runner_up.priority:
        return f"{prefix}: highest priority ({winner.priority})"
    if len(winner.conditions) != len(runner_up.conditions):
        return (
            f"{prefix}: same priority ({winner.priority}), most specific "
            f"({len(winner.conditions)} conditions)"
        )
    if winner.effective_from != runner_up.effective_from:
        return (
            f"{prefix}: same priority and specificity, most recent "
            f"effective date ({winner.effective_from.isoformat()})"
        )
    return f"{prefix}: full tie, lowest rule id ({winner.id})"


def select_rule(
    procedure_id: int,
    price_list_id: int,
    insurance_degree_id: int,
    as_of: date,
    factors: Mapping[str, FactorValue],
    candidates: Iterable[PricingRule],
) -> RuleSelection:
    """
    Select the best matching rule.

    Args:
        procedure_id: Procedure being priced
        price_list_id: Price list to price from
        insurance_degree_id: Member's insurance degree
        as_of: Calculation date
        factors: Resolved factors by key
        candidates: Candidate rules (may include non-matching ones)

    Returns:
        RuleSelection with the winning rule and evaluations of every
        temporally valid candidate

    Raises:
        NoRuleFoundError: If no rule survives filtering
    """
    valid = [
        rule for rule in candidates
        if _keys_match(rule, procedure_id, price_list_id, insurance_degree_id)
        and rule.is_effective_on(as_of)
    ]
    valid.sort(key=lambda r: r.id)

    evaluations: list[RuleEvaluation] = []
    matching: list[PricingRule] = []
    for rule in valid:
        checks = check_conditions(rule.conditions, factors)
        failed = [check.as_failure() for check in checks if not check.passed]
        evaluations.append(RuleEvaluation(
            rule_id=rule.id,
            priority=rule.priority,
            matched=not failed,
            failed_conditions=failed,
        ))
        if not failed:
            matching.append(rule)

    if not matching:
        logger.info(
            f"No pricing rule: procedure={procedure_id}, price_list={price_list_id}, "
            f"degree={insurance_degree_id}, date={as_of.isoformat()}, "
            f"temporally_valid={len(valid)}"
        )
        raise NoRuleFoundError(
            procedure_id,
            price_list_id,
            insurance_degree_id,
            as_of,
            evaluations=evaluations,
        )

    matching.sort(key=_ranking_key)
    winner = matching[0]
    runner_up = matching[1] if len(matching) > 1 else None
    reason = _selection_reason(winner, runner_up, len(matching))

    logger.debug(f"Rule {winner.id} selected: {reason}")

    return RuleSelection(rule=winner, reason=reason, evaluations=evaluations)
