"""
Condition Evaluation.

Shared matching semantics for rule conditions, adjustment cases and
discount logic blocks. A condition whose factor is absent never holds.
Numeric operators fail against numeric factors that could not be
converted; equality against them compares the raw text.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from pricing_engine.core.enums import ConditionOperator, FactorDataType
from pricing_engine.schemas.pricing import FactorValue, FailedCondition, RuleCondition
from pricing_engine.utils.money import to_decimal

logger = logging.getLogger(__name__)

TRUE_WORDS = frozenset({"true", "1", "yes"})

ORDERING_OPERATORS = frozenset({
    ConditionOperator.GREATER_THAN,
    ConditionOperator.GREATER_THAN_OR_EQUAL,
    ConditionOperator.LESS_THAN,
    ConditionOperator.LESS_THAN_OR_EQUAL,
    ConditionOperator.BETWEEN,
    ConditionOperator.ON,
    ConditionOperator.BEFORE,
    ConditionOperator.AFTER,
})


@dataclass(frozen=True)
class ConditionCheck:
    """Outcome of checking one condition."""

    condition: RuleCondition
    passed: bool
    actual: Any = None

    def as_failure(self) -> FailedCondition:
        return FailedCondition(
            factor=self.condition.factor,
            operator=self.condition.operator.value,
            expected=self.condition.value,
            actual=self.actual,
        )


def parse_boolean(value: Any) -> bool:
    """True iff the trimmed, lowercased value is "true", "1" or "yes"."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUE_WORDS


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    if isinstance(value, str) and "," in value:
        return [item.strip() for item in value.split(",")]
    return [value]


def _coerce_expected(factor: FactorValue, expected: Any) -> Any:
    """Coerce an expected value to the factor's comparable type."""
    data_type = factor.data_type
    if data_type.is_numeric and factor.converted:
        return to_decimal(expected)
    if data_type == FactorDataType.BOOLEAN:
        return parse_boolean(expected)
    if data_type == FactorDataType.DATE:
        return _parse_date(expected)
    return None if expected is None else str(expected)


def _comparable(factor: FactorValue) -> Any:
    """The factor value in the type used for comparisons."""
    if factor.data_type.is_numeric and factor.converted:
        return Decimal(factor.value)
    if factor.data_type == FactorDataType.DATE:
        return _parse_date(factor.value)
    if factor.data_type == FactorDataType.BOOLEAN:
        return factor.value
    return str(factor.value)


def _equals(factor: FactorValue, expected: Any) -> bool:
    if factor.data_type == FactorDataType.DATE:
        actual = _parse_date(factor.value)
        wanted = _parse_date(expected)
        if actual is not None and wanted is not None:
            return actual == wanted
        return str(factor.value) == str(expected)
    wanted = _coerce_expected(factor, expected)
    if wanted is None:
        return False
    return _comparable(factor) == wanted


def _ordered(factor: FactorValue) -> bool:
    """Whether ordering comparisons are meaningful for this factor."""
    if factor.data_type.is_numeric:
        return factor.converted
    if factor.data_type == FactorDataType.DATE:
        return _parse_date(factor.value) is not None
    return False


def evaluate_condition(
    condition: RuleCondition,
    factors: Mapping[str, FactorValue],
) -> ConditionCheck:
    """Check one condition against resolved factors."""
    factor = factors.get(condition.factor)
    if factor is None:
        return ConditionCheck(condition, passed=False, actual=None)

    op = condition.operator
    expected = condition.value
    actual = factor.value

    if op in ORDERING_OPERATORS:
        if not _ordered(factor):
            logger.debug(
                f"Condition {condition.describe()} not comparable with "
                f"{factor.data_type.value} value {actual!r}"
            )
            return ConditionCheck(condition, passed=False, actual=actual)
        return ConditionCheck(condition, _compare(op, factor, expected), actual)

    if op == ConditionOperator.EQUALS:
        passed = _equals(factor, expected)
    elif op == ConditionOperator.NOT_EQUALS:
        passed = not _equals(factor, expected)
    elif op == ConditionOperator.IN:
        passed = any(_equals(factor, item) for item in _as_list(expected))
    elif op == ConditionOperator.NOT_IN:
        passed = not any(_equals(factor, item) for item in _as_list(expected))
    elif op == ConditionOperator.IS_TRUE:
        passed = factor.data_type == FactorDataType.BOOLEAN and actual is True
    elif op == ConditionOperator.IS_FALSE:
        passed = factor.data_type == FactorDataType.BOOLEAN and actual is False
    elif op == ConditionOperator.CONTAINS:
        passed = expected is not None and str(expected) in str(actual)
    elif op == ConditionOperator.STARTS_WITH:
        passed = expected is not None and str(actual).startswith(str(expected))
    elif op == ConditionOperator.ENDS_WITH:
        passed = expected is not None and str(actual).endswith(str(expected))
    else:
        passed = False

    return ConditionCheck(condition, passed, actual)


def _compare(op: ConditionOperator, factor: FactorValue, expected: Any) -> bool:
    actual = _comparable(factor)

    if op == ConditionOperator.BETWEEN:
        bounds = _as_list(expected)
        if len(bounds) != 2:
            return False
        lower = _coerce_expected(factor, bounds[0])
        upper = _coerce_expected(factor, bounds[1])
        if lower is None or upper is None:
            return False
        return lower <= actual <= upper

    wanted = _coerce_expected(factor, expected)
    if wanted is None:
        return False

    if op in (ConditionOperator.GREATER_THAN, ConditionOperator.AFTER):
        return actual > wanted
    if op == ConditionOperator.GREATER_THAN_OR_EQUAL:
        return actual >= wanted
    if op in (ConditionOperator.LESS_THAN, ConditionOperator.BEFORE):
        return actual < wanted
    if op == ConditionOperator.LESS_THAN_OR_EQUAL:
        return actual <= wanted
    if op == ConditionOperator.ON:
        return actual == wanted
    return False


def check_conditions(
    conditions: Sequence[RuleCondition],
    factors: Mapping[str, FactorValue],
) -> list[ConditionCheck]:
    """Check every condition (no short-circuit, for diagnostics)."""
    return [evaluate_condition(condition, factors) for condition in conditions]


def conditions_hold(
    conditions: Sequence[RuleCondition],
    factors: Mapping[str, FactorValue],
) -> bool:
    """True when every condition holds; an empty list always holds."""
    return all(evaluate_condition(c, factors).passed for c in conditions)
