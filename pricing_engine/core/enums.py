"""
Core Enumerations for the Pricing Engine.
"""

from enum import Enum
from typing import Optional


# =============================================================================
# Factor Enums
# =============================================================================


class FactorDataType(str, Enum):
    """Declared data type of a pricing factor."""

    TEXT = "TEXT"
    STRING = "STRING"
    NUMBER = "NUMBER"
    INTEGER = "INTEGER"
    DECIMAL = "DECIMAL"
    BOOLEAN = "BOOLEAN"
    DATE = "DATE"
    SELECT = "SELECT"

    @property
    def is_numeric(self) -> bool:
        """Check if values of this type are parsed as numbers."""
        return self in (FactorDataType.NUMBER, FactorDataType.INTEGER, FactorDataType.DECIMAL)


class ResolutionWarningKind(str, Enum):
    """Kinds of non-fatal problems attached to a calculation."""

    UNKNOWN_FACTOR = "unknown_factor"  # No definition for the key
    INVALID_SELECTION = "invalid_selection"  # SELECT value outside allowed values
    UNCONVERTED_NUMBER = "unconverted_number"  # Numeric factor kept as raw text
    OVERRIDE_PRICE_LIST_FALLBACK = "override_price_list_fallback"  # Contract price list priced nothing


# =============================================================================
# Rule Enums
# =============================================================================


class ConditionOperator(str, Enum):
    """Comparison operators usable in rule and adjustment conditions."""

    EQUALS = "EQUALS"
    NOT_EQUALS = "NOT_EQUALS"
    GREATER_THAN = "GREATER_THAN"
    GREATER_THAN_OR_EQUAL = "GREATER_THAN_OR_EQUAL"
    LESS_THAN = "LESS_THAN"
    LESS_THAN_OR_EQUAL = "LESS_THAN_OR_EQUAL"
    BETWEEN = "BETWEEN"
    IN = "IN"
    NOT_IN = "NOT_IN"
    CONTAINS = "CONTAINS"
    STARTS_WITH = "STARTS_WITH"
    ENDS_WITH = "ENDS_WITH"
    ON = "ON"
    BEFORE = "BEFORE"
    AFTER = "AFTER"
    IS_TRUE = "IS_TRUE"
    IS_FALSE = "IS_FALSE"

    @classmethod
    def parse(cls, raw: str) -> Optional["ConditionOperator"]:
        """Parse an operator from its name or symbolic alias."""
        text = str(raw).strip()
        alias = OPERATOR_ALIASES.get(text)
        if alias is not None:
            return alias
        try:
            return cls(text.upper())
        except ValueError:
            return None


# Symbols and shorthand names used by the administration console
OPERATOR_ALIASES: dict[str, ConditionOperator] = {
    "=": ConditionOperator.EQUALS,
    "==": ConditionOperator.EQUALS,
    "!=": ConditionOperator.NOT_EQUALS,
    ">": ConditionOperator.GREATER_THAN,
    ">=": ConditionOperator.GREATER_THAN_OR_EQUAL,
    "<": ConditionOperator.LESS_THAN,
    "<=": ConditionOperator.LESS_THAN_OR_EQUAL,
    "MIN": ConditionOperator.GREATER_THAN_OR_EQUAL,
    "MAX": ConditionOperator.LESS_THAN_OR_EQUAL,
}


class PricingMethod(str, Enum):
    """How a rule computes its base price."""

    FIXED = "FIXED"  # Fixed amount
    POINTS = "POINTS"  # Point rate x multiplier
    RANGE = "RANGE"  # Clamped base amount
    PERCENTAGE = "PERCENTAGE"  # Percentage of an injected reference amount


class AdjustmentType(str, Enum):
    """How an adjustment case changes the running amount."""

    FIXED = "FIXED"  # Additive delta
    PERCENT = "PERCENT"  # Percentage of the running amount


class CopayType(str, Enum):
    """Copay expression."""

    FIXED = "FIXED"
    PERCENT = "PERCENT"


class DiscountSource(str, Enum):
    """Where an applied discount came from."""

    CONTRACT = "contract"
    RULE = "rule"


# =============================================================================
# Error Enums
# =============================================================================


class PricingErrorKind(str, Enum):
    """Kinds of explained calculation failures."""

    INVALID_INPUT = "InvalidInput"
    NO_RULE_FOUND = "NoRuleFound"
    MISSING_POINT_RATE = "MissingPointRate"
    REFERENCE_DATA_UNAVAILABLE = "ReferenceDataUnavailable"  # Data service failure (batch items, HTTP 503)


# =============================================================================
# Integration Mode Enums
# =============================================================================


class IntegrationMode(str, Enum):
    """Where reference data comes from."""

    DEMO = "demo"  # In-memory seeded repositories
    LIVE = "live"  # External pricing data service over HTTP
