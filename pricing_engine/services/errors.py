"""
Pricing engine exceptions.

Stages raise these; the orchestrator turns them into explained
``{kind, message}`` outcomes so one failed calculation never aborts
a batch.
"""

from datetime import date
from typing import Any, Optional

from pricing_engine.core.enums import PricingErrorKind
from pricing_engine.schemas.pricing import RuleEvaluation


class PricingError(Exception):
    """Base exception for explained pricing failures."""

    kind: PricingErrorKind = PricingErrorKind.INVALID_INPUT

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(PricingError):
    """Raised when the request or a rule's inputs cannot be priced."""

    kind = PricingErrorKind.INVALID_INPUT


class NoRuleFoundError(PricingError):
    """Raised when no valid rule matches the combination."""

    kind = PricingErrorKind.NO_RULE_FOUND

    def __init__(
        self,
        procedure_id: int,
        price_list_id: int,
        insurance_degree_id: int,
        as_of: date,
        message: Optional[str] = None,
        evaluations: Optional[list[RuleEvaluation]] = None,
    ):
        self.procedure_id = procedure_id
        self.price_list_id = price_list_id
        self.insurance_degree_id = insurance_degree_id
        self.as_of = as_of
        self.evaluations = evaluations or []
        super().__init__(
            message
            or (
                f"No pricing rule found for procedure {procedure_id}, "
                f"price list {price_list_id}, insurance degree "
                f"{insurance_degree_id} on {as_of.isoformat()}"
            )
        )


class MissingPointRateError(PricingError):
    """Raised when a POINTS rule has no point rate valid on the date."""

    kind = PricingErrorKind.MISSING_POINT_RATE

    def __init__(self, rule_id: int, insurance_degree_id: int, as_of: date):
        self.rule_id = rule_id
        self.insurance_degree_id = insurance_degree_id
        self.as_of = as_of
        super().__init__(
            f"Pricing rule {rule_id} is priced in points but no point rate is "
            f"valid for insurance degree {insurance_degree_id} on {as_of.isoformat()}"
        )


def validation_message(errors: list[dict[str, Any]]) -> str:
    """First validation problem as one plain sentence."""
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = list(first.get("loc", ()))
    if loc and loc[0] == "body":
        loc = loc[1:]
    field = ".".join(str(part) for part in loc) or "request"
    if first.get("type") == "missing":
        return f"Missing required field '{field}'"
    return f"Invalid value for '{field}': {first.get('msg', 'invalid value')}"
