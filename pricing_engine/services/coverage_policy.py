"""
Coverage & Pre-approval Policy.
"""

from dataclasses import dataclass
from typing import Optional

from pricing_engine.schemas.pricing import PricingRule

NO_RULE_REASON = "no applicable pricing rule"
NOT_APPLICABLE_REASON = "not applicable"


@dataclass(frozen=True)
class CoverageDecision:
    """Coverage and pre-approval flags with their reasons."""

    covered: bool
    coverage_reason: Optional[str]
    requires_preapproval: bool
    preapproval_reason: Optional[str]


def decide_coverage(rule: Optional[PricingRule]) -> CoverageDecision:
    """Mirror the selected rule's flags; no rule means not covered."""
    if rule is None:
        return CoverageDecision(
            covered=False,
            coverage_reason=NO_RULE_REASON,
            requires_preapproval=False,
            preapproval_reason=NOT_APPLICABLE_REASON,
        )
    return CoverageDecision(
        covered=rule.coverage,
        coverage_reason=rule.coverage_reason,
        requires_preapproval=rule.preapproval_required,
        preapproval_reason=rule.preapproval_reason,
    )
