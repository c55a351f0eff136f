"""
Procedure Pricing Calculation Engine.

Selects the applicable pricing rule for a procedure/price list/insurance
degree combination and produces a fully explained price.
"""

__version__ = "1.0.0"
