"""
Outbound gateways for the pricing engine.
"""

from pricing_engine.gateways.base import GatewayError
from pricing_engine.gateways.pricing_data_client import (
    PricingDataClient,
    PricingDataError,
    get_pricing_data_client,
    reset_pricing_data_client,
)

__all__ = [
    "GatewayError",
    "PricingDataClient",
    "PricingDataError",
    "get_pricing_data_client",
    "reset_pricing_data_client",
]
