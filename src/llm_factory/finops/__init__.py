"""Pricing and cost calculation."""

from .cost_calculator import CostCalculator, calculate_cost, default_cost_calculator
from .pricing import MODEL_PRICING, TieredRate, TokenPricing

__all__ = [
    "CostCalculator",
    "MODEL_PRICING",
    "TieredRate",
    "TokenPricing",
    "calculate_cost",
    "default_cost_calculator",
]
