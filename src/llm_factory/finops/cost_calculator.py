"""Token cost calculation for flat and tiered pricing."""

from typing import Mapping, Optional

from ..exceptions import UnknownModelPricingError
from .pricing import MODEL_PRICING, TOKENS_PER_UNIT, TieredRate, TokenPricing


def _flat_cost(tokens: int, rate: float) -> float:
    return (tokens / TOKENS_PER_UNIT) * rate


def _tiered_cost(tokens: int, tier: TieredRate) -> float:
    if tokens <= tier.threshold:
        return (tokens / TOKENS_PER_UNIT) * tier.below
    below_cost = (tier.threshold / TOKENS_PER_UNIT) * tier.below
    above_cost = ((tokens - tier.threshold) / TOKENS_PER_UNIT) * tier.above
    return below_cost + above_cost


class CostCalculator:
    """Prices token usage against a pricing table."""

    def __init__(self, pricing: Optional[Mapping[str, TokenPricing]] = None):
        self.pricing = dict(MODEL_PRICING if pricing is None else pricing)

    def has_pricing(self, model: str) -> bool:
        return model in self.pricing

    def calculate(self, model: str, input_tokens: int, output_tokens: int) -> float:
        """Calculate the cost of a generation.

        Args:
            model: Model identifier
            input_tokens: Prompt tokens
            output_tokens: Completion tokens

        Returns:
            float: Cost in USD

        Raises:
            UnknownModelPricingError: If the model has no pricing entry
            ValueError: If a token count is negative
        """
        if input_tokens < 0 or output_tokens < 0:
            raise ValueError("token counts must be non-negative")

        pricing = self.pricing.get(model)
        if pricing is None:
            raise UnknownModelPricingError(model)

        if pricing.tiered_input is not None:
            input_cost = _tiered_cost(input_tokens, pricing.tiered_input)
        else:
            input_cost = _flat_cost(input_tokens, pricing.input)

        if pricing.tiered_output is not None:
            output_cost = _tiered_cost(output_tokens, pricing.tiered_output)
        else:
            output_cost = _flat_cost(output_tokens, pricing.output)

        return input_cost + output_cost

    def __call__(self, model: str, input_tokens: int, output_tokens: int) -> float:
        return self.calculate(model, input_tokens, output_tokens)


default_cost_calculator = CostCalculator()


def calculate_cost(
    model: str,
    input_tokens: int,
    output_tokens: int,
    pricing: Optional[Mapping[str, TokenPricing]] = None,
) -> float:
    """Calculate the cost based on tokens and model."""
    if pricing is None:
        return default_cost_calculator.calculate(model, input_tokens, output_tokens)
    return CostCalculator(pricing).calculate(model, input_tokens, output_tokens)
