"""Model pricing in USD per million tokens."""

from dataclasses import dataclass
from typing import Dict, Optional

TOKENS_PER_UNIT = 1_000_000


@dataclass(frozen=True)
class TieredRate:
    """Progressive rate: tokens up to ``threshold`` at ``below``, the excess at ``above``."""

    threshold: int
    below: float
    above: float


@dataclass(frozen=True)
class TokenPricing:
    """Pricing for one model, either flat or tiered per direction."""

    input: float = 0.0
    output: float = 0.0
    tiered_input: Optional[TieredRate] = None
    tiered_output: Optional[TieredRate] = None

    @property
    def is_tiered(self) -> bool:
        return self.tiered_input is not None or self.tiered_output is not None


MODEL_PRICING: Dict[str, TokenPricing] = {
    # OpenAI
    "gpt-4.1": TokenPricing(input=2.00, output=8.00),
    "gpt-4.1-mini": TokenPricing(input=0.40, output=1.60),
    "gpt-4.1-nano": TokenPricing(input=0.10, output=0.40),
    "gpt-4o": TokenPricing(input=2.50, output=10.00),
    "gpt-4o-mini": TokenPricing(input=0.15, output=0.60),
    "gpt-4o-audio-preview": TokenPricing(input=2.50, output=10.00),
    "gpt-4o-mini-audio-preview": TokenPricing(input=0.15, output=0.60),
    # Google
    "gemini-2.5-pro-preview-03-25": TokenPricing(
        tiered_input=TieredRate(threshold=200_000, below=1.25, above=2.50),
        tiered_output=TieredRate(threshold=200_000, below=10.00, above=15.00),
    ),
    "gemini-2.0-flash": TokenPricing(input=0.10, output=0.40),
    "gemini-2.0-flash-lite": TokenPricing(input=0.075, output=0.30),
    # Anthropic
    "claude-3-7-sonnet-latest": TokenPricing(input=3.00, output=15.00),
    "claude-3-5-haiku-latest": TokenPricing(input=0.80, output=4.00),
}
