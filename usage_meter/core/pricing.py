"""
Pricing calculations for Claude models.

Maps a model identifier to its per-token price vector and computes the
API-equivalent cost of a turn.
"""

from dataclasses import dataclass
from typing import Dict

TOKENS_PER_PRICE_UNIT = 1_000_000


def model_matches(model: str, family: str) -> bool:
    """Case-insensitive substring test shared by pricing and window filters."""
    return family.lower() in model.lower()


@dataclass(frozen=True)
class ModelPricing:
    """USD prices per one million tokens for each token class."""
    input_price: float
    output_price: float
    cache_read_price: float
    cache_create_price: float


@dataclass(frozen=True)
class PricingTable:
    """Fixed pricing table keyed by model family.

    Families are checked in insertion order; an identifier that matches
    none of them is priced at the default rate.
    """
    families: Dict[str, ModelPricing]
    default: ModelPricing

    def get_pricing(self, model: str) -> ModelPricing:
        """Get pricing for a model identifier.

        Args:
            model: Model identifier, e.g. "claude-opus-4-1-20250805"

        Returns:
            ModelPricing of the first family contained in the identifier,
            or the default pricing. Never raises.
        """
        for family, pricing in self.families.items():
            if model_matches(model, family):
                return pricing
        return self.default


SONNET_PRICING = ModelPricing(
    input_price=3.0,
    output_price=15.0,
    cache_read_price=0.30,
    cache_create_price=3.75,
)

# Identifiers matching no family are priced as Sonnet
PRICING_TABLE = PricingTable(
    families={
        "opus": ModelPricing(
            input_price=15.0,
            output_price=75.0,
            cache_read_price=1.50,
            cache_create_price=18.75,
        ),
        "haiku": ModelPricing(
            input_price=0.80,
            output_price=4.0,
            cache_read_price=0.08,
            cache_create_price=1.0,
        ),
    },
    default=SONNET_PRICING,
)


def get_prices(model: str) -> ModelPricing:
    """Price vector for a model identifier."""
    return PRICING_TABLE.get_pricing(model)


def calculate_cost(
    model: str,
    input_tokens: int,
    output_tokens: int,
    cache_read_tokens: int,
    cache_create_tokens: int,
) -> float:
    """Calculate the USD cost of a set of token counts.

    No rounding is applied here; callers round aggregated totals.

    Args:
        model: Model identifier
        input_tokens: Uncached input tokens
        output_tokens: Generated tokens
        cache_read_tokens: Input tokens served from the prompt cache
        cache_create_tokens: Input tokens written to the prompt cache

    Returns:
        Cost in USD
    """
    pricing = get_prices(model)
    return (
        input_tokens * pricing.input_price
        + output_tokens * pricing.output_price
        + cache_read_tokens * pricing.cache_read_price
        + cache_create_tokens * pricing.cache_create_price
    ) / TOKENS_PER_PRICE_UNIT
