"""Token cost estimation.

A pure function over token counts. Prices are configuration (``pricing`` in
.revlens.yml); the defaults approximate Gemini 2.5 Flash list prices.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from revlens_core.utils.rounding import round_half_up

_COST_PLACES = 6


@dataclass(frozen=True)
class Pricing:
    input_per_million: float = 0.075
    output_per_million: float = 0.30

    @classmethod
    def from_config(cls, config: dict) -> Pricing:
        prices = config.get("pricing") or {}
        return cls(
            input_per_million=float(prices.get("input_per_million", cls.input_per_million)),
            output_per_million=float(prices.get("output_per_million", cls.output_per_million)),
        )


def estimate_cost(input_tokens: int, output_tokens: int, pricing: Pricing | None = None) -> float:
    """Return the USD cost of a review, rounded to 6 decimal places."""
    pricing = pricing or Pricing()
    cost = input_tokens / 1_000_000 * pricing.input_per_million + output_tokens / 1_000_000 * pricing.output_per_million
    return round_half_up(cost, _COST_PLACES)


def estimate_output_tokens(text: str) -> int:
    """Rough output-token count for a model that reported no usage.

    Four characters per token. Only good to an order of magnitude: use it
    as a fallback, never in place of a reported count.
    """
    return math.ceil(len(text) / 4)
