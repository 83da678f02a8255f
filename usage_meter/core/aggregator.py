"""
Usage window aggregation.

Reduces parsed journal entries into per-model and total token and cost
statistics for everything at or after a time floor.
"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, Optional

from .models import ModelUsage, TokenCounts, UsageEntry, UsageWindow
from .pricing import calculate_cost
from .timestamps import format_rfc3339

COST_DECIMALS = 3


def round_half_up(value: float, places: int) -> float:
    """Round to a number of decimal places, ties away from zero.

    Scales by 10**places, rounds the exact binary value of the product to
    the nearest integer and scales back.
    """
    factor = 10 ** places
    scaled = Decimal(value * factor).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return float(scaled) / factor


def aggregate_entries(entries: Iterable[UsageEntry], since: datetime) -> UsageWindow:
    """Aggregate entries at or after a floor into a usage window.

    Entries before the floor are ignored, so one collection can be
    reduced against several floors.

    Args:
        entries: Parsed usage entries, in any order
        since: Timezone-aware window floor

    Returns:
        UsageWindow with the total cost rounded to three decimals and
        per-model costs left unrounded
    """
    totals = TokenCounts()
    total_cost = 0.0
    count = 0
    oldest: Optional[datetime] = None
    newest: Optional[datetime] = None
    model_tokens: Dict[str, TokenCounts] = {}
    model_costs: Dict[str, float] = {}

    for entry in entries:
        if entry.timestamp < since:
            continue
        count += 1

        if oldest is None or entry.timestamp < oldest:
            oldest = entry.timestamp
        if newest is None or entry.timestamp > newest:
            newest = entry.timestamp

        tokens = entry.tokens
        totals = totals + tokens
        model_tokens[entry.model] = model_tokens.get(entry.model, TokenCounts()) + tokens

        cost = calculate_cost(
            entry.model,
            entry.input_tokens,
            entry.output_tokens,
            entry.cache_read_tokens,
            entry.cache_create_tokens,
        )
        total_cost += cost
        model_costs[entry.model] = model_costs.get(entry.model, 0.0) + cost

    return UsageWindow(
        total_cost_usd=round_half_up(total_cost, COST_DECIMALS),
        tokens=totals,
        by_model={
            model: ModelUsage(tokens=tokens, cost_usd=model_costs[model])
            for model, tokens in model_tokens.items()
        },
        oldest_entry_ts=format_rfc3339(oldest) if oldest is not None else None,
        newest_entry_ts=format_rfc3339(newest) if newest is not None else None,
        entry_count=count,
    )
