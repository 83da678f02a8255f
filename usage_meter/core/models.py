"""
Usage data models.

Value types produced by the journal parser and the window aggregator,
and the result structure handed to the presentation layer.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class TokenCounts:
    """The four token classes billed for one assistant turn or a sum of turns."""
    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_tokens: int = 0
    cache_create_tokens: int = 0

    def __post_init__(self):
        """Validate counters are non-negative."""
        for name in ("input_tokens", "output_tokens", "cache_read_tokens", "cache_create_tokens"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")

    def __add__(self, other: "TokenCounts") -> "TokenCounts":
        return TokenCounts(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            cache_read_tokens=self.cache_read_tokens + other.cache_read_tokens,
            cache_create_tokens=self.cache_create_tokens + other.cache_create_tokens,
        )

    @property
    def total_tokens(self) -> int:
        """All tokens across the four classes."""
        return (
            self.input_tokens
            + self.output_tokens
            + self.cache_read_tokens
            + self.cache_create_tokens
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "cache_read_tokens": self.cache_read_tokens,
            "cache_create_tokens": self.cache_create_tokens,
        }


@dataclass(frozen=True)
class UsageEntry:
    """One normalized assistant turn read from a session journal.

    Timestamps are timezone-aware. Entries are never modified after parsing.
    """
    model: str
    timestamp: datetime
    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_tokens: int = 0
    cache_create_tokens: int = 0

    @property
    def tokens(self) -> TokenCounts:
        return TokenCounts(
            input_tokens=self.input_tokens,
            output_tokens=self.output_tokens,
            cache_read_tokens=self.cache_read_tokens,
            cache_create_tokens=self.cache_create_tokens,
        )


@dataclass(frozen=True)
class ModelUsage:
    """Token and cost totals for a single model within a window."""
    tokens: TokenCounts = field(default_factory=TokenCounts)
    cost_usd: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"tokens": self.tokens.to_dict(), "cost_usd": self.cost_usd}


@dataclass(frozen=True)
class UsageWindow:
    """Aggregate of every entry at or after a time floor.

    The per-model token counts always sum to the window totals.
    """
    total_cost_usd: float = 0.0
    tokens: TokenCounts = field(default_factory=TokenCounts)
    by_model: Dict[str, ModelUsage] = field(default_factory=dict)
    oldest_entry_ts: Optional[str] = None
    newest_entry_ts: Optional[str] = None
    entry_count: int = 0

    @property
    def input_tokens(self) -> int:
        return self.tokens.input_tokens

    @property
    def output_tokens(self) -> int:
        return self.tokens.output_tokens

    @property
    def cache_read_tokens(self) -> int:
        return self.tokens.cache_read_tokens

    @property
    def cache_create_tokens(self) -> int:
        return self.tokens.cache_create_tokens

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_cost_usd": self.total_cost_usd,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "cache_read_tokens": self.cache_read_tokens,
            "cache_create_tokens": self.cache_create_tokens,
            "by_model": {model: usage.to_dict() for model, usage in self.by_model.items()},
            "oldest_entry_ts": self.oldest_entry_ts,
            "newest_entry_ts": self.newest_entry_ts,
            "entry_count": self.entry_count,
        }


@dataclass(frozen=True)
class WindowRateInfo:
    """Budget-relative view of one usage window."""
    budget_usd: float
    cost_usd: float
    percent: float
    reset_ts: Optional[str]
    window: UsageWindow

    def to_dict(self) -> Dict[str, Any]:
        return {
            "budget_usd": self.budget_usd,
            "cost_usd": self.cost_usd,
            "percent": self.percent,
            "reset_ts": self.reset_ts,
            "window": self.window.to_dict(),
        }


@dataclass(frozen=True)
class RateLimitInfo:
    """Complete result of one usage computation.

    Serialized with to_dict(); optional fields stay present as None so
    consumers always see the same keys.
    """
    tier_name: str
    five_hour: WindowRateInfo
    weekly: WindowRateInfo
    weekly_sonnet: WindowRateInfo
    api_available: bool = False
    rate_limit_status: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tier_name": self.tier_name,
            "five_hour": self.five_hour.to_dict(),
            "weekly": self.weekly.to_dict(),
            "weekly_sonnet": self.weekly_sonnet.to_dict(),
            "api_available": self.api_available,
            "rate_limit_status": self.rate_limit_status,
        }


@dataclass(frozen=True)
class WindowUtilization:
    """Remote utilization for one window; either field may be missing."""
    utilization: Optional[float] = None
    resets_at: Optional[str] = None


@dataclass(frozen=True)
class ExtraUsage:
    """Pay-as-you-go credit state reported alongside the window utilization."""
    is_enabled: Optional[bool] = None
    monthly_limit: Optional[float] = None
    used_credits: Optional[float] = None
    utilization: Optional[float] = None


@dataclass(frozen=True)
class RemoteUsageSnapshot:
    """Authoritative usage view fetched from the remote usage endpoint."""
    five_hour: Optional[WindowUtilization] = None
    seven_day: Optional[WindowUtilization] = None
    seven_day_sonnet: Optional[WindowUtilization] = None
    extra_usage: Optional[ExtraUsage] = None
