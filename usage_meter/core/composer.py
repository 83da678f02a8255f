"""
Rate limit composition.

Computes the five-hour, weekly and weekly Sonnet windows from local
session journals, expresses them against the plan budgets, and overlays
the authoritative remote snapshot when one is available.

Every call reads the journals afresh and returns a new RateLimitInfo;
nothing is cached between calls.
"""

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional, Union

import httpx

from ..config.loader import (
    ResolvedBudgets,
    default_projects_dir,
    read_access_token,
    read_app_config,
    read_tier,
    resolve_budgets,
)
from ..sdk.usage_client import UsageAPIError, fetch_usage
from .aggregator import aggregate_entries, round_half_up
from .models import (
    RateLimitInfo,
    RemoteUsageSnapshot,
    UsageEntry,
    UsageWindow,
    WindowRateInfo,
    WindowUtilization,
)
from .parser import parse_journal_file
from .pricing import model_matches
from .scanner import scan_journal_files
from .timestamps import format_rfc3339, parse_rfc3339

logger = logging.getLogger(__name__)

FIVE_HOUR_WINDOW = timedelta(hours=5)
WEEKLY_WINDOW = timedelta(days=7)
SONNET_FAMILY = "sonnet"
PERCENT_DECIMALS = 1


class ProjectsDirectoryNotFoundError(FileNotFoundError):
    """Raised when the Claude Code projects directory does not exist."""


def utilization_percent(cost_usd: float, budget_usd: float) -> float:
    """Cost as a percentage of budget, clamped to [0, 100] and rounded to 0.1.

    A non-positive budget yields 0.0.
    """
    if budget_usd <= 0:
        return 0.0
    percent = min(max(cost_usd / budget_usd * 100, 0.0), 100.0)
    return round_half_up(percent, PERCENT_DECIMALS)


def compute_reset_ts(oldest_entry_ts: Optional[str], window: timedelta) -> Optional[str]:
    """When the oldest entry in a window rolls out of it."""
    if oldest_entry_ts is None:
        return None
    try:
        oldest = parse_rfc3339(oldest_entry_ts)
    except ValueError:
        return None
    return format_rfc3339(oldest + window)


def _window_rate_info(window: UsageWindow, budget_usd: float, duration: timedelta) -> WindowRateInfo:
    return WindowRateInfo(
        budget_usd=budget_usd,
        cost_usd=window.total_cost_usd,
        percent=utilization_percent(window.total_cost_usd, budget_usd),
        reset_ts=compute_reset_ts(window.oldest_entry_ts, duration),
        window=window,
    )


def load_entries(projects_dir: Union[str, Path], since: datetime) -> List[UsageEntry]:
    """Read every usage entry at or after a floor from the journals."""
    entries: List[UsageEntry] = []
    files = scan_journal_files(projects_dir, since)
    for path in files:
        entries.extend(parse_journal_file(path, since))
    logger.debug("Loaded %d entries from %d journals", len(entries), len(files))
    return entries


def compute_rate_limits(
    budgets: ResolvedBudgets,
    tier_name: str,
    projects_dir: Optional[Union[str, Path]] = None,
    now: Optional[datetime] = None,
) -> RateLimitInfo:
    """Compute the three usage windows from local journals.

    The journals are read once with the weekly floor, which covers all
    three windows; each window is then aggregated from that collection.

    Args:
        budgets: Budget ceilings for the windows
        tier_name: Tier reported in the result
        projects_dir: Journal root; ~/.claude/projects when None
        now: Timezone-aware reference time; the current time when None

    Returns:
        RateLimitInfo computed purely from local data

    Raises:
        ProjectsDirectoryNotFoundError: If the journal root is missing
    """
    root = Path(projects_dir) if projects_dir is not None else default_projects_dir()
    if not root.is_dir():
        raise ProjectsDirectoryNotFoundError(f"Claude projects directory does not exist: {root}")

    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    week_floor = now - WEEKLY_WINDOW
    five_hour_floor = now - FIVE_HOUR_WINDOW

    entries = load_entries(root, week_floor)
    sonnet_entries = [e for e in entries if model_matches(e.model, SONNET_FAMILY)]

    five_hour = aggregate_entries(entries, five_hour_floor)
    weekly = aggregate_entries(entries, week_floor)
    weekly_sonnet = aggregate_entries(sonnet_entries, week_floor)

    return RateLimitInfo(
        tier_name=tier_name,
        five_hour=_window_rate_info(five_hour, budgets.five_hour, FIVE_HOUR_WINDOW),
        weekly=_window_rate_info(weekly, budgets.weekly, WEEKLY_WINDOW),
        weekly_sonnet=_window_rate_info(weekly_sonnet, budgets.weekly_sonnet, WEEKLY_WINDOW),
        api_available=False,
        rate_limit_status=None,
    )


def _overlay_window(info: WindowRateInfo, remote: Optional[WindowUtilization]) -> WindowRateInfo:
    if remote is None:
        return info
    percent = remote.utilization if remote.utilization is not None else info.percent
    reset_ts = remote.resets_at if remote.resets_at is not None else info.reset_ts
    return replace(info, percent=percent, reset_ts=reset_ts)


def apply_remote_snapshot(info: RateLimitInfo, snapshot: Optional[RemoteUsageSnapshot]) -> RateLimitInfo:
    """Overlay remote utilization and reset times on a local result.

    Each remote field that is present replaces its local counterpart on
    its own; token and cost data always stay local.

    Args:
        info: Locally computed result
        snapshot: Remote snapshot, or None when unavailable

    Returns:
        A new RateLimitInfo, or info itself when snapshot is None
    """
    if snapshot is None:
        return info
    return replace(
        info,
        five_hour=_overlay_window(info.five_hour, snapshot.five_hour),
        weekly=_overlay_window(info.weekly, snapshot.seven_day),
        weekly_sonnet=_overlay_window(info.weekly_sonnet, snapshot.seven_day_sonnet),
        api_available=True,
    )


def compute_rate_limits_with_remote(
    budgets: ResolvedBudgets,
    tier_name: str,
    snapshot: Optional[RemoteUsageSnapshot],
    projects_dir: Optional[Union[str, Path]] = None,
    now: Optional[datetime] = None,
) -> RateLimitInfo:
    """compute_rate_limits followed by apply_remote_snapshot."""
    info = compute_rate_limits(budgets, tier_name, projects_dir=projects_dir, now=now)
    return apply_remote_snapshot(info, snapshot)


def fetch_remote_snapshot(access_token: str) -> Optional[RemoteUsageSnapshot]:
    """Best-effort remote fetch; any failure means no snapshot."""
    if not access_token:
        return None
    try:
        return fetch_usage(access_token)
    except (httpx.HTTPError, UsageAPIError, ValueError) as e:
        logger.debug("Remote usage unavailable: %s", e)
        return None


def get_usage(
    projects_dir: Optional[Union[str, Path]] = None,
    config_path: Optional[Union[str, Path]] = None,
    credentials_path: Optional[Union[str, Path]] = None,
    use_remote: bool = True,
    now: Optional[datetime] = None,
) -> RateLimitInfo:
    """Compute usage the way the meter does on every refresh.

    Reads the tier and token from the credentials file, resolves budgets
    with any configured overrides, fetches the remote snapshot when a
    token is available and composes the result.

    Raises:
        ProjectsDirectoryNotFoundError: If the journal root is missing
    """
    tier = read_tier(credentials_path)
    budgets = resolve_budgets(tier, read_app_config(config_path))

    snapshot = None
    if use_remote:
        snapshot = fetch_remote_snapshot(read_access_token(credentials_path))

    return compute_rate_limits_with_remote(
        budgets, tier, snapshot, projects_dir=projects_dir, now=now
    )
