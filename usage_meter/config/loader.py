"""
Configuration management and loading.

Resolves per-tier budget ceilings, applies local overrides from the
usage meter config file and reads the subscription tier and access
token from the Claude Code credentials file.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

UNKNOWN_TIER = "unknown"
CONFIG_FILENAME = "usage-meter-config.json"
CREDENTIALS_FILENAME = ".credentials.json"


def claude_dir() -> Path:
    """Claude Code's per-user data directory."""
    return Path.home() / ".claude"


def default_projects_dir() -> Path:
    return claude_dir() / "projects"


def default_config_path() -> Path:
    return claude_dir() / CONFIG_FILENAME


def default_credentials_path() -> Path:
    return claude_dir() / CREDENTIALS_FILENAME


@dataclass(frozen=True)
class ResolvedBudgets:
    """USD ceilings for the three usage windows."""
    five_hour: float
    weekly: float
    weekly_sonnet: float


# Estimated API-equivalent spend each plan allows per window
TIER_DEFAULTS: Dict[str, ResolvedBudgets] = {
    "default_claude_pro": ResolvedBudgets(five_hour=18.6, weekly=218.0, weekly_sonnet=32.0),
    "default_claude_max_5x": ResolvedBudgets(five_hour=93.0, weekly=1090.0, weekly_sonnet=160.0),
    "default_claude_max_20x": ResolvedBudgets(five_hour=372.0, weekly=4360.0, weekly_sonnet=640.0),
}
FALLBACK_TIER = "default_claude_pro"


@dataclass(frozen=True)
class BudgetOverrides:
    """Locally configured budgets; unset fields keep the tier default."""
    five_hour: Optional[float] = None
    weekly: Optional[float] = None
    weekly_sonnet: Optional[float] = None

    def __post_init__(self):
        """Validate configured budgets are positive."""
        for name in ("five_hour", "weekly", "weekly_sonnet"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValueError(f"{name} budget must be > 0")


@dataclass(frozen=True)
class AppConfig:
    """Usage meter configuration file contents."""
    budget_overrides: Optional[BudgetOverrides] = None


@dataclass(frozen=True)
class OAuthCredentials:
    """Subset of the Claude Code OAuth credentials the meter needs."""
    rate_limit_tier: str = ""
    access_token: str = ""


def load_app_config(path: Union[str, Path]) -> AppConfig:
    """Load and validate the usage meter configuration file.

    The file is read with a YAML parser, so the JSON file written by the
    desktop meter and hand-written YAML are both accepted. An empty file
    is an empty configuration.

    Args:
        path: Path to the configuration file

    Returns:
        Validated AppConfig

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If the file can't be parsed
        ValueError: If the configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Usage meter config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if raw_config is None:
        return AppConfig()
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a mapping")

    allowed_top_keys = {'budget_overrides'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    overrides_data = raw_config.get('budget_overrides')
    if overrides_data is None:
        return AppConfig()

    return AppConfig(budget_overrides=_parse_budget_overrides(overrides_data))


def _parse_budget_overrides(data: Any) -> BudgetOverrides:
    """Parse and validate the budget_overrides section.

    Raises:
        ValueError: If the section is invalid
    """
    if not isinstance(data, dict):
        raise ValueError("'budget_overrides' must be a dictionary")

    allowed_keys = {'five_hour', 'weekly', 'weekly_sonnet'}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in budget_overrides: {unknown_keys}")

    values = {}
    for key in allowed_keys:
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"'{key}' in budget_overrides must be a number")
        values[key] = float(value)

    return BudgetOverrides(**values)


def read_app_config(path: Optional[Union[str, Path]] = None) -> AppConfig:
    """Best-effort variant of load_app_config.

    A missing file is normal and yields an empty configuration; an
    unreadable or invalid one is logged and ignored.
    """
    config_path = Path(path) if path is not None else default_config_path()
    try:
        return load_app_config(config_path)
    except FileNotFoundError:
        return AppConfig()
    except (OSError, yaml.YAMLError, ValueError) as e:
        logger.warning("Ignoring usage meter config %s: %s", config_path, e)
        return AppConfig()


def tier_defaults(tier: str) -> ResolvedBudgets:
    """Default budgets for a tier; unknown tiers get Pro budgets."""
    return TIER_DEFAULTS.get(tier, TIER_DEFAULTS[FALLBACK_TIER])


def resolve_budgets(tier: str, config: Optional[AppConfig] = None) -> ResolvedBudgets:
    """Combine tier defaults with any configured overrides.

    Args:
        tier: Rate limit tier name from the credentials file
        config: Parsed configuration; read from the default path when None

    Returns:
        ResolvedBudgets with every overridden field replaced
    """
    if config is None:
        config = read_app_config()

    budgets = tier_defaults(tier)
    overrides = config.budget_overrides
    if overrides is None:
        return budgets

    return ResolvedBudgets(
        five_hour=overrides.five_hour if overrides.five_hour is not None else budgets.five_hour,
        weekly=overrides.weekly if overrides.weekly is not None else budgets.weekly,
        weekly_sonnet=(
            overrides.weekly_sonnet if overrides.weekly_sonnet is not None else budgets.weekly_sonnet
        ),
    )


def read_credentials(path: Optional[Union[str, Path]] = None) -> OAuthCredentials:
    """Read the OAuth section of the Claude Code credentials file.

    Returns empty credentials when the file is missing or unreadable.
    """
    credentials_path = Path(path) if path is not None else default_credentials_path()
    try:
        with open(credentials_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.debug("No usable credentials at %s: %s", credentials_path, e)
        return OAuthCredentials()

    oauth = data.get("claudeAiOauth") if isinstance(data, dict) else None
    if not isinstance(oauth, dict):
        return OAuthCredentials()

    tier = oauth.get("rateLimitTier")
    token = oauth.get("accessToken")
    return OAuthCredentials(
        rate_limit_tier=tier if isinstance(tier, str) else "",
        access_token=token if isinstance(token, str) else "",
    )


def read_tier(path: Optional[Union[str, Path]] = None) -> str:
    """Subscription tier name, or "unknown"."""
    return read_credentials(path).rate_limit_tier or UNKNOWN_TIER


def read_access_token(path: Optional[Union[str, Path]] = None) -> str:
    """OAuth access token, or an empty string."""
    return read_credentials(path).access_token
