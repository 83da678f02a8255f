"""
CLI interface for the Claude usage meter.

Renders the five-hour, weekly and weekly Sonnet usage windows in the
terminal, or prints them as JSON for other tools.
"""

import json
import logging
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from usage_meter.config.loader import read_app_config, read_tier, resolve_budgets
from usage_meter.core.composer import ProjectsDirectoryNotFoundError, get_usage
from usage_meter.core.models import RateLimitInfo, WindowRateInfo
from usage_meter.core.timestamps import parse_rfc3339

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

DEFAULT_REFRESH_INTERVAL = 60

WINDOWS = (
    ("5h window", "five_hour"),
    ("Weekly", "weekly"),
    ("Weekly Sonnet", "weekly_sonnet"),
)

ProjectsDirOption = typer.Option(
    None,
    "--projects-dir",
    "-p",
    envvar="CLAUDE_PROJECTS_DIR",
    help="Claude Code projects directory (default: ~/.claude/projects)",
)
ConfigOption = typer.Option(
    None,
    "--config",
    "-c",
    help="Usage meter config file (default: ~/.claude/usage-meter-config.json)",
)
CredentialsOption = typer.Option(
    None,
    "--credentials",
    help="Claude Code credentials file (default: ~/.claude/.credentials.json)",
)
NoRemoteOption = typer.Option(
    False,
    "--no-remote",
    help="Use local journals only, skip the remote usage API",
)
VerboseOption = typer.Option(False, "--verbose", "-v", help="Enable debug logging")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _format_tokens(count: int) -> str:
    """Format a token count as 1.5M, 2.3K or the plain number."""
    if count >= 1_000_000:
        return f"{count / 1_000_000:.1f}M"
    if count >= 1_000:
        return f"{count / 1_000:.1f}K"
    return str(count)


def _format_cost(amount: float) -> str:
    """Format a USD amount with precision that shrinks as it grows."""
    if amount >= 100:
        return f"${amount:.0f}"
    if amount >= 10:
        return f"${amount:.1f}"
    return f"${amount:.2f}"


def _format_reset(reset_ts: Optional[str], now: datetime) -> str:
    """Describe when a window resets, relative to now."""
    if reset_ts is None:
        return "No active window"
    try:
        reset = parse_rfc3339(reset_ts)
    except ValueError:
        return reset_ts

    remaining = reset - now
    if remaining.total_seconds() <= 0:
        return "Resetting soon..."

    minutes = int(remaining.total_seconds() // 60)
    hours, minutes = divmod(minutes, 60)
    if hours == 0:
        return f"Resets in {minutes}m"
    if hours < 24:
        return f"Resets in {hours}h {minutes}m"
    return "Resets " + reset.astimezone().strftime("%b %d %H:%M")


def _threshold_style(percent: float) -> str:
    if percent >= 90:
        return "red"
    if percent >= 70:
        return "yellow"
    return "green"


def _format_percent(info: WindowRateInfo, estimated: bool) -> str:
    """Percent used, marked "~" when only estimated from local cost."""
    prefix = "~" if estimated else ""
    if info.cost_usd > info.budget_usd:
        text = "100%+"
    else:
        text = f"{info.percent:.0f}%"
    return f"[{_threshold_style(info.percent)}]{prefix}{text}[/]"


def _display_usage(result: RateLimitInfo, now: datetime) -> None:
    """Render the usage windows as a table."""
    estimated = not result.api_available
    table = Table(title="Claude Usage")
    table.add_column("Window")
    table.add_column("Used", justify="right")
    table.add_column("Cost / Budget", justify="right")
    table.add_column("Reset")
    table.add_column("Tokens (in/out/cache R/cache W)")

    for label, attr in WINDOWS:
        info = getattr(result, attr)
        window = info.window
        tokens = " / ".join(
            _format_tokens(n)
            for n in (
                window.input_tokens,
                window.output_tokens,
                window.cache_read_tokens,
                window.cache_create_tokens,
            )
        )
        table.add_row(
            label,
            _format_percent(info, estimated),
            f"{_format_cost(info.cost_usd)} / {_format_cost(info.budget_usd)}",
            _format_reset(info.reset_ts, now),
            tokens,
        )

    console.print(table)

    tier = result.tier_name.replace("default_claude_", "")
    source = "remote usage API" if result.api_available else "local estimate"
    console.print(escape(f"Tier: {tier}"))
    console.print(f"Source: {source}")


def _compute(
    projects_dir: Optional[Path],
    config: Optional[Path],
    credentials: Optional[Path],
    no_remote: bool,
) -> RateLimitInfo:
    return get_usage(
        projects_dir=projects_dir,
        config_path=config,
        credentials_path=credentials,
        use_remote=not no_remote,
    )


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """Claude usage meter CLI."""
    if ctx.invoked_subcommand is None:
        console.print("Claude Usage Meter - Use --help to see available commands")


@app.command()
def status(
    projects_dir: Optional[Path] = ProjectsDirOption,
    config: Optional[Path] = ConfigOption,
    credentials: Optional[Path] = CredentialsOption,
    no_remote: bool = NoRemoteOption,
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
    verbose: bool = VerboseOption,
):
    """Show current five-hour and weekly usage against the plan budgets."""
    _configure_logging(verbose)
    try:
        result = _compute(projects_dir, config, credentials, no_remote)
    except ProjectsDirectoryNotFoundError as e:
        console.print(f"[bold yellow]No usage data[/]: {e}")
        sys.exit(EXIT_CODE_FAIL)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _display_usage(result, datetime.now(timezone.utc))
    sys.exit(EXIT_CODE_PASS)


@app.command()
def budgets(
    tier: Optional[str] = typer.Option(
        None, "--tier", "-t", help="Tier name (default: tier from credentials)"
    ),
    config: Optional[Path] = ConfigOption,
    credentials: Optional[Path] = CredentialsOption,
):
    """Show the budgets used for each window."""
    tier_name = tier or read_tier(credentials)
    resolved = resolve_budgets(tier_name, read_app_config(config))

    table = Table(title="Budgets")
    table.add_column("Window")
    table.add_column("Budget", justify="right")
    table.add_row("5h window", f"${resolved.five_hour:,.2f}")
    table.add_row("Weekly", f"${resolved.weekly:,.2f}")
    table.add_row("Weekly Sonnet", f"${resolved.weekly_sonnet:,.2f}")
    console.print(table)
    console.print(escape(f"Tier: {tier_name}"))


@app.command()
def watch(
    projects_dir: Optional[Path] = ProjectsDirOption,
    config: Optional[Path] = ConfigOption,
    credentials: Optional[Path] = CredentialsOption,
    no_remote: bool = NoRemoteOption,
    interval: int = typer.Option(
        DEFAULT_REFRESH_INTERVAL, "--interval", "-i", min=1, help="Seconds between refreshes"
    ),
    count: Optional[int] = typer.Option(
        None, "--count", "-n", min=1, help="Stop after this many refreshes"
    ),
    verbose: bool = VerboseOption,
):
    """Refresh the usage table periodically."""
    _configure_logging(verbose)
    refreshes = 0
    while count is None or refreshes < count:
        if refreshes:
            time.sleep(interval)
        try:
            result = _compute(projects_dir, config, credentials, no_remote)
        except ProjectsDirectoryNotFoundError as e:
            console.print(f"[bold yellow]No usage data[/]: {e}")
            sys.exit(EXIT_CODE_FAIL)

        now = datetime.now(timezone.utc)
        console.clear()
        _display_usage(result, now)
        console.print(f"Updated {now.astimezone().strftime('%H:%M:%S')}")
        refreshes += 1


if __name__ == "__main__":
    app()
