"""
Tests for the CLI interface.
"""
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from usage_meter.cli.main import (
    EXIT_CODE_FAIL,
    EXIT_CODE_PASS,
    _format_cost,
    _format_percent,
    _format_reset,
    _format_tokens,
    _threshold_style,
    app,
)
from usage_meter.core.models import RateLimitInfo, UsageWindow, WindowRateInfo
from usage_meter.core.timestamps import format_rfc3339

runner = CliRunner()

NOW = datetime(2026, 2, 19, 12, 0, 0, tzinfo=timezone.utc)


def _window(percent: float = 10.0, cost: float = 1.86, budget: float = 18.6, reset_ts=None) -> WindowRateInfo:
    return WindowRateInfo(budget_usd=budget, cost_usd=cost, percent=percent, reset_ts=reset_ts, window=UsageWindow())


def _result(api_available: bool = False, tier: str = "default_claude_max_5x", status=None) -> RateLimitInfo:
    return RateLimitInfo(
        tier_name=tier,
        five_hour=_window(),
        weekly=_window(percent=75.0, cost=163.5, budget=218.0),
        weekly_sonnet=_window(percent=100.0, cost=40.0, budget=32.0),
        api_available=api_available,
        rate_limit_status=status,
    )


@pytest.fixture
def mock_get_usage():
    """Mock the usage computation."""
    with patch('usage_meter.cli.main.get_usage') as mock:
        mock.return_value = _result()
        yield mock


@pytest.fixture
def isolated_paths(tmp_path: Path):
    """Projects dir plus missing config and credentials files."""
    projects = tmp_path / "projects"
    projects.mkdir()
    return [
        "--projects-dir", str(projects),
        "--config", str(tmp_path / "missing-config.json"),
        "--credentials", str(tmp_path / "missing-credentials.json"),
    ]


class TestCLI:
    """Test CLI commands."""

    def test_no_command_prints_hint(self):
        """Test running without a command."""
        result = runner.invoke(app, [])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Use --help" in result.output

    def test_status_table(self, mock_get_usage):
        """Test the status table."""
        result = runner.invoke(app, ["status"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Claude Usage" in result.output
        assert "Tier: max_5x" in result.output
        assert "Source: local estimate" in result.output

    def test_status_remote_source(self, mock_get_usage):
        """Test the source line when remote data was used."""
        mock_get_usage.return_value = _result(api_available=True)

        result = runner.invoke(app, ["status"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Source: remote usage API" in result.output
        assert "~" not in result.output

    def test_status_tier_line(self, mock_get_usage):
        """Test the tier line shows only the short tier name."""
        mock_get_usage.return_value = _result(tier="default_claude_pro", status="rate_limited")

        result = runner.invoke(app, ["status"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Tier: pro\n" in result.output
        assert "RATE LIMITED" not in result.output

    def test_status_passes_options(self, mock_get_usage, tmp_path):
        """Test options are forwarded to the computation."""
        result = runner.invoke(app, [
            "status", "--no-remote",
            "--projects-dir", str(tmp_path),
            "--config", str(tmp_path / "c.json"),
            "--credentials", str(tmp_path / "cred.json"),
        ])

        assert result.exit_code == EXIT_CODE_PASS
        kwargs = mock_get_usage.call_args.kwargs
        assert kwargs["projects_dir"] == tmp_path
        assert kwargs["config_path"] == tmp_path / "c.json"
        assert kwargs["credentials_path"] == tmp_path / "cred.json"
        assert kwargs["use_remote"] is False

    def test_projects_dir_from_environment(self, mock_get_usage, tmp_path):
        """Test CLAUDE_PROJECTS_DIR supplies the projects directory."""
        result = runner.invoke(app, ["status"], env={"CLAUDE_PROJECTS_DIR": str(tmp_path)})

        assert result.exit_code == EXIT_CODE_PASS
        assert mock_get_usage.call_args.kwargs["projects_dir"] == tmp_path

    def test_status_json(self, isolated_paths):
        """Test JSON output from an empty projects directory."""
        result = runner.invoke(app, ["status", "--json", "--no-remote"] + isolated_paths)

        assert result.exit_code == EXIT_CODE_PASS
        data = json.loads(result.output)
        assert set(data) == {
            "tier_name", "five_hour", "weekly", "weekly_sonnet", "api_available", "rate_limit_status",
        }
        assert data["tier_name"] == "unknown"
        assert data["api_available"] is False
        assert data["rate_limit_status"] is None
        assert data["weekly"]["budget_usd"] == 218.0
        assert data["weekly"]["reset_ts"] is None
        assert data["weekly"]["window"]["entry_count"] == 0
        assert data["weekly"]["window"]["oldest_entry_ts"] is None

    def test_status_missing_projects_dir(self, tmp_path):
        """Test a missing projects directory fails."""
        result = runner.invoke(app, [
            "status", "--no-remote",
            "--projects-dir", str(tmp_path / "nope"),
            "--credentials", str(tmp_path / "missing.json"),
        ])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "No usage data" in result.output

    def test_budgets_for_tier(self, tmp_path):
        """Test the budgets command with an explicit tier."""
        result = runner.invoke(app, [
            "budgets", "--tier", "default_claude_max_20x",
            "--config", str(tmp_path / "missing.json"),
        ])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Tier: default_claude_max_20x" in result.output
        assert "$372.00" in result.output
        assert "$4,360.00" in result.output
        assert "$640.00" in result.output

    def test_budgets_with_overrides_and_credentials(self, tmp_path):
        """Test the budgets command reads the tier and overrides from files."""
        credentials = tmp_path / ".credentials.json"
        credentials.write_text(json.dumps({"claudeAiOauth": {"rateLimitTier": "default_claude_pro"}}))
        config = tmp_path / "usage-meter-config.json"
        config.write_text(json.dumps({"budget_overrides": {"weekly_sonnet": 50}}))

        result = runner.invoke(app, [
            "budgets", "--config", str(config), "--credentials", str(credentials),
        ])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Tier: default_claude_pro" in result.output
        assert "$18.60" in result.output
        assert "$50.00" in result.output

    @patch('usage_meter.cli.main.time.sleep')
    def test_watch_refreshes(self, mock_sleep, mock_get_usage):
        """Test watch refreshes the requested number of times."""
        result = runner.invoke(app, ["watch", "--count", "3", "--interval", "5"])

        assert result.exit_code == EXIT_CODE_PASS
        assert mock_get_usage.call_count == 3
        assert mock_sleep.call_count == 2
        mock_sleep.assert_called_with(5)
        assert "Updated" in result.output

    @patch('usage_meter.cli.main.time.sleep')
    def test_watch_missing_projects_dir(self, mock_sleep, tmp_path):
        """Test watch stops on a missing projects directory."""
        result = runner.invoke(app, [
            "watch", "--count", "2", "--no-remote",
            "--projects-dir", str(tmp_path / "nope"),
            "--credentials", str(tmp_path / "missing.json"),
        ])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "No usage data" in result.output
        mock_sleep.assert_not_called()

    def test_watch_rejects_zero_interval(self, mock_get_usage):
        """Test the refresh interval must be positive."""
        result = runner.invoke(app, ["watch", "--interval", "0", "--count", "1"])

        assert result.exit_code != EXIT_CODE_PASS
        mock_get_usage.assert_not_called()


class TestFormatting:
    """Test display helpers."""

    @pytest.mark.parametrize("count,expected", [
        (0, "0"),
        (999, "999"),
        (1500, "1.5K"),
        (45_000, "45.0K"),
        (2_300_000, "2.3M"),
    ])
    def test_format_tokens(self, count, expected):
        """Test token counts are abbreviated."""
        assert _format_tokens(count) == expected

    @pytest.mark.parametrize("amount,expected", [
        (0.0, "$0.00"),
        (1.234, "$1.23"),
        (12.34, "$12.3"),
        (218.0, "$218"),
    ])
    def test_format_cost(self, amount, expected):
        """Test precision shrinks as amounts grow."""
        assert _format_cost(amount) == expected

    def test_format_reset_no_window(self):
        """Test an empty window has no reset time."""
        assert _format_reset(None, NOW) == "No active window"

    def test_format_reset_past(self):
        """Test a reset time in the past."""
        assert _format_reset(format_rfc3339(NOW - timedelta(minutes=1)), NOW) == "Resetting soon..."

    def test_format_reset_minutes(self):
        """Test a reset under an hour away."""
        assert _format_reset(format_rfc3339(NOW + timedelta(minutes=30)), NOW) == "Resets in 30m"

    def test_format_reset_hours(self):
        """Test a reset hours away."""
        assert _format_reset(format_rfc3339(NOW + timedelta(minutes=90)), NOW) == "Resets in 1h 30m"

    def test_format_reset_days(self):
        """Test a reset over a day away shows a date."""
        text = _format_reset(format_rfc3339(NOW + timedelta(days=3)), NOW)

        assert text.startswith("Resets ")
        assert "Resets in" not in text

    def test_format_reset_remote_timestamp(self):
        """Test reset times from the remote API are understood."""
        text = _format_reset("2026-02-19T14:00:00.000000+00:00", NOW)

        assert text == "Resets in 2h 0m"

    @pytest.mark.parametrize("percent,style", [
        (0.0, "green"),
        (69.9, "green"),
        (70.0, "yellow"),
        (89.9, "yellow"),
        (90.0, "red"),
        (100.0, "red"),
    ])
    def test_threshold_style(self, percent, style):
        """Test warning thresholds."""
        assert _threshold_style(percent) == style

    def test_format_percent_estimated(self):
        """Test local estimates are marked."""
        assert _format_percent(_window(percent=42.0), estimated=True) == "[green]~42%[/]"

    def test_format_percent_remote(self):
        """Test remote values are shown as-is."""
        assert _format_percent(_window(percent=75.0), estimated=False) == "[yellow]75%[/]"

    def test_format_percent_over_budget(self):
        """Test spend over budget is shown as 100%+."""
        info = _window(percent=100.0, cost=40.0, budget=32.0)

        assert _format_percent(info, estimated=False) == "[red]100%+[/]"
