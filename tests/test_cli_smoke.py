"""
CLI smoke tests - verify commands load and run end to end against a temporary
data directory in offline mode (local catalog prices, no network).
"""
from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

runner = CliRunner()


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("DIVTRACK_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("DIVTRACK_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setenv("DIVTRACK_OFFLINE", "1")
    monkeypatch.delenv("DIVTRACK_API_BASE_URL", raising=False)
    return tmp_path


def invoke(*args: str):
    from divtrack.cli import app

    return runner.invoke(app, list(args))


class TestCLIStructure:
    """Test that CLI commands are properly registered and accessible."""

    def test_cli_imports_without_error(self):
        from divtrack.cli import app
        assert app is not None

    def test_main_help(self):
        result = invoke("--help")
        assert result.exit_code == 0
        assert "Dividend portfolio tracker" in result.output

    @pytest.mark.parametrize("group", ["bank", "holding", "watch", "goal", "report", "cache"])
    def test_group_help(self, group):
        result = invoke(group, "--help")
        assert result.exit_code == 0

    @pytest.mark.parametrize("command", ["search", "price", "dividends", "metrics"])
    def test_top_level_commands_registered(self, command):
        result = invoke(command, "--help")
        assert result.exit_code == 0


class TestPortfolioFlow:
    def test_bank_and_holding_lifecycle(self, cli_env):
        result = invoke("bank", "add", "Cathay")
        assert result.exit_code == 0, result.output
        assert "Added bank" in result.output

        result = invoke("bank", "add", "Cathay")
        assert result.exit_code == 1
        assert "already exists" in result.output

        result = invoke("holding", "add", "Cathay", "2330", "100", "--price", "500", "--date", "2025-01-10")
        assert result.exit_code == 0, result.output
        assert "2330" in result.output

        result = invoke("holding", "add", "Cathay", "0050", "10")
        assert result.exit_code == 0, result.output

        assert invoke("holding", "list").exit_code == 0
        assert invoke("holding", "list", "--bank", "Cathay").exit_code == 0

        result = invoke("bank", "list")
        assert result.exit_code == 0
        assert "Cathay" in result.output

        assert invoke("bank", "show", "Cathay").exit_code == 0
        assert invoke("metrics", "--start", "2025-01-01").exit_code == 0

        result = invoke("bank", "delete", "Cathay", "--yes")
        assert result.exit_code == 0
        assert "2 holding(s)" in result.output

    def test_metrics_shows_top_payers_and_monthly_dividends(self, cli_env):
        invoke("bank", "add", "Cathay")
        invoke("holding", "add", "Cathay", "2330", "100", "--price", "500", "--date", "2025-01-10")

        result = invoke("metrics", "--start", "2025-01-01", "--end", "2025-12-31")
        assert result.exit_code == 0, result.output
        assert "Top dividend payers" in result.output
        assert "Monthly dividends" in result.output
        assert "TSMC" in result.output

    def test_unknown_bank_is_an_error(self, cli_env):
        result = invoke("holding", "add", "Nope", "2330", "10")
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_bad_date_is_rejected(self, cli_env):
        invoke("bank", "add", "A")
        result = invoke("holding", "add", "A", "2330", "10", "--date", "10/01/2025")
        assert result.exit_code != 0


class TestWatchAndMarket:
    def test_watchlist_commands(self, cli_env):
        result = invoke("watch", "add", "2330")
        assert result.exit_code == 0, result.output
        assert "Watching" in result.output

        result = invoke("watch", "add", "2330")
        assert result.exit_code == 1
        assert "already in the watchlist" in result.output

        assert invoke("watch", "new-list", "Income").exit_code == 0
        result = invoke("watch", "lists")
        assert "Income" in result.output

        assert invoke("watch", "show").exit_code == 0
        assert invoke("watch", "delete-list", "Income", "--yes").exit_code == 0
        assert invoke("watch", "delete-list", "Watchlist 1", "--yes").exit_code == 1

    def test_search_and_price(self, cli_env):
        result = invoke("search", "tsmc")
        assert result.exit_code == 0
        assert "2330" in result.output

        result = invoke("price", "2330", "--date", "2025-03-03")
        assert result.exit_code == 0, result.output
        assert "TSMC" in result.output

        result = invoke("price", "2330", "--json")
        assert result.exit_code == 0
        assert "stock_info" in result.output

        assert invoke("dividends", "2330", "--years", "1").exit_code == 0


class TestGoalsReportsCache:
    def test_goal_commands(self, cli_env):
        result = invoke("goal", "calc", "1000000", "--years", "10")
        assert result.exit_code == 0, result.output
        assert "Assumed return" in result.output

        assert invoke("goal", "calc", "1000000", "--years", "0").exit_code == 1

        assert invoke("goal", "save", "House", "1000000").exit_code == 0
        result = invoke("goal", "list")
        assert "House" in result.output
        assert invoke("goal", "update", "House", "50000").exit_code == 0
        assert invoke("goal", "show", "House").exit_code == 0
        assert invoke("goal", "delete", "House").exit_code == 0

    def test_report_csv(self, cli_env):
        invoke("bank", "add", "A")
        invoke("holding", "add", "A", "2330", "10", "--price", "500", "--date", "2025-01-10")

        out = cli_env / "reports" / "returns.csv"
        result = invoke("report", "returns", "--start", "2025-01-01", "--end", "2025-03-01", "--csv", str(out))
        assert result.exit_code == 0, result.output
        assert out.exists()
        assert out.read_text().splitlines()[0] == "date,percentage,amount"

        assert invoke("report", "yield", "--range", "3m").exit_code == 0
        assert invoke("report", "yield", "--range", "2w").exit_code != 0

    def test_cache_commands(self, cli_env):
        result = invoke("cache", "status")
        assert result.exit_code == 0
        assert "offline" in result.output
        assert invoke("cache", "clear").exit_code == 0
