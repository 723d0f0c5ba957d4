"""Tests for CLI entry points and the dashboard runner."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from vantage.cli.main import vantage_cli
from vantage.core.runner import initialize_project, run_dashboard


class TestDashboardCommand:
    @patch("vantage.core.runner.run_dashboard", new_callable=AsyncMock)
    def test_passes_options(self, mock_run, tmp_path):
        mock_run.return_value = 0
        runner = CliRunner()
        result = runner.invoke(vantage_cli, [
            "dashboard", "-p", str(tmp_path),
            "--framework", "SOC2", "--range-days", "120", "-f", "markdown",
        ])
        assert result.exit_code == 0
        kwargs = mock_run.call_args.kwargs
        assert kwargs["framework"] == "SOC2"
        assert kwargs["range_days"] == "120"
        assert kwargs["output_format"] == "markdown"

    @patch("vantage.core.runner.run_dashboard", new_callable=AsyncMock)
    def test_exit_code_propagates(self, mock_run, tmp_path):
        mock_run.return_value = 1
        result = CliRunner().invoke(vantage_cli, ["dashboard", "-p", str(tmp_path)])
        assert result.exit_code == 1

    def test_snapshot_and_endpoint_conflict(self, tmp_path):
        result = CliRunner().invoke(vantage_cli, [
            "dashboard", "-p", str(tmp_path), "--snapshot", "a.json", "--endpoint", "https://x",
        ])
        assert result.exit_code == 11

    def test_writes_json_file(self, initialized_project: Path):
        out = initialized_project / "out" / "dashboard.json"
        result = CliRunner().invoke(vantage_cli, [
            "dashboard", "-p", str(initialized_project),
            "--now", "2026-06-15T12:00:00Z", "-o", str(out), "--quiet",
        ])
        assert result.exit_code == 0
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["ok"] is True
        assert data["metrics"]["coveragePercent"] == 40
        assert data["appliedFilters"]["framework"] == "ISO27001"
        assert len(data["trendsV2"]["labels"]) == 90

    def test_missing_snapshot_is_unavailable(self, tmp_project: Path):
        result = CliRunner().invoke(vantage_cli, ["dashboard", "-p", str(tmp_project), "--quiet"])
        assert result.exit_code == 1


class TestInitCommand:
    @patch("vantage.core.runner.initialize_project")
    def test_init_subcommand(self, mock_init, tmp_path):
        result = CliRunner().invoke(vantage_cli, ["init", "-p", str(tmp_path)])
        assert result.exit_code == 0
        mock_init.assert_called_once()

    def test_initialize_creates_config(self, tmp_project: Path):
        initialize_project(tmp_project)
        config = (tmp_project / ".vantage" / "config.yaml").read_text(encoding="utf-8")
        assert 'name: "test-project"' in config

    def test_initialize_keeps_existing_config(self, initialized_project: Path):
        config_path = initialized_project / ".vantage" / "config.yaml"
        before = config_path.read_text(encoding="utf-8")
        initialize_project(initialized_project)
        assert config_path.read_text(encoding="utf-8") == before


class TestRunDashboard:
    @pytest.mark.asyncio
    async def test_markdown_output(self, initialized_project: Path):
        out = initialized_project / "dashboard.md"
        code = await run_dashboard(
            initialized_project,
            now="2026-06-15T12:00:00Z",
            output_format="markdown",
            output_path=out,
            quiet=True,
        )
        assert code == 0
        report = out.read_text(encoding="utf-8")
        assert report.startswith("# Compliance Dashboard")
        assert "**Framework:** ISO27001" in report

    @pytest.mark.asyncio
    async def test_invalid_now(self, initialized_project: Path):
        code = await run_dashboard(initialized_project, now="yesterday", quiet=True)
        assert code == 11

    @pytest.mark.asyncio
    async def test_missing_project(self, tmp_path: Path):
        code = await run_dashboard(tmp_path / "nope", quiet=True)
        assert code == 11

    @pytest.mark.asyncio
    async def test_unknown_source_type(self, initialized_project: Path):
        (initialized_project / ".vantage" / "config.yaml").write_text(
            "source:\n  type: ftp\n", encoding="utf-8"
        )
        code = await run_dashboard(initialized_project, quiet=True)
        assert code == 11

    @pytest.mark.asyncio
    async def test_explicit_snapshot_path(self, initialized_project: Path, tmp_path: Path):
        other = tmp_path / "other.yaml"
        other.write_text("frameworks: []\n", encoding="utf-8")
        out = tmp_path / "out.json"
        code = await run_dashboard(
            initialized_project, snapshot_path=str(other), output_path=out, quiet=True,
        )
        assert code == 0
        assert json.loads(out.read_text(encoding="utf-8"))["metrics"]["totalControls"] == 0
