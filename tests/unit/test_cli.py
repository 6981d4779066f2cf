"""Tests for CLI commands using Click's CliRunner."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from baselinecheck.cli import main


@pytest.fixture
def in_tmp(tmp_path: Path, monkeypatch) -> Path:
    """Run commands from tmp_path so default cache/analytics dirs land there."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("BASELINE_CHECK_CACHE_DIR", raising=False)
    monkeypatch.delenv("BASELINE_CHECK_ANALYTICS_DIR", raising=False)
    return tmp_path


def test_main_help():
    runner = CliRunner()
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "Baseline Check" in result.output
    for command in ("scan", "rules", "cache", "trends", "init"):
        assert command in result.output


def test_main_version():
    runner = CliRunner()
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_scan_help():
    runner = CliRunner()
    result = runner.invoke(main, ["scan", "--help"])
    assert result.exit_code == 0
    assert "--paths" in result.output
    assert "--no-cache" in result.output


class TestScanCommand:
    def test_writes_report(self, in_tmp: Path, web_project: Path):
        runner = CliRunner()
        result = runner.invoke(
            main, ["scan", "--paths", str(web_project), "--out", "out/report.json"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads((in_tmp / "out" / "report.json").read_text())
        names = [d["feature"] for d in data["detected"]]
        assert "window.fetch" in names
        assert "css.grid" in names
        assert (in_tmp / ".baseline-cache").is_dir()
        assert (in_tmp / ".baseline-analytics" / "aggregated.json").is_file()

    def test_no_cache_no_trends(self, in_tmp: Path, web_project: Path):
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["scan", "-p", str(web_project), "-o", "r.json", "--no-cache", "--no-trends"],
        )
        assert result.exit_code == 0, result.output
        assert (in_tmp / "r.json").is_file()
        assert not (in_tmp / ".baseline-cache").exists()
        assert not (in_tmp / ".baseline-analytics").exists()

    def test_cached_scan_writes_each_output(self, in_tmp: Path, web_project: Path):
        runner = CliRunner()
        first = runner.invoke(main, ["scan", "-p", str(web_project), "-o", "one.json"])
        assert first.exit_code == 0, first.output
        second = runner.invoke(main, ["scan", "-p", str(web_project), "-o", "two.json"])
        assert second.exit_code == 0, second.output
        assert "Generated baseline report: two.json" in second.output

        one = json.loads((in_tmp / "one.json").read_text())
        two = json.loads((in_tmp / "two.json").read_text())
        assert two["detected"] == one["detected"]

    def test_missing_path_fails(self, in_tmp: Path):
        runner = CliRunner()
        result = runner.invoke(main, ["scan", "--paths", "does-not-exist"])
        assert result.exit_code == 1
        assert "does not exist" in result.output
        assert not (in_tmp / "baseline-report.json").exists()

    def test_preset_option(self, in_tmp: Path, web_project: Path):
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["scan", "-p", str(web_project), "-o", "r.json", "--preset", "minimal", "--no-trends"],
        )
        assert result.exit_code == 0, result.output
        data = json.loads((in_tmp / "r.json").read_text())
        names = {d["feature"] for d in data["detected"]}
        assert "CSS Container Queries" not in names
        assert "css.container_queries" in names

    def test_uses_config_file(self, in_tmp: Path, web_project: Path, sample_config_path: Path):
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["--config", str(sample_config_path), "scan", "-p", str(web_project), "-o", "r.json"],
        )
        assert result.exit_code == 0, result.output
        data = json.loads((in_tmp / "r.json").read_text())
        files = {f for d in data["detected"] for f in d["files"]}
        # Sample config only scans JS and CSS
        assert not any(f.endswith(".html") for f in files)
        assert data["metadata"]["config"]["performance"]["maxFileSize"] == 2048


class TestRulesCommand:
    def test_stats(self):
        runner = CliRunner()
        result = runner.invoke(main, ["rules", "--stats"])
        assert result.exit_code == 0
        assert "built-in rules" in result.output
        assert "core" in result.output

    def test_lists_rules(self, in_tmp: Path):
        runner = CliRunner()
        result = runner.invoke(main, ["rules", "--preset", "react"])
        assert result.exit_code == 0, result.output
        assert "Active rules" in result.output


class TestCacheCommands:
    def test_stats_and_clear(self, in_tmp: Path):
        cache_dir = in_tmp / ".baseline-cache"
        cache_dir.mkdir()
        (cache_dir / "abc.json").write_text("{}")

        runner = CliRunner()
        result = runner.invoke(main, ["cache", "stats"])
        assert result.exit_code == 0
        assert "1 entries" in result.output

        result = runner.invoke(main, ["cache", "clear"])
        assert result.exit_code == 0
        assert not cache_dir.exists()


class TestTrendsCommand:
    def test_no_data(self, in_tmp: Path):
        runner = CliRunner()
        result = runner.invoke(main, ["trends"])
        assert result.exit_code == 0
        assert "No analytics data" in result.output

    def test_markdown_after_scan(self, in_tmp: Path, web_project: Path):
        runner = CliRunner()
        runner.invoke(main, ["scan", "-p", str(web_project), "-o", "r.json"])
        result = runner.invoke(main, ["trends", "--markdown"])
        assert result.exit_code == 0
        assert "# Baseline Check Analytics Report" in result.output


class TestInitCommand:
    def test_creates_then_refuses(self, in_tmp: Path):
        runner = CliRunner()
        result = runner.invoke(main, ["init"])
        assert result.exit_code == 0
        assert (in_tmp / "baseline-check.yaml").is_file()

        result = runner.invoke(main, ["init"])
        assert result.exit_code == 1
