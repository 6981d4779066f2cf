"""End-to-end tests for the scan pipeline."""

from __future__ import annotations

import asyncio
import json
from dataclasses import replace
from pathlib import Path

import pytest

from baselinecheck.analytics.trends import TrendStore
from baselinecheck.cache import FingerprintCache
from baselinecheck.config import PerformanceSettings, ScanConfig
from baselinecheck.errors import OutputWriteError, ScanCancelled, ScanPathError
from baselinecheck.rules.presets import resolve_options
from baselinecheck.scanner.pipeline import ScanPipeline, scan, split_paths


def _cached(config: ScanConfig) -> ScanConfig:
    return replace(config, performance=PerformanceSettings(cache_results=True))


def test_split_paths():
    assert split_paths("src, lib,") == ["src", "lib"]
    assert split_paths("") == ["."]
    assert split_paths(["a", " "]) == ["a"]


class TestScan:
    def test_single_css_file(self, tmp_path: Path, scan_config: ScanConfig):
        root = tmp_path / "site"
        root.mkdir()
        (root / "a.css").write_text(".layout { display: grid; }")
        (root / "b.css").write_text(".plain { margin: 0; }")
        config = replace(scan_config, patterns=("**/*.css",), ignore=())

        report = scan([str(root)], config, out=tmp_path / "report.json")

        assert report.feature_names == ["css.grid"]
        assert report.detected[0].files == (str(root / "a.css"),)
        assert report.metadata.scanned_files == 2
        assert report.metadata.processed_files == 2
        assert report.metadata.error_count == 0

    def test_web_project_core_features(self, web_project: Path, scan_config: ScanConfig):
        report = scan([str(web_project)], scan_config, out=None)
        names = set(report.feature_names)
        assert {
            "window.fetch",
            "WebSocket",
            "navigator.clipboard.writeText",
            "Optional chaining",
            "Nullish coalescing",
            "css.grid",
            "css.custom_properties",
            "css.has_pseudo",
            "css.container_queries",
            "css.clamp",
            "dialog.element",
            "details.element",
            "summary.element",
        } <= names
        # node_modules is ignored
        fetch = report.feature("window.fetch")
        assert fetch.files == (str(web_project / "src" / "api.js"),)

    def test_writes_report_json(self, web_project: Path, scan_config: ScanConfig, tmp_path: Path):
        out = tmp_path / "nested" / "report.json"
        report = scan([str(web_project)], scan_config, out=out)
        data = json.loads(out.read_text())
        assert data["metadata"]["scannedFiles"] == 3
        assert data["metadata"]["config"]["performance"]["cacheResults"] is False
        assert [d["feature"] for d in data["detected"]] == report.feature_names

    def test_idempotent(self, web_project: Path, scan_config: ScanConfig):
        first = scan([str(web_project)], scan_config, out=None)
        second = scan([str(web_project)], scan_config, out=None)
        assert first.detected == second.detected

    def test_empty_tree(self, tmp_path: Path, scan_config: ScanConfig):
        empty = tmp_path / "empty"
        empty.mkdir()
        report = scan([str(empty)], scan_config, out=None)
        assert report.detected == ()
        assert report.metadata.scanned_files == 0

    def test_oversized_files_are_skipped(self, tmp_path: Path, scan_config: ScanConfig):
        root = tmp_path / "big"
        root.mkdir()
        (root / "huge.js").write_text("fetch(x);" + " " * 200)
        (root / "small.js").write_text("new WebSocket(u);")
        config = replace(
            scan_config,
            performance=PerformanceSettings(max_file_size=100, cache_results=False),
        )
        report = scan([str(root)], config, out=None)
        assert report.metadata.skipped_files == 1
        assert report.feature("window.fetch") is None
        assert report.feature("WebSocket") is not None


class TestErrors:
    def test_missing_root(self, tmp_path: Path, scan_config: ScanConfig):
        out = tmp_path / "report.json"
        with pytest.raises(ScanPathError, match="does not exist"):
            scan([str(tmp_path / "nope")], scan_config, out=out)
        assert not out.exists()

    def test_unwritable_output(self, web_project: Path, scan_config: ScanConfig):
        blocker = web_project / "index.html"
        with pytest.raises(OutputWriteError):
            scan([str(web_project)], scan_config, out=blocker / "report.json")

    def test_cancelled_scan_writes_nothing(
        self, web_project: Path, scan_config: ScanConfig, tmp_path: Path
    ):
        out = tmp_path / "report.json"
        cancel = asyncio.Event()
        cancel.set()
        pipeline = ScanPipeline(config=scan_config)
        with pytest.raises(ScanCancelled):
            asyncio.run(pipeline.run([str(web_project)], out=out, cancel=cancel))
        assert not out.exists()


class TestCache:
    def test_hit_returns_previous_report(self, web_project: Path, scan_config: ScanConfig):
        config = _cached(scan_config)
        first = scan([str(web_project)], config, out=None)

        # Unchanged roots and config reuse the entry even if files change
        (web_project / "src" / "api.js").write_text("requestIdleCallback(fn);\n")
        second = scan([str(web_project)], config, out=None)
        assert second == first
        assert FingerprintCache(config.cache_dir).stats().files == 1

    def test_hit_writes_output(
        self, web_project: Path, scan_config: ScanConfig, tmp_path: Path
    ):
        config = _cached(scan_config)
        first = scan([str(web_project)], config, out=tmp_path / "one.json")
        out = tmp_path / "two.json"
        second = scan([str(web_project)], config, out=out)
        assert second == first
        data = json.loads(out.read_text())
        assert [d["feature"] for d in data["detected"]] == first.feature_names

    def test_config_change_misses(self, web_project: Path, scan_config: ScanConfig):
        config = _cached(scan_config)
        scan([str(web_project)], config, out=None)
        (web_project / "src" / "api.js").write_text("requestIdleCallback(fn);\n")

        changed = replace(config, detector=resolve_options("minimal"))
        report = scan([str(web_project)], changed, out=None)
        assert report.feature("requestIdleCallback") is not None
        assert FingerprintCache(config.cache_dir).stats().files == 2

    def test_disabled_cache_writes_nothing(self, web_project: Path, scan_config: ScanConfig):
        scan([str(web_project)], scan_config, out=None)
        assert not scan_config.cache_dir.exists()


class TestTrends:
    def test_records_scan(self, web_project: Path, scan_config: ScanConfig):
        config = replace(scan_config, record_trends=True)
        scan([str(web_project)], config, out=None)
        trends = TrendStore(config.analytics_dir).get_trends()
        assert trends is not None
        assert trends.overall.total_scans == 1
        assert "window.fetch" in trends.overall.most_used_features

    def test_undated_history_starts_fresh(
        self, web_project: Path, scan_config: ScanConfig, tmp_path: Path
    ):
        config = replace(scan_config, record_trends=True)
        config.analytics_dir.mkdir()
        (config.analytics_dir / "aggregated.json").write_text(
            json.dumps({"overall": {"riskTrend": [{"date": "garbage", "score": 0.1}]}})
        )
        out = tmp_path / "report.json"
        report = scan([str(web_project)], config, out=out)
        assert report.feature("window.fetch") is not None
        assert out.is_file()
        trends = TrendStore(config.analytics_dir).get_trends()
        assert trends.overall.total_scans == 1

    def test_disabled(self, web_project: Path, scan_config: ScanConfig):
        scan([str(web_project)], scan_config, out=None)
        assert not scan_config.analytics_dir.exists()

    def test_injected_store(self, web_project: Path, scan_config: ScanConfig, tmp_path: Path):
        store = TrendStore(tmp_path / "elsewhere")
        scan([str(web_project)], scan_config, out=None, trends=store)
        assert store.get_trends() is not None
