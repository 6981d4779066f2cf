"""Tests for the fingerprint cache."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from baselinecheck.cache import MAX_AGE_MS, CacheStats, FingerprintCache, format_bytes
from baselinecheck.scanner.models import FeatureResult, Report, ReportMetadata

NOW = 1_700_000_000_000


@pytest.fixture
def cache(tmp_path: Path) -> FingerprintCache:
    return FingerprintCache(tmp_path / "cache")


@pytest.fixture
def report() -> Report:
    return Report(
        metadata=ReportMetadata(
            scanned_files=2,
            processed_files=2,
            error_count=0,
            skipped_files=0,
            generated_at="2024-01-01T00:00:00+00:00",
        ),
        detected=(FeatureResult("css.grid", ("a.css",)),),
    )


class TestKey:
    def test_deterministic(self):
        config = {"patterns": ["**/*.js"], "performance": {"maxFileSize": 1}}
        assert FingerprintCache.key(["src"], config) == FingerprintCache.key(
            ["src"], dict(reversed(list(config.items())))
        )

    def test_depends_on_paths_and_config(self):
        base = FingerprintCache.key(["src"], {"a": 1})
        assert FingerprintCache.key(["lib"], {"a": 1}) != base
        assert FingerprintCache.key(["src"], {"a": 2}) != base

    def test_file_key_changes_with_content(self, tmp_path: Path):
        path = tmp_path / "a.js"
        path.write_text("one")
        first = FingerprintCache.file_key(path, "one")
        assert FingerprintCache.file_key(path, "two") != first


class TestGetSet:
    def test_miss(self, cache: FingerprintCache):
        assert cache.get("nope") is None

    def test_round_trip(self, cache: FingerprintCache, report: Report):
        cache.set("k", report, now_ms=NOW)
        assert cache.get("k", now_ms=NOW + 1000) == report

    def test_entry_layout(self, cache: FingerprintCache, report: Report):
        cache.set("k", report, now_ms=NOW)
        entry = json.loads((cache.cache_dir / "k.json").read_text())
        assert entry["timestamp"] == NOW
        assert entry["data"]["detected"][0]["feature"] == "css.grid"

    def test_stale_entry_is_ignored_but_kept(
        self, cache: FingerprintCache, report: Report
    ):
        cache.set("k", report, now_ms=NOW)
        assert cache.get("k", now_ms=NOW + MAX_AGE_MS) == report
        assert cache.get("k", now_ms=NOW + MAX_AGE_MS + 1) is None
        assert (cache.cache_dir / "k.json").exists()

    @pytest.mark.parametrize(
        "payload",
        [
            "{not json",
            "[]",
            '{"timestamp": 1}',
            '{"timestamp": "soon", "data": {}}',
            '{"timestamp": 1, "data": {"metadata": {}}}',
        ],
    )
    def test_corrupt_entry_is_a_miss(self, cache: FingerprintCache, payload: str):
        cache.cache_dir.mkdir(parents=True)
        (cache.cache_dir / "bad.json").write_text(payload)
        assert cache.get("bad", now_ms=NOW) is None

    def test_set_replaces_entry(self, cache: FingerprintCache, report: Report):
        cache.set("k", report, now_ms=NOW)
        empty = Report(metadata=report.metadata)
        cache.set("k", empty, now_ms=NOW)
        assert cache.get("k", now_ms=NOW) == empty
        assert [p.name for p in cache.cache_dir.iterdir()] == ["k.json"]


class TestMaintenance:
    def test_stats_on_missing_dir(self, cache: FingerprintCache):
        assert cache.stats() == CacheStats(files=0, total_bytes=0)
        assert cache.stats().formatted == "0 Bytes"

    def test_stats_counts_entries(self, cache: FingerprintCache, report: Report):
        cache.set("a", report, now_ms=NOW)
        cache.set("b", report, now_ms=NOW)
        stats = cache.stats()
        assert stats.files == 2
        assert stats.total_bytes == sum(
            p.stat().st_size for p in cache.cache_dir.iterdir()
        )

    def test_invalidate_all(self, cache: FingerprintCache, report: Report):
        cache.set("a", report, now_ms=NOW)
        cache.invalidate_all()
        assert not cache.cache_dir.exists()
        assert cache.get("a", now_ms=NOW) is None
        # Idempotent on a missing directory
        cache.invalidate_all()


@pytest.mark.parametrize(
    ("size", "expected"),
    [
        (0, "0 Bytes"),
        (512, "512 Bytes"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (1024 * 1024, "1 MB"),
        (5 * 1024**3, "5 GB"),
    ],
)
def test_format_bytes(size: int, expected: str):
    assert format_bytes(size) == expected
