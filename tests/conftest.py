"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from baselinecheck.config import PerformanceSettings, ScanConfig


@pytest.fixture
def fixtures_dir() -> Path:
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_config_path(fixtures_dir: Path) -> Path:
    return fixtures_dir / "baseline-check.yaml"


@pytest.fixture
def scan_config(tmp_path: Path) -> ScanConfig:
    """Default config with cache and trends pointed into tmp_path."""
    return ScanConfig(
        cache_dir=tmp_path / "cache",
        analytics_dir=tmp_path / "analytics",
        record_trends=False,
        performance=PerformanceSettings(cache_results=False),
    )


@pytest.fixture
def web_project(tmp_path: Path) -> Path:
    """A small tree with JS, CSS and HTML sources plus an ignored folder."""
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "styles").mkdir()
    (root / "node_modules" / "lib").mkdir(parents=True)

    (root / "src" / "api.js").write_text(
        "fetch('/api/data').then((r) => r.json());\n"
        "const ws = new WebSocket('ws://localhost:8080');\n"
        "navigator.clipboard.writeText('copied');\n"
        "const value = obj?.property?.value;\n"
        "const name = user.name ?? 'Anonymous';\n"
    )
    (root / "styles" / "layout.css").write_text(
        ".container {\n"
        "  display: grid;\n"
        "  color: var(--custom-property);\n"
        "}\n"
        ".element:has(.child) { color: red; }\n"
        "@container (min-width: 300px) {\n"
        "  .item { font-size: clamp(1rem, 2vw, 2rem); }\n"
        "}\n"
    )
    (root / "index.html").write_text(
        "<!DOCTYPE html>\n<html>\n<body>\n"
        '  <dialog id="modal">Content</dialog>\n'
        "  <details><summary>More</summary><p>Body</p></details>\n"
        "</body>\n</html>\n"
    )
    (root / "node_modules" / "lib" / "index.js").write_text("fetch('/vendored');\n")
    return root
