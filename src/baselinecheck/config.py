"""Scan configuration — YAML files, env vars, defaults."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from baselinecheck.rules.loader import parse_rules
from baselinecheck.rules.models import Rule
from baselinecheck.rules.presets import DetectorOptions, resolve_options
from baselinecheck.rules.registry import RuleSet

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = (
    "baseline-check.yaml",
    "baseline-check.yml",
    ".baseline-check.yaml",
    ".baseline-check.yml",
)

DEFAULT_PATTERNS: tuple[str, ...] = (
    "**/*.{js,ts,tsx,jsx,css,html}",
    "**/*.vue",
    "**/*.svelte",
)

DEFAULT_IGNORE: tuple[str, ...] = (
    "**/node_modules/**",
    "**/dist/**",
    "**/build/**",
    "**/.git/**",
    "**/coverage/**",
    "**/.next/**",
    "**/out/**",
)

DEFAULT_BROWSERS: tuple[str, ...] = ("chrome", "firefox", "safari", "edge")


@dataclass(frozen=True)
class BaselineSettings:
    """Browser support thresholds, consumed by the compatibility check."""

    min_browsers: int = 3
    browsers: tuple[str, ...] = DEFAULT_BROWSERS


@dataclass(frozen=True)
class PerformanceSettings:
    max_file_size: int = 1024 * 1024
    concurrent_files: int = 10
    cache_results: bool = True


@dataclass(frozen=True)
class ScanConfig:
    """Everything that shapes one scan."""

    patterns: tuple[str, ...] = DEFAULT_PATTERNS
    ignore: tuple[str, ...] = DEFAULT_IGNORE
    detector: DetectorOptions = field(default_factory=DetectorOptions)
    baseline: BaselineSettings = field(default_factory=BaselineSettings)
    performance: PerformanceSettings = field(default_factory=PerformanceSettings)
    cache_dir: Path = Path(".baseline-cache")
    analytics_dir: Path = Path(".baseline-analytics")
    record_trends: bool = True
    source: str = ""

    @property
    def custom_rules(self) -> tuple[Rule, ...]:
        return self.detector.custom_rules

    @classmethod
    def load(cls, path: str | Path | None = None) -> ScanConfig:
        """Load config from *path* (or a discovered file) plus env overrides.

        A missing or unreadable file yields the defaults; problems are
        logged, never raised.
        """
        if path is None:
            path = find_config_file()

        config = cls()
        if path is not None:
            data = _read_yaml(Path(path))
            if data is not None:
                config = from_mapping(data, source=str(path))

        env_cache = os.environ.get("BASELINE_CHECK_CACHE_DIR")
        if env_cache:
            config = replace(config, cache_dir=Path(env_cache))
        env_analytics = os.environ.get("BASELINE_CHECK_ANALYTICS_DIR")
        if env_analytics:
            config = replace(config, analytics_dir=Path(env_analytics))
        return config

    def with_overrides(self, **changes: Any) -> ScanConfig:
        return replace(self, **changes)

    def report_snapshot(self) -> dict:
        """The subset of config echoed into report metadata."""
        return {
            "patterns": list(self.patterns),
            "ignore": list(self.ignore),
            "performance": {
                "maxFileSize": self.performance.max_file_size,
                "concurrentFiles": self.performance.concurrent_files,
                "cacheResults": self.performance.cache_results,
            },
        }

    def fingerprint_snapshot(self) -> dict:
        """Everything that can change a scan's result, as plain data.

        Custom rules are described by pattern and flags so that editing a
        rule changes the cache key.
        """
        return {
            **self.report_snapshot(),
            "detector": self.detector.snapshot(),
            "features": RuleSet(self.detector.custom_rules).snapshot(),
            "baseline": {
                "minBrowsers": self.baseline.min_browsers,
                "browsers": list(self.baseline.browsers),
            },
        }


def find_config_file(directory: str | Path = ".") -> Path | None:
    for name in CONFIG_FILENAMES:
        candidate = Path(directory) / name
        if candidate.is_file():
            return candidate
    return None


def _read_yaml(path: Path) -> dict | None:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Could not load config from %s: %s", path, e)
        return None
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Config %s must be a mapping, using defaults", path)
        return None
    return data


def from_mapping(data: dict, source: str = "") -> ScanConfig:
    """Merge a user config mapping over the defaults.

    ``patterns`` replaces the defaults, ``ignore`` extends them, and the
    ``baseline``/``performance`` sections merge key by key.
    """
    defaults = ScanConfig()
    changes: dict[str, Any] = {"source": source}

    patterns = data.get("patterns")
    if patterns is not None:
        if isinstance(patterns, list) and patterns:
            changes["patterns"] = tuple(str(p) for p in patterns)
        else:
            logger.warning("Config 'patterns' must be a non-empty list, using defaults")

    ignore = data.get("ignore")
    if ignore is not None:
        if isinstance(ignore, list):
            extra = [str(p) for p in ignore if str(p) not in DEFAULT_IGNORE]
            changes["ignore"] = DEFAULT_IGNORE + tuple(extra)
        else:
            logger.warning("Config 'ignore' must be a list, using defaults")

    baseline = _section(data, "baseline")
    if baseline:
        browsers = baseline.get("browsers", defaults.baseline.browsers)
        changes["baseline"] = BaselineSettings(
            min_browsers=_as_int(
                baseline.get("min_browsers", baseline.get("minBrowsers")),
                defaults.baseline.min_browsers,
            ),
            browsers=tuple(browsers) if isinstance(browsers, list) else browsers,
        )

    performance = _section(data, "performance")
    if performance:
        base = defaults.performance
        changes["performance"] = PerformanceSettings(
            max_file_size=_as_int(
                performance.get("max_file_size", performance.get("maxFileSize")),
                base.max_file_size,
            ),
            concurrent_files=_as_int(
                performance.get("concurrent_files", performance.get("concurrentFiles")),
                base.concurrent_files,
            ),
            cache_results=bool(
                performance.get(
                    "cache_results", performance.get("cacheResults", base.cache_results)
                )
            ),
        )

    detector = _section(data, "detector")
    preset = detector.pop("preset", None) or data.get("feature_preset") or "default"
    changes["detector"] = resolve_options(
        preset=str(preset),
        options=detector,
        custom_rules=tuple(parse_rules(data.get("features"))),
    )

    if "cache_dir" in data:
        changes["cache_dir"] = Path(str(data["cache_dir"]))
    if "analytics_dir" in data:
        changes["analytics_dir"] = Path(str(data["analytics_dir"]))
    if "record_trends" in data:
        changes["record_trends"] = bool(data["record_trends"])

    return replace(defaults, **changes)


def _section(data: dict, key: str) -> dict:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        logger.warning("Config %r must be a mapping, ignoring it", key)
        return {}
    return dict(value)


def _as_int(value: Any, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Expected a number, got %r; using %d", value, default)
        return default


def validate_config(config: ScanConfig) -> list[str]:
    """Return human-readable config problems. Empty means valid."""
    errors: list[str] = []
    if not config.patterns:
        errors.append("patterns must be a non-empty list")
    if not isinstance(config.baseline.browsers, tuple):
        errors.append("baseline.browsers must be a list")
    if config.baseline.min_browsers < 1:
        errors.append("baseline.min_browsers must be a positive number")
    if config.performance.max_file_size <= 0:
        errors.append("performance.max_file_size must be positive")
    if config.performance.concurrent_files <= 0:
        errors.append("performance.concurrent_files must be positive")
    return errors


DEFAULT_CONFIG_TEMPLATE = """\
# Baseline Check configuration

# File patterns to scan
patterns:
  - "**/*.{js,ts,tsx,jsx,css,html}"
  - "**/*.vue"
  - "**/*.svelte"

# Extra ignore patterns (added to the built-in list)
ignore:
  - "**/coverage/**"

# Which rule groups to enable
detector:
  preset: default          # default, minimal, modern, react, vue, angular, pwa
  # frameworks: [react]
  # categories: [api, css]
  # disable: ["Private Fields"]

# Custom feature detection rules
features: {}
  # custom-feature:
  #   re: "/customPattern/g"
  #   category: api

# Browser support thresholds
baseline:
  min_browsers: 3
  browsers: [chrome, firefox, safari, edge]

# Performance settings
performance:
  max_file_size: 1048576   # 1 MB
  concurrent_files: 10
  cache_results: true
"""


def create_default_config_file(path: str | Path = "baseline-check.yaml") -> bool:
    """Write the starter config. Returns False if it exists or cannot be written."""
    path = Path(path)
    if path.exists():
        logger.warning("Config file %s already exists", path)
        return False
    try:
        path.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    except OSError as e:
        logger.error("Failed to create config file: %s", e)
        return False
    return True
