"""Detector options, named presets and the precedence that combines them."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any

from baselinecheck.rules.models import Rule

logger = logging.getLogger(__name__)

# Toggle name -> catalog group it enables
GROUP_TOGGLES: dict[str, str] = {
    "enable_modern_apis": "modern_apis",
    "enable_modern_css": "modern_css",
    "enable_modern_html": "modern_html",
    "enable_modern_js": "modern_js",
    "enable_pwa": "pwa",
    "enable_accessibility": "accessibility",
}


@dataclass(frozen=True)
class DetectorOptions:
    """Which rule groups make up the active rule set."""

    enable_modern_apis: bool = True
    enable_modern_css: bool = True
    enable_modern_html: bool = True
    enable_modern_js: bool = True
    enable_frameworks: bool = True
    enable_pwa: bool = True
    enable_accessibility: bool = True
    frameworks: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    disable: tuple[str, ...] = ()
    overrides: tuple[tuple[str, tuple[tuple[str, Any], ...]], ...] = ()
    custom_rules: tuple[Rule, ...] = field(default=(), compare=False)

    def enabled_groups(self) -> list[str]:
        return [group for attr, group in GROUP_TOGGLES.items() if getattr(self, attr)]

    def snapshot(self) -> dict:
        """Plain-data view used in cache keys and report metadata."""
        data = {
            f.name: getattr(self, f.name)
            for f in dataclasses.fields(self)
            if f.name not in ("custom_rules", "overrides")
        }
        data["frameworks"] = list(self.frameworks)
        data["categories"] = list(self.categories)
        data["disable"] = list(self.disable)
        data["overrides"] = {name: dict(patch) for name, patch in self.overrides}
        return data


_ALL_ON: dict[str, Any] = {
    "enable_modern_apis": True,
    "enable_modern_css": True,
    "enable_modern_html": True,
    "enable_modern_js": True,
    "enable_frameworks": True,
    "enable_pwa": True,
    "enable_accessibility": True,
}

PRESETS: dict[str, dict[str, Any]] = {
    "default": dict(_ALL_ON),
    "modern": dict(_ALL_ON),
    "minimal": {
        "enable_modern_apis": False,
        "enable_modern_css": False,
        "enable_modern_html": True,
        "enable_modern_js": True,
        "enable_frameworks": False,
        "enable_pwa": False,
        "enable_accessibility": False,
    },
    "react": {**_ALL_ON, "frameworks": ("react",)},
    "vue": {**_ALL_ON, "frameworks": ("vue",)},
    "angular": {**_ALL_ON, "frameworks": ("angular",)},
    "pwa": {
        "enable_modern_apis": True,
        "enable_modern_css": False,
        "enable_modern_html": True,
        "enable_modern_js": True,
        "enable_frameworks": False,
        "enable_pwa": True,
        "enable_accessibility": True,
    },
}


def resolve_options(
    preset: str = "default",
    options: dict[str, Any] | None = None,
    custom_rules: tuple[Rule, ...] = (),
) -> DetectorOptions:
    """Combine detector settings: defaults < preset < explicit options < custom rules.

    Unknown presets fall back to ``default``; unknown option keys are
    logged and ignored.
    """
    if preset not in PRESETS:
        logger.warning("Unknown feature preset %r, using 'default'", preset)
        preset = "default"

    known = {f.name for f in dataclasses.fields(DetectorOptions)} - {"custom_rules"}
    merged: dict[str, Any] = dict(PRESETS[preset])
    for key, value in (options or {}).items():
        if key not in known:
            logger.warning("Ignoring unknown detector option %r", key)
            continue
        merged[key] = value

    for key in ("frameworks", "categories", "disable"):
        if key in merged:
            merged[key] = _as_tuple(merged[key])
    if "overrides" in merged:
        merged["overrides"] = _as_overrides(merged["overrides"])

    return DetectorOptions(**merged, custom_rules=tuple(custom_rules))


def _as_tuple(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, (list, tuple, set, frozenset)):
        logger.warning("Expected a list of names, got %r; ignoring it", value)
        return ()
    return tuple(str(v) for v in value)


def _as_overrides(value: Any) -> tuple:
    if isinstance(value, tuple):
        return value
    if not isinstance(value, dict):
        logger.warning("Detector overrides must be a mapping, ignoring them")
        return ()
    overrides = []
    for name, patch in value.items():
        if not isinstance(patch, dict):
            logger.warning("Override for rule %r must be a mapping, ignoring it", name)
            continue
        items = sorted(patch.items(), key=lambda kv: str(kv[0]))
        overrides.append((str(name), tuple(items)))
    return tuple(overrides)
