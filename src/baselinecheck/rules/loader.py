"""Load custom detection rules from config mappings."""

from __future__ import annotations

import logging
import re
from typing import Any

from baselinecheck.rules.models import Category, PatternRule, Rule

logger = logging.getLogger(__name__)

_SLASHED = re.compile(r"^/(?P<body>.*)/(?P<flags>[a-z]*)$", re.DOTALL)

_FLAG_MAP = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
}


def parse_pattern(text: str) -> PatternRule:
    """Compile a rule pattern.

    Accepts a bare regex or the ``/body/flags`` form. Only ``i``, ``m`` and
    ``s`` change matching; ``g``, ``u`` and ``y`` are accepted and ignored.
    Raises ``re.error`` for an invalid pattern.
    """
    flags = 0
    m = _SLASHED.match(text)
    if m:
        text = m.group("body")
        for ch in m.group("flags"):
            flags |= _FLAG_MAP.get(ch, 0)
    if not text:
        raise re.error("empty pattern")
    return PatternRule.compile(text, flags)


def parse_rules(features: Any) -> list[Rule]:
    """Turn the ``features`` config mapping into rules.

    Entries that are not mappings, have no pattern or fail to compile are
    skipped with a warning.
    """
    if not features:
        return []
    if not isinstance(features, dict):
        logger.warning("Config 'features' must be a mapping, ignoring it")
        return []

    rules: list[Rule] = []
    for name, data in features.items():
        if not isinstance(data, dict):
            logger.warning("Skipping feature %r: expected a mapping", name)
            continue
        raw = data.get("re", data.get("pattern"))
        if not isinstance(raw, str):
            logger.warning("Skipping feature %r - invalid regex pattern", name)
            continue
        try:
            matcher = parse_pattern(raw)
        except re.error as e:
            logger.warning("Skipping feature %r - invalid regex pattern: %s", name, e)
            continue

        file_types = data.get("file_types", ())
        if isinstance(file_types, str):
            file_types = (file_types,)

        rules.append(
            Rule(
                name=str(name),
                matcher=matcher,
                category=Category.parse(data.get("category") or Category.CUSTOM),
                framework=data.get("framework", ""),
                description=data.get("description", ""),
                file_types=frozenset(file_types),
            )
        )
    return rules
