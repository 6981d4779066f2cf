"""Rule registry — assembles the active rule set and matches it against content."""

from __future__ import annotations

import dataclasses
import logging
import re
from collections.abc import Iterable, Iterator
from types import MappingProxyType
from typing import Any

from baselinecheck.rules import catalog
from baselinecheck.rules.loader import parse_pattern
from baselinecheck.rules.models import (
    Category,
    DetectedFeature,
    Match,
    Matcher,
    PatternRule,
    Rule,
    file_type_of,
)
from baselinecheck.rules.presets import DetectorOptions

logger = logging.getLogger(__name__)

# Rule fields a patch may touch; the name is the registry key and stays fixed
_PATCHABLE = {"matcher", "category", "framework", "description", "file_types"}


class RuleSet:
    """An immutable, ordered collection of rules built for one scan.

    Safe to share between concurrent scans: neither the set nor its
    matchers carry per-call state.
    """

    def __init__(self, rules: Iterable[Rule]) -> None:
        self._rules: MappingProxyType[str, Rule] = MappingProxyType(
            {rule.name: rule for rule in rules}
        )

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules.values())

    def __contains__(self, name: object) -> bool:
        return name in self._rules

    def get(self, name: str) -> Rule | None:
        return self._rules.get(name)

    @property
    def names(self) -> list[str]:
        return list(self._rules)

    def match(self, content: str, file_type: str = "unknown") -> dict[str, list[Match]]:
        """Apply every applicable rule; return non-empty match lists by rule name.

        A rule that raises is logged and skipped so the remaining rules
        still run against this content.
        """
        found: dict[str, list[Match]] = {}
        for rule in self._rules.values():
            if rule.matcher is None or not rule.applies_to(file_type):
                continue
            try:
                matches = rule.matcher.find_all(content)
            except Exception as e:  # noqa: BLE001
                logger.warning("Error detecting feature %s: %s", rule.name, e)
                continue
            if matches:
                found[rule.name] = matches
        return found

    def detect(self, content: str, file_path: str = "") -> list[DetectedFeature]:
        """Match *content* and describe each detected feature in *file_path*."""
        file_type = file_type_of(file_path)
        detected: list[DetectedFeature] = []
        for name, matches in self.match(content, file_type).items():
            rule = self._rules[name]
            detected.append(
                DetectedFeature(
                    name=name,
                    category=rule.category_name,
                    file_path=file_path,
                    file_type=file_type,
                    matches=tuple(matches),
                    framework=rule.framework,
                    description=rule.description,
                )
            )
        return detected

    def validate(self) -> list[str]:
        return validate_rules(self._rules.values())

    def snapshot(self) -> list[dict]:
        """Describe the rules as plain data (for cache keys and listings)."""
        return [_describe(rule) for rule in self._rules.values()]


class RuleRegistry:
    """Mutable builder for a RuleSet.

    Usage:
        1. ``RuleRegistry.build(options)`` merges catalog groups
        2. Optionally ``add``/``remove``/``update`` rules by name
        3. ``freeze()`` produces the RuleSet handed to the scanner
    """

    def __init__(self, rules: Iterable[Rule] = ()) -> None:
        self._rules: dict[str, Rule] = {}
        for rule in rules:
            self._rules[rule.name] = rule

    @classmethod
    def build(cls, options: DetectorOptions | None = None) -> RuleRegistry:
        """Assemble the rules selected by *options*.

        Merge order, later wins by name: toggled catalog groups, framework
        rules, the core baseline rules, then custom rules. A non-empty
        ``categories`` list filters everything except custom rules. The
        ``overrides`` and ``disable`` lists are applied last.
        """
        options = options or DetectorOptions()
        registry = cls()

        for group in options.enabled_groups():
            registry._merge(catalog.rules_in_group(group))
        if options.enable_frameworks:
            for framework in options.frameworks:
                registry._merge(catalog.rules_for_framework(framework))
        registry._merge(catalog.CORE)

        if options.categories:
            allowed = set(options.categories)
            registry._rules = {
                name: rule
                for name, rule in registry._rules.items()
                if rule.category_name in allowed
            }

        for rule in options.custom_rules:
            registry.add(rule.name, rule)

        for name, patch in options.overrides:
            registry.update(name, dict(patch))
        for name in options.disable:
            registry.remove(name)

        logger.debug("Built rule registry with %d rules", len(registry))
        return registry

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, name: object) -> bool:
        return name in self._rules

    def _merge(self, rules: Iterable[Rule]) -> None:
        for rule in rules:
            self._rules[rule.name] = rule

    def add(self, name: str, rule: Rule) -> None:
        """Register *rule* under *name*, replacing any rule already there."""
        if rule.name != name:
            rule = dataclasses.replace(rule, name=name)
        self._rules[name] = rule

    def remove(self, name: str) -> bool:
        """Drop the rule called *name*. Returns whether it existed."""
        return self._rules.pop(name, None) is not None

    def update(self, name: str, patch: dict[str, Any]) -> bool:
        """Replace fields of an existing rule. Unknown names are a no-op."""
        rule = self._rules.get(name)
        if rule is None:
            logger.warning("Cannot update unknown rule %r", name)
            return False

        changes: dict[str, Any] = {}
        for key, value in patch.items():
            if key not in _PATCHABLE:
                logger.warning("Ignoring unknown field %r for rule %r", key, name)
                continue
            if key == "category":
                value = Category.parse(value)
            elif key == "file_types":
                if isinstance(value, str):
                    value = [value]
                if not isinstance(value, (list, tuple, set, frozenset)):
                    logger.warning("Ignoring invalid file_types for rule %r", name)
                    continue
                value = frozenset(str(v) for v in value)
            elif key == "matcher" and isinstance(value, str):
                try:
                    value = parse_pattern(value)
                except re.error as e:
                    logger.warning(
                        "Ignoring invalid pattern override for rule %r: %s", name, e
                    )
                    continue
            changes[key] = value
        self._rules[name] = dataclasses.replace(rule, **changes)
        return True

    def validate(self) -> list[str]:
        return validate_rules(self._rules.values())

    def freeze(self) -> RuleSet:
        return RuleSet(self._rules.values())


def validate_rules(rules: Iterable[Rule]) -> list[str]:
    """Describe structural problems instead of raising."""
    errors: list[str] = []
    for rule in rules:
        if rule.matcher is None:
            errors.append(f"Feature {rule.name} is missing regex pattern")
        elif not isinstance(rule.matcher, Matcher):
            errors.append(f"Feature {rule.name} has invalid regex pattern")
        elif isinstance(rule.matcher, PatternRule) and not isinstance(
            rule.matcher.regex, re.Pattern
        ):
            errors.append(f"Feature {rule.name} has invalid regex pattern")
        elif isinstance(rule.matcher, PatternRule) and not rule.matcher.pattern:
            errors.append(f"Feature {rule.name} has an empty regex pattern")
        if not rule.category_name:
            errors.append(f"Feature {rule.name} is missing category")
    return errors


def _describe(rule: Rule) -> dict:
    data: dict[str, Any] = {
        "name": rule.name,
        "category": rule.category_name,
    }
    if isinstance(rule.matcher, PatternRule):
        data["pattern"] = rule.matcher.pattern
        data["flags"] = rule.matcher.flags
    elif rule.matcher is not None:
        data["matcher"] = type(rule.matcher).__name__
    if rule.framework:
        data["framework"] = rule.framework
    if rule.description:
        data["description"] = rule.description
    if rule.file_types:
        data["file_types"] = sorted(rule.file_types)
    return data
