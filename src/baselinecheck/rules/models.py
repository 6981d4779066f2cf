"""Rule data models — restartable matchers and the rules that carry them."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

_CONTEXT_CHARS = 50


class Category(enum.Enum):
    """Coarse grouping of a detection rule."""

    API = "api"
    CSS = "css"
    HTML = "html"
    SYNTAX = "syntax"
    FRAMEWORK = "framework"
    PWA = "pwa"
    ACCESSIBILITY = "accessibility"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: str | Category) -> Category | str:
        """Return the enum member for *value*, or the raw string if unknown.

        Custom rules in user config may invent their own categories
        (``react``, ``security``); those are kept verbatim.
        """
        if isinstance(value, Category):
            return value
        try:
            return cls(value)
        except ValueError:
            return value


@dataclass(frozen=True)
class Match:
    """A single textual match of a rule inside one file's content."""

    text: str
    offset: int
    line: int
    context: str


@runtime_checkable
class Matcher(Protocol):
    """Anything that can find all matches in a string without keeping state."""

    def find_all(self, content: str) -> list[Match]: ...


@dataclass(frozen=True)
class PatternRule:
    """A compiled regex plus a pure find-all.

    No scan position is stored on the instance, so one PatternRule can be
    applied to any number of files, concurrently or not.
    """

    regex: re.Pattern[str]

    @classmethod
    def compile(cls, pattern: str, flags: int = 0) -> PatternRule:
        return cls(re.compile(pattern, flags))

    @property
    def pattern(self) -> str:
        return self.regex.pattern

    @property
    def flags(self) -> int:
        # Drop the implicit UNICODE flag so snapshots stay stable
        return self.regex.flags & ~re.UNICODE

    def find_all(self, content: str) -> list[Match]:
        matches: list[Match] = []
        pos = 0
        end = len(content)
        while pos <= end:
            m = self.regex.search(content, pos)
            if m is None:
                break
            matches.append(
                Match(
                    text=m.group(0),
                    offset=m.start(),
                    line=line_number(content, m.start()),
                    context=context_snippet(content, m.start()),
                )
            )
            # Zero-width match: step past it or we would loop forever
            pos = m.end() if m.end() > m.start() else m.end() + 1
        return matches


@dataclass(frozen=True)
class Rule:
    """A named detection rule.

    ``matcher`` is optional at the type level only so that broken rules can
    be registered and then reported by ``RuleRegistry.validate``.
    """

    name: str
    matcher: Matcher | None
    category: Category | str
    framework: str = ""
    description: str = ""
    file_types: frozenset[str] = frozenset()

    def applies_to(self, file_type: str) -> bool:
        return not self.file_types or file_type in self.file_types

    @property
    def category_name(self) -> str:
        if isinstance(self.category, Category):
            return self.category.value
        return self.category


@dataclass(frozen=True)
class DetectedFeature:
    """All matches of one rule in one file."""

    name: str
    category: str
    file_path: str
    file_type: str
    matches: tuple[Match, ...] = field(default_factory=tuple)
    framework: str = ""
    description: str = ""

    @property
    def count(self) -> int:
        return len(self.matches)


def line_number(content: str, offset: int) -> int:
    """1-based line number of *offset* in *content*."""
    return content.count("\n", 0, offset) + 1


def context_snippet(content: str, offset: int, length: int = _CONTEXT_CHARS) -> str:
    start = max(0, offset - length)
    return content[start : offset + length]


_FILE_TYPES = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".css": "css",
    ".html": "html",
    ".htm": "html",
    ".vue": "vue",
    ".svelte": "svelte",
}


def file_type_of(file_path: str) -> str:
    """Map a file extension to the language name rules filter on."""
    dot = file_path.rfind(".")
    if dot == -1:
        return "unknown"
    return _FILE_TYPES.get(file_path[dot:].lower(), "unknown")
