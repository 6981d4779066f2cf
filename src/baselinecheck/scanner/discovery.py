"""File discovery — expand include globs minus ignore globs under each root."""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable, Iterator
from pathlib import Path

logger = logging.getLogger(__name__)


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternatives, including nested ones.

    ``"**/*.{js,css}"`` becomes ``["**/*.js", "**/*.css"]``. Braces without
    a top-level comma are left as literal text.
    """
    depth = 0
    start = -1
    for i, ch in enumerate(pattern):
        if ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth:
            depth -= 1
            if depth == 0:
                options = _split_top_level(pattern[start + 1 : i])
                if len(options) < 2:
                    continue
                head, tail = pattern[:start], pattern[i + 1 :]
                expanded: list[str] = []
                for option in options:
                    expanded.extend(expand_braces(head + option + tail))
                return expanded
    return [pattern]


def _split_top_level(body: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in body:
        if ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        current.append(ch)
    parts.append("".join(current))
    return parts


def translate_glob(pattern: str) -> re.Pattern[str]:
    """Compile a ``/``-separated glob to a regex.

    ``**/`` matches zero or more directories, ``**`` anything, ``*`` and
    ``?`` stay within one path segment.
    """
    out: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif pattern[i] == "*":
            out.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            out.append("[^/]")
            i += 1
        elif pattern[i] == "[":
            close = pattern.find("]", i + 1)
            if close == -1:
                out.append(re.escape("["))
                i += 1
                continue
            body = pattern[i + 1 : close]
            if body.startswith("!"):
                body = "^" + body[1:]
            out.append(f"[{body}]")
            i = close + 1
        else:
            out.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(out) + r"\Z")


class GlobSet:
    """A set of globs matched against root-relative POSIX paths."""

    def __init__(self, patterns: Iterable[str]) -> None:
        self.patterns = list(patterns)
        self._regexes = [
            translate_glob(_normalize(expanded))
            for pattern in self.patterns
            for expanded in expand_braces(pattern)
        ]

    def __bool__(self) -> bool:
        return bool(self._regexes)

    def matches(self, rel_path: str) -> bool:
        return any(r.match(rel_path) for r in self._regexes)

    def matches_dir(self, rel_dir: str) -> bool:
        """Whether everything below *rel_dir* is covered by the globs."""
        return self.matches(rel_dir + "/")


def _normalize(pattern: str) -> str:
    pattern = pattern.replace("\\", "/")
    while pattern.startswith("./"):
        pattern = pattern[2:]
    return pattern.lstrip("/")


def discover_files(
    roots: Iterable[str | Path],
    patterns: Iterable[str],
    ignore: Iterable[str] = (),
) -> list[str]:
    """Return matching files under every root, in a stable order.

    Directories are walked in sorted order and files reachable from more
    than one root are listed once.
    """
    include = GlobSet(patterns)
    exclude = GlobSet(ignore)
    seen: set[str] = set()
    files: list[str] = []

    for root in roots:
        for path in _walk(Path(root), include, exclude):
            key = os.path.realpath(path)
            if key in seen:
                continue
            seen.add(key)
            files.append(path)

    logger.debug("Discovered %d files", len(files))
    return files


def _walk(root: Path, include: GlobSet, exclude: GlobSet) -> Iterator[str]:
    if root.is_file():
        if include.matches(root.name) and not exclude.matches(root.name):
            yield str(root)
        return

    for dirpath, dirs, names in os.walk(root):
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        prefix = "" if rel_dir == "." else rel_dir + "/"

        # Prune ignored directories in-place
        dirs[:] = sorted(d for d in dirs if not exclude.matches_dir(prefix + d))

        for name in sorted(names):
            rel = prefix + name
            if exclude.matches(rel) or not include.matches(rel):
                continue
            yield os.path.join(dirpath, name)
