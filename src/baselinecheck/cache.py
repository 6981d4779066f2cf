"""Fingerprint cache — reuse a previous report when scan inputs are unchanged."""

from __future__ import annotations

import hashlib
import json
import logging
import os
import shutil
import tempfile
import time
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from baselinecheck.scanner.models import Report

logger = logging.getLogger(__name__)

MAX_AGE_MS = 24 * 60 * 60 * 1000


@dataclass(frozen=True)
class CacheStats:
    files: int
    total_bytes: int

    @property
    def formatted(self) -> str:
        return format_bytes(self.total_bytes)


class FingerprintCache:
    """One JSON file per key: ``{"timestamp": <epoch ms>, "data": <report>}``.

    Entries older than 24 hours are ignored on read but left on disk; only
    ``invalidate_all`` deletes anything.
    """

    def __init__(
        self,
        cache_dir: str | Path = ".baseline-cache",
        max_age_ms: int = MAX_AGE_MS,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self.max_age_ms = max_age_ms

    @staticmethod
    def key(paths: Sequence[str], config: dict) -> str:
        """Derive a deterministic key from the scan roots and config snapshot."""
        h = hashlib.sha256()
        h.update(json.dumps(list(paths)).encode("utf-8"))
        h.update(json.dumps(config, sort_keys=True, default=str).encode("utf-8"))
        return h.hexdigest()

    @staticmethod
    def file_key(path: str | Path, content: str) -> str:
        """Fingerprint one file by content, modification time and size."""
        st = os.stat(path)
        h = hashlib.sha256()
        h.update(content.encode("utf-8"))
        h.update(repr(st.st_mtime_ns).encode("ascii"))
        h.update(str(st.st_size).encode("ascii"))
        return h.hexdigest()

    def _entry_path(self, key: str) -> Path:
        return self.cache_dir / f"{key}.json"

    def get(self, key: str, now_ms: int | None = None) -> Report | None:
        """Return the cached report, or None if missing, corrupt or stale."""
        path = self._entry_path(key)
        if not path.is_file():
            return None

        try:
            entry = json.loads(path.read_text(encoding="utf-8"))
            timestamp = int(entry["timestamp"])
            report = Report.from_dict(entry["data"])
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("Ignoring corrupt cache entry %s: %s", path.name, e)
            return None

        now_ms = _now_ms() if now_ms is None else now_ms
        if now_ms - timestamp > self.max_age_ms:
            logger.debug("Cache entry %s is stale", path.name)
            return None
        return report

    def set(self, key: str, report: Report, now_ms: int | None = None) -> None:
        """Store *report* under *key*, replacing any previous entry atomically."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        entry = {
            "timestamp": _now_ms() if now_ms is None else now_ms,
            "data": report.to_dict(),
        }
        fd, tmp = tempfile.mkstemp(dir=self.cache_dir, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(entry, f, indent=2)
            os.replace(tmp, self._entry_path(key))
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def invalidate_all(self) -> None:
        """Delete the whole cache directory."""
        if self.cache_dir.exists():
            shutil.rmtree(self.cache_dir)
            logger.info("Removed cache directory %s", self.cache_dir)

    def stats(self) -> CacheStats:
        if not self.cache_dir.is_dir():
            return CacheStats(files=0, total_bytes=0)
        files = [p for p in self.cache_dir.iterdir() if p.is_file()]
        return CacheStats(
            files=len(files),
            total_bytes=sum(p.stat().st_size for p in files),
        )


def format_bytes(size: int) -> str:
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    for unit in ("Bytes", "KB", "MB"):
        if value < 1024:
            return f"{round(value, 2):g} {unit}"
        value /= 1024
    return f"{round(value, 2):g} GB"


def _now_ms() -> int:
    return int(time.time() * 1000)
