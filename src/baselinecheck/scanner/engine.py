"""Batch scanner — applies a rule set to files in bounded concurrent batches."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable, Sequence
from typing import Protocol

from baselinecheck.errors import ScanCancelled
from baselinecheck.rules.registry import RuleSet
from baselinecheck.scanner.models import BatchStats, FeatureResult

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10
DEFAULT_MAX_FILE_SIZE = 1024 * 1024

# Below this many files progress is not worth reporting
PROGRESS_THRESHOLD = 100

ProgressCallback = Callable[[int, int], None]


class FileSource(Protocol):
    """Where file sizes and contents come from."""

    def size(self, path: str) -> int: ...

    async def read_text(self, path: str) -> str: ...


class LocalFileSource:
    """Reads from the local filesystem, off the event loop."""

    def size(self, path: str) -> int:
        return os.stat(path).st_size

    async def read_text(self, path: str) -> str:
        return await asyncio.to_thread(_read_utf8, path)


def _read_utf8(path: str) -> str:
    with open(path, encoding="utf-8") as f:
        return f.read()


class BatchScanner:
    """Scans files ``batch_size`` at a time.

    Every file of a batch is read and matched concurrently; the next batch
    starts only once all of them have settled. Peak concurrency is therefore
    ``batch_size`` no matter how many files there are.
    """

    def __init__(
        self,
        rules: RuleSet,
        source: FileSource | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        progress: ProgressCallback | None = None,
    ) -> None:
        self._rules = rules
        self._source = source or LocalFileSource()
        self._batch_size = batch_size if batch_size > 0 else DEFAULT_BATCH_SIZE
        self._max_file_size = max_file_size if max_file_size > 0 else DEFAULT_MAX_FILE_SIZE
        self._progress = progress

    async def scan_files(
        self,
        files: Sequence[str],
        cancel: asyncio.Event | None = None,
    ) -> tuple[list[FeatureResult], BatchStats]:
        """Scan *files* and aggregate detected features per file."""
        found: dict[str, list[str]] = {}
        stats = BatchStats()
        total = len(files)

        for start in range(0, total, self._batch_size):
            if cancel is not None and cancel.is_set():
                raise ScanCancelled(
                    f"Scan cancelled after {start} of {total} files"
                )
            batch = files[start : start + self._batch_size]
            detected = await asyncio.gather(
                *(self._scan_one(path, stats) for path in batch)
            )
            # Merge in discovery order so feature order is reproducible
            for path, names in zip(batch, detected):
                for name in names:
                    paths = found.setdefault(name, [])
                    if path not in paths:
                        paths.append(path)
            if total > PROGRESS_THRESHOLD:
                done = min(start + self._batch_size, total)
                logger.debug("Processing files... %d%%", done * 100 // total)
                if self._progress is not None:
                    self._progress(done, total)

        results = [
            FeatureResult(feature=name, files=tuple(paths))
            for name, paths in found.items()
        ]
        return results, stats

    async def _scan_one(
        self,
        path: str,
        stats: BatchStats,
    ) -> list[str]:
        """Read and match one file; return the names of detected features."""
        try:
            size = self._source.size(path)
        except OSError as e:
            logger.warning("Could not read file %s: %s", path, e)
            stats.errors += 1
            return []

        if size > self._max_file_size:
            logger.warning("Skipping large file %s (%dKB)", path, round(size / 1024))
            stats.skipped += 1
            return []

        try:
            content = await self._source.read_text(path)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read file %s: %s", path, e)
            stats.errors += 1
            return []

        names = [feature.name for feature in self._rules.detect(content, path)]
        stats.processed += 1
        return names
