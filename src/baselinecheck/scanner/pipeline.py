"""Scan pipeline — resolve, consult cache, discover, batch, aggregate, persist."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Sequence
from pathlib import Path

from baselinecheck.analytics.trends import TrendStore
from baselinecheck.cache import FingerprintCache
from baselinecheck.config import ScanConfig, validate_config
from baselinecheck.errors import OutputWriteError, ScanPathError
from baselinecheck.rules.registry import RuleRegistry, RuleSet
from baselinecheck.scanner.discovery import discover_files
from baselinecheck.scanner.engine import BatchScanner, FileSource, ProgressCallback
from baselinecheck.scanner.models import Report, ReportMetadata

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = "baseline-report.json"


def split_paths(paths: str | Sequence[str]) -> list[str]:
    """Accept ``"src,lib"`` or a sequence; drop blanks."""
    if isinstance(paths, str):
        paths = paths.split(",")
    roots = [p.strip() for p in paths if p and p.strip()]
    return roots or ["."]


class ScanPipeline:
    """Runs one scan end to end.

    Only missing roots, an unwritable output and cancellation raise; every
    other problem is counted in the report or logged.
    """

    def __init__(
        self,
        config: ScanConfig | None = None,
        cache: FingerprintCache | None = None,
        trends: TrendStore | None = None,
        source: FileSource | None = None,
        progress: ProgressCallback | None = None,
    ) -> None:
        self.config = config or ScanConfig()
        self.cache = cache if cache is not None else FingerprintCache(self.config.cache_dir)
        self.trends = trends
        if trends is None and self.config.record_trends:
            self.trends = TrendStore(self.config.analytics_dir)
        self._source = source
        self._progress = progress

    def build_rules(self) -> RuleSet:
        registry = RuleRegistry.build(self.config.detector)
        for problem in registry.validate():
            logger.warning("Rule problem: %s", problem)
        return registry.freeze()

    async def run(
        self,
        paths: str | Sequence[str] = ".",
        out: str | Path | None = DEFAULT_OUTPUT,
        cancel: asyncio.Event | None = None,
    ) -> Report:
        config = self.config
        started = time.monotonic()
        roots = split_paths(paths)

        for problem in validate_config(config):
            logger.warning("Configuration warning: %s", problem)

        for root in roots:
            if not Path(root).exists():
                raise ScanPathError(root)

        use_cache = config.performance.cache_results
        cache_key = ""
        if use_cache:
            cache_key = self.cache.key(roots, config.fingerprint_snapshot())
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.info("Using cached results")
                if out is not None:
                    write_report(cached, out)
                return cached

        files = discover_files(roots, config.patterns, config.ignore)
        if not files:
            logger.warning("No files found matching the specified patterns")

        scanner = BatchScanner(
            self.build_rules(),
            source=self._source,
            batch_size=config.performance.concurrent_files,
            max_file_size=config.performance.max_file_size,
            progress=self._progress,
        )
        detected, stats = await scanner.scan_files(files, cancel=cancel)
        logger.info(
            "Processed %d files (%d errors, %d skipped)",
            stats.processed,
            stats.errors,
            stats.skipped,
        )

        report = Report(
            metadata=ReportMetadata(
                scanned_files=len(files),
                processed_files=stats.processed,
                error_count=stats.errors,
                skipped_files=stats.skipped,
                config=config.report_snapshot(),
            ),
            detected=tuple(detected),
        )

        if out is not None:
            write_report(report, out)
        if use_cache:
            try:
                self.cache.set(cache_key, report)
            except OSError as e:
                logger.warning("Could not write cache entry: %s", e)
        if self.trends is not None:
            self._record_trends(self.trends, report, roots, time.monotonic() - started)
        return report

    def _record_trends(
        self, store: TrendStore, report: Report, roots: list[str], duration: float
    ) -> None:
        try:
            store.record(
                report,
                {"paths": roots, "config": self.config.source, "duration": duration},
            )
        except (OSError, ValueError) as e:
            logger.warning("Analytics recording failed: %s", e)


def write_report(report: Report, out: str | Path) -> None:
    """Write *report* as JSON, creating parent directories."""
    out = Path(out)
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(report.to_dict(), indent=2), encoding="utf-8")
    except OSError as e:
        raise OutputWriteError(str(out), str(e)) from e
    logger.info("Generated baseline report: %s", out)


def scan(
    paths: str | Sequence[str] = ".",
    config: ScanConfig | None = None,
    out: str | Path | None = DEFAULT_OUTPUT,
    **kwargs,
) -> Report:
    """Synchronous entry point for embedding callers."""
    pipeline = ScanPipeline(config=config, **kwargs)
    return asyncio.run(pipeline.run(paths, out=out))
