"""Trend store — per-scan snapshots folded into daily and rolling rollups."""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from baselinecheck.scanner.models import Report

logger = logging.getLogger(__name__)

TREND_WINDOW_DAYS = 30
TOTAL_BROWSERS = 4  # chrome, firefox, safari, edge

_STATUS_RISK = {
    "baseline_like": 0.0,
    "risky": 0.7,
    "unknown": 0.5,
}
_DEFAULT_RISK = 0.3

MODERN_FEATURES = (
    "Optional chaining",
    "Nullish coalescing",
    "Top-level await",
    "Dynamic import",
    "BigInt",
    "css.has_pseudo",
    "css.container_queries",
)
LEGACY_FEATURES = ("css.flexbox", "css.grid", "window.fetch", "WebSocket")
# Every name here is also modern, and the modern bucket is checked first
EXPERIMENTAL_FEATURES = ("css.has_pseudo", "css.container_queries", "Top-level await")

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class FeatureStats:
    total: int = 0
    by_status: dict[str, int] = field(default_factory=dict)
    by_category: dict[str, int] = field(default_factory=dict)
    by_browser: dict[str, int] = field(default_factory=dict)
    risk_score: float = 0.0
    adoption_score: float = 0.0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "byStatus": self.by_status,
            "byCategory": self.by_category,
            "byBrowser": self.by_browser,
            "riskScore": self.risk_score,
            "adoptionScore": self.adoption_score,
        }


@dataclass
class TrendCounts:
    modern_features: int = 0
    legacy_features: int = 0
    experimental_features: int = 0

    def to_dict(self) -> dict:
        return {
            "modernFeatures": self.modern_features,
            "legacyFeatures": self.legacy_features,
            "experimentalFeatures": self.experimental_features,
        }


@dataclass
class TrendSnapshot:
    """What one scan contributed to the history."""

    scan_id: str
    timestamp: str
    metadata: dict[str, Any]
    features: FeatureStats
    trends: TrendCounts
    feature_names: list[str] = field(default_factory=list)

    @property
    def date(self) -> str:
        return self.timestamp.split("T", 1)[0]

    def to_dict(self) -> dict:
        return {
            "scanId": self.scan_id,
            "timestamp": self.timestamp,
            "metadata": self.metadata,
            "features": self.features.to_dict(),
            "trends": self.trends.to_dict(),
        }


@dataclass
class DailyRollup:
    """Running aggregates for one calendar date."""

    date: str
    scans: int = 0
    total_features: int = 0
    baseline_features: int = 0
    risky_features: int = 0
    unknown_features: int = 0
    avg_risk_score: float = 0.0
    avg_adoption_score: float = 0.0

    def add(self, snapshot: TrendSnapshot) -> None:
        features = snapshot.features
        self.scans += 1
        self.total_features += features.total
        self.baseline_features += features.by_status.get("baseline_like", 0)
        self.risky_features += features.by_status.get("risky", 0)
        self.unknown_features += features.by_status.get("unknown", 0)
        # Incremental mean over n = scans, no sample history needed
        n = self.scans
        self.avg_risk_score = (self.avg_risk_score * (n - 1) + features.risk_score) / n
        self.avg_adoption_score = (
            self.avg_adoption_score * (n - 1) + features.adoption_score
        ) / n

    def to_dict(self) -> dict:
        return {
            "scans": self.scans,
            "totalFeatures": self.total_features,
            "baselineFeatures": self.baseline_features,
            "riskyFeatures": self.risky_features,
            "unknownFeatures": self.unknown_features,
            "avgRiskScore": self.avg_risk_score,
            "avgAdoptionScore": self.avg_adoption_score,
        }

    @classmethod
    def from_dict(cls, day: str, data: Mapping[str, Any]) -> DailyRollup:
        return cls(
            date=day,
            scans=int(data.get("scans", 0)),
            total_features=int(data.get("totalFeatures", 0)),
            baseline_features=int(data.get("baselineFeatures", 0)),
            risky_features=int(data.get("riskyFeatures", 0)),
            unknown_features=int(data.get("unknownFeatures", 0)),
            avg_risk_score=float(data.get("avgRiskScore", 0.0)),
            avg_adoption_score=float(data.get("avgAdoptionScore", 0.0)),
        )


@dataclass(frozen=True)
class TrendPoint:
    date: str
    score: float


@dataclass
class OverallTrend:
    total_scans: int = 0
    total_features: int = 0
    most_used_features: dict[str, int] = field(default_factory=dict)
    risk_trend: list[TrendPoint] = field(default_factory=list)
    adoption_trend: list[TrendPoint] = field(default_factory=list)

    def add(self, snapshot: TrendSnapshot) -> None:
        self.total_scans += 1
        self.total_features += snapshot.features.total
        for name in snapshot.feature_names:
            self.most_used_features[name] = self.most_used_features.get(name, 0) + 1
        self.risk_trend.append(TrendPoint(snapshot.date, snapshot.features.risk_score))
        self.adoption_trend.append(
            TrendPoint(snapshot.date, snapshot.features.adoption_score)
        )

    def prune(self, now: datetime, days: int = TREND_WINDOW_DAYS) -> None:
        """Drop series points older than the trailing window."""
        cutoff = (now - timedelta(days=days)).date()
        self.risk_trend = [p for p in self.risk_trend if _parse_date(p.date) > cutoff]
        self.adoption_trend = [
            p for p in self.adoption_trend if _parse_date(p.date) > cutoff
        ]

    def top_features(self, limit: int = 10) -> list[tuple[str, int]]:
        ranked = sorted(self.most_used_features.items(), key=lambda x: (-x[1], x[0]))
        return ranked[:limit]

    def to_dict(self) -> dict:
        return {
            "totalScans": self.total_scans,
            "totalFeatures": self.total_features,
            "mostUsedFeatures": self.most_used_features,
            "riskTrend": [asdict(p) for p in self.risk_trend],
            "adoptionTrend": [asdict(p) for p in self.adoption_trend],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> OverallTrend:
        return cls(
            total_scans=int(data.get("totalScans", 0)),
            total_features=int(data.get("totalFeatures", 0)),
            most_used_features=dict(data.get("mostUsedFeatures", {})),
            risk_trend=_points(data.get("riskTrend", [])),
            adoption_trend=_points(data.get("adoptionTrend", [])),
        )


def _points(raw: list) -> list[TrendPoint]:
    return [TrendPoint(p["date"], float(p["score"])) for p in raw]


@dataclass(frozen=True)
class TrendSummary:
    total_scans: int
    avg_features_per_scan: float
    risk_trend: str
    adoption_trend: str
    risk_change: float
    adoption_change: float


@dataclass(frozen=True)
class TrendReport:
    period: str
    daily_data: list[DailyRollup]
    overall: OverallTrend
    summary: TrendSummary | None


class TrendStore:
    """Persists scan history under ``data_dir``.

    Layout: ``scan-<id>.json`` per scan plus ``aggregated.json`` holding the
    daily rollups and the rolling overall series.
    """

    def __init__(
        self,
        data_dir: str | Path = ".baseline-analytics",
        clock: Clock = _utcnow,
    ) -> None:
        self.data_dir = Path(data_dir)
        self._clock = clock

    @property
    def aggregated_path(self) -> Path:
        return self.data_dir / "aggregated.json"

    def record(
        self, report: Report | Mapping[str, Any], metadata: dict | None = None
    ) -> str:
        """Snapshot *report*, persist it, and fold it into the rollups."""
        now = self._clock()
        snapshot = build_snapshot(report, metadata or {}, now)

        self.data_dir.mkdir(parents=True, exist_ok=True)
        scan_file = self.data_dir / f"scan-{snapshot.scan_id}.json"
        scan_file.write_text(json.dumps(snapshot.to_dict(), indent=2), encoding="utf-8")

        daily, overall = self._load_aggregated(strict=False) or ({}, OverallTrend())
        rollup = daily.setdefault(snapshot.date, DailyRollup(date=snapshot.date))
        rollup.add(snapshot)
        overall.add(snapshot)
        overall.prune(now)
        self._write_aggregated(daily, overall)

        logger.debug("Recorded scan %s", snapshot.scan_id)
        return snapshot.scan_id

    def get_trends(self, days: int = TREND_WINDOW_DAYS) -> TrendReport | None:
        """Daily rollups within the last *days*, oldest first, plus a summary.

        Returns None when nothing has been recorded or the store is unreadable.
        """
        loaded = self._load_aggregated(strict=True)
        if loaded is None:
            return None
        daily, overall = loaded

        today = self._clock().date()
        start = today - timedelta(days=days)
        window = sorted(
            (r for r in daily.values() if start <= _parse_date(r.date) <= today),
            key=lambda r: r.date,
        )
        return TrendReport(
            period=f"{days} days",
            daily_data=window,
            overall=overall,
            summary=summarize(window),
        )

    def generate_report(self, days: int = TREND_WINDOW_DAYS) -> str:
        """Render the trend window as markdown."""
        trends = self.get_trends(days)
        if trends is None or trends.summary is None:
            return "No analytics data available. Run some scans first."

        s = trends.summary
        lines = [
            "# Baseline Check Analytics Report",
            "",
            f"## Summary (Last {days} Days)",
            f"- **Total Scans:** {s.total_scans}",
            f"- **Average Features per Scan:** {s.avg_features_per_scan:.1f}",
            f"- **Risk Trend:** {s.risk_trend} ({s.risk_change:+.3f})",
            f"- **Adoption Trend:** {s.adoption_trend} ({s.adoption_change:+.3f})",
            "",
            "## Daily Breakdown",
        ]
        for day in trends.daily_data:
            lines.append(
                f"- **{day.date}:** {day.scans} scans, {day.total_features} features, "
                f"Risk: {day.avg_risk_score:.2f}, Adoption: {day.avg_adoption_score:.2f}"
            )
        top = trends.overall.top_features(5)
        if top:
            lines += ["", "## Most Used Features"]
            lines += [f"- {name}: {count} scans" for name, count in top]
        lines += ["", "## Recommendations"]
        lines += [f"- {r}" for r in recommendations(s)]
        return "\n".join(lines) + "\n"

    def _load_aggregated(
        self, strict: bool
    ) -> tuple[dict[str, DailyRollup], OverallTrend] | None:
        path = self.aggregated_path
        if not path.is_file():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            daily = {
                day: DailyRollup.from_dict(day, values)
                for day, values in data.get("daily", {}).items()
            }
            overall = OverallTrend.from_dict(data.get("overall", {}))
            # Every stored date must parse
            for day in daily:
                _parse_date(day)
            for point in overall.risk_trend + overall.adoption_trend:
                _parse_date(point.date)
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            if strict:
                logger.warning("Could not read trend data %s: %s", path, e)
            else:
                logger.warning("Trend data %s is corrupt, starting fresh: %s", path, e)
            return None
        return daily, overall

    def _write_aggregated(
        self, daily: dict[str, DailyRollup], overall: OverallTrend
    ) -> None:
        data = {
            "daily": {day: rollup.to_dict() for day, rollup in sorted(daily.items())},
            "overall": overall.to_dict(),
        }
        self.aggregated_path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def build_snapshot(
    report: Report | Mapping[str, Any],
    metadata: dict,
    now: datetime,
) -> TrendSnapshot:
    """Derive a TrendSnapshot from a scan (or checked) report."""
    data = report.to_dict() if isinstance(report, Report) else dict(report)
    results = data.get("results") or data.get("detected") or []
    report_meta = data.get("metadata") or {}

    return TrendSnapshot(
        scan_id=f"{int(now.timestamp() * 1000)}-{uuid.uuid4().hex[:10]}",
        timestamp=now.astimezone(timezone.utc).isoformat(),
        metadata={
            **metadata,
            "version": report_meta.get("version", ""),
            "scannedFiles": report_meta.get("scannedFiles", 0),
            "processedFiles": report_meta.get("processedFiles", 0),
            "errorCount": report_meta.get("errorCount", 0),
        },
        features=analyze_features(results),
        trends=count_trends(results),
        feature_names=[r["feature"] for r in results if "feature" in r],
    )


def analyze_features(results: list[dict]) -> FeatureStats:
    stats = FeatureStats(total=len(results))
    total_risk = 0.0
    total_adoption = 0.0

    for result in results:
        status = result.get("status", "unchecked")
        stats.by_status[status] = stats.by_status.get(status, 0) + 1

        category = infer_category(result.get("feature", ""))
        stats.by_category[category] = stats.by_category.get(category, 0) + 1

        browsers = result.get("browsers") or {}
        for browser in browsers:
            stats.by_browser[browser] = stats.by_browser.get(browser, 0) + 1

        total_risk += _STATUS_RISK.get(status, _DEFAULT_RISK)
        total_adoption += min(len(browsers), TOTAL_BROWSERS) / TOTAL_BROWSERS

    if results:
        stats.risk_score = total_risk / len(results)
        stats.adoption_score = total_adoption / len(results)
    return stats


def infer_category(feature: str) -> str:
    """Coarse category from a feature's name."""
    if feature.startswith("css."):
        return "CSS"
    if feature.startswith("window.") or "API" in feature:
        return "Web API"
    if "element" in feature:
        return "HTML"
    if "chaining" in feature or "coalescing" in feature or "await" in feature:
        return "JavaScript"
    return "Other"


def count_trends(results: list[dict]) -> TrendCounts:
    counts = TrendCounts()
    for result in results:
        feature = result.get("feature", "")
        if _mentions(feature, MODERN_FEATURES):
            counts.modern_features += 1
        elif _mentions(feature, LEGACY_FEATURES):
            counts.legacy_features += 1
        elif _mentions(feature, EXPERIMENTAL_FEATURES):
            counts.experimental_features += 1
    return counts


def _mentions(feature: str, names: tuple[str, ...]) -> bool:
    return any(name in feature for name in names)


def summarize(daily: list[DailyRollup]) -> TrendSummary | None:
    if not daily:
        return None
    first, latest = daily[0], daily[-1]
    total_scans = sum(d.scans for d in daily)
    total_features = sum(d.total_features for d in daily)
    risk_change = latest.avg_risk_score - first.avg_risk_score
    adoption_change = latest.avg_adoption_score - first.avg_adoption_score
    return TrendSummary(
        total_scans=total_scans,
        avg_features_per_scan=total_features / total_scans if total_scans else 0.0,
        risk_trend=_direction(risk_change),
        adoption_trend=_direction(adoption_change),
        risk_change=round(risk_change, 3),
        adoption_change=round(adoption_change, 3),
    )


def _direction(change: float) -> str:
    if change > 0:
        return "increasing"
    if change < 0:
        return "decreasing"
    return "stable"


def recommendations(summary: TrendSummary) -> list[str]:
    recs: list[str] = []
    if summary.risk_trend == "increasing":
        recs.append("Risk score is increasing - consider reviewing risky features")
    if summary.adoption_trend == "decreasing":
        recs.append("Adoption score is declining - check browser compatibility")
    if summary.avg_features_per_scan > 50:
        recs.append("High feature count - consider using more specific patterns")
    if not recs:
        recs.append("Your baseline check metrics look healthy!")
    return recs


def _parse_date(value: str) -> date:
    return date.fromisoformat(value[:10])
