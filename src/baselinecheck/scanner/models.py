"""Scanner data models — feature results and the report handed to callers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from baselinecheck import __version__


@dataclass(frozen=True)
class FeatureResult:
    """One detected feature and every file it was seen in."""

    feature: str
    files: tuple[str, ...]

    @property
    def count(self) -> int:
        return len(self.files)

    def to_dict(self) -> dict:
        return {"feature": self.feature, "files": list(self.files), "count": self.count}

    @classmethod
    def from_dict(cls, data: dict) -> FeatureResult:
        return cls(feature=data["feature"], files=tuple(data.get("files", ())))


@dataclass
class BatchStats:
    """Running tallies while batches are processed."""

    processed: int = 0
    skipped: int = 0
    errors: int = 0

    @property
    def settled(self) -> int:
        return self.processed + self.skipped + self.errors


@dataclass(frozen=True)
class ReportMetadata:
    scanned_files: int
    processed_files: int
    error_count: int
    skipped_files: int
    generated_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    version: str = __version__
    config: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "scannedFiles": self.scanned_files,
            "processedFiles": self.processed_files,
            "errorCount": self.error_count,
            "skippedFiles": self.skipped_files,
            "generatedAt": self.generated_at,
            "version": self.version,
            "config": self.config,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ReportMetadata:
        return cls(
            scanned_files=int(data.get("scannedFiles", 0)),
            processed_files=int(data.get("processedFiles", 0)),
            error_count=int(data.get("errorCount", 0)),
            skipped_files=int(data.get("skippedFiles", 0)),
            generated_at=data.get("generatedAt", ""),
            version=data.get("version", ""),
            config=data.get("config", {}),
        )


@dataclass(frozen=True)
class Report:
    """The result of one scan invocation."""

    metadata: ReportMetadata
    detected: tuple[FeatureResult, ...] = ()

    def to_dict(self) -> dict:
        return {
            "metadata": self.metadata.to_dict(),
            "detected": [r.to_dict() for r in self.detected],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Report:
        """Rebuild a report from its JSON form. Raises on malformed input."""
        if not isinstance(data, dict):
            raise ValueError("Report must be a JSON object")
        return cls(
            metadata=ReportMetadata.from_dict(data["metadata"]),
            detected=tuple(FeatureResult.from_dict(d) for d in data["detected"]),
        )

    def feature(self, name: str) -> FeatureResult | None:
        for result in self.detected:
            if result.feature == name:
                return result
        return None

    @property
    def feature_names(self) -> list[str]:
        return [r.feature for r in self.detected]
