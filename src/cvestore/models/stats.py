"""Result models produced by the engine: build reports and statistics."""

from dataclasses import dataclass, field
from typing import Dict, List


@dataclass(frozen=True)
class BuildReport:
    """Data-quality counters collected while building an engine.

    Attributes:
        accepted: Records stored (after duplicate resolution).
        skipped_malformed: Inputs dropped for lacking a usable id.
        duplicates_resolved: Inputs that replaced an earlier record with the same id.
    """

    accepted: int = 0
    skipped_malformed: int = 0
    duplicates_resolved: int = 0

    @property
    def total_input(self) -> int:
        return self.accepted + self.skipped_malformed + self.duplicates_resolved

    def to_dict(self) -> dict:
        return {
            "accepted": self.accepted,
            "skippedMalformed": self.skipped_malformed,
            "duplicatesResolved": self.duplicates_resolved,
        }


@dataclass(frozen=True)
class TimelinePoint:
    """Record count for one period."""

    period_key: str
    count: int

    def to_dict(self) -> dict:
        return {"periodKey": self.period_key, "count": self.count}


@dataclass(frozen=True)
class Stats:
    """Summary of a record set.

    Attributes:
        total_count: Number of records summarised.
        severity_distribution: Severity label -> count, in first-seen order.
        vendor_distribution: Vendor -> count, by descending count.
        timeline_data: Publication counts per period, sorted by period key.
        score_distribution: Count per whole CVSS point (index 0 through 10).
    """

    total_count: int = 0
    severity_distribution: Dict[str, int] = field(default_factory=dict)
    vendor_distribution: Dict[str, int] = field(default_factory=dict)
    timeline_data: List[TimelinePoint] = field(default_factory=list)
    score_distribution: List[int] = field(default_factory=lambda: [0] * 11)

    def to_dict(self) -> dict:
        """Convert to a plain, JSON-serialisable dictionary."""
        return {
            "totalCount": self.total_count,
            "severityDistribution": dict(self.severity_distribution),
            "vendorDistribution": dict(self.vendor_distribution),
            "timelineData": [point.to_dict() for point in self.timeline_data],
            "scoreDistribution": list(self.score_distribution),
        }
