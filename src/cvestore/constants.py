"""Shared constants for cvestore.

Severity levels, timeline groupings, and the status values that drive the
analysis filter modes live here so that models, services, and the CLI agree
on a single vocabulary.
"""

from enum import Enum
from typing import Iterable, List


class SeverityLevel(str, Enum):
    """Severity levels recognised in vulnerability records."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"
    UNKNOWN = "unknown"


class TimeGrouping(str, Enum):
    """Bucket size for timeline statistics.

    Period keys are zero-padded and most-significant-first, so sorting them
    as strings sorts them chronologically.
    """

    DAY = "day"
    MONTH = "month"
    YEAR = "year"


class AnalysisMode(str, Enum):
    """Status-based exclusion applied on top of the regular filters.

    - NONE: keep every record
    - ANALYSIS: drop records marked invalid by manual analysis
    - AI_ANALYSIS: drop records marked invalid by automated analysis
    """

    NONE = "none"
    ANALYSIS = "analysis"
    AI_ANALYSIS = "ai_analysis"


STATUS_INVALID_NORISK = "invalid - norisk"
STATUS_AI_INVALID_NORISK = "ai-invalid-norisk"

ANALYSIS_EXCLUDED_STATUS = {
    AnalysisMode.NONE: None,
    AnalysisMode.ANALYSIS: STATUS_INVALID_NORISK,
    AnalysisMode.AI_ANALYSIS: STATUS_AI_INVALID_NORISK,
}

# Score window treated as "no constraint"
SCORE_MIN = 0.0
SCORE_MAX = 10.0

DEFAULT_TOP_VENDORS = 10

SEVERITY_ORDER = {
    "critical": 5,
    "high": 4,
    "medium": 3,
    "low": 2,
    "info": 1,
    "informational": 1,
    "unknown": 0,
}


def severity_from_score(score: float) -> SeverityLevel:
    """Map a CVSS base score to a severity level.

    Args:
        score: CVSS score (0-10).

    Returns:
        The matching SeverityLevel.
    """
    if score >= 9.0:
        return SeverityLevel.CRITICAL
    if score >= 7.0:
        return SeverityLevel.HIGH
    if score >= 4.0:
        return SeverityLevel.MEDIUM
    if score >= 0.1:
        return SeverityLevel.LOW
    return SeverityLevel.INFO


def sort_severities(severities: Iterable[str]) -> List[str]:
    """Sort severity labels from most to least severe (case-insensitive).

    Unrecognised labels sort last, keeping their relative order.
    """
    return sorted(
        severities,
        key=lambda s: SEVERITY_ORDER.get(s.lower(), 0),
        reverse=True,
    )
