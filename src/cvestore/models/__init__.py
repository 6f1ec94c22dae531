"""Data models for cvestore."""

from cvestore.models.query_filters import (
    CategoricalField,
    DateRange,
    FilterSpec,
    FilterValidationError,
    ScoreRange,
)
from cvestore.models.record import VulnerabilityRecord
from cvestore.models.stats import BuildReport, Stats, TimelinePoint

__all__ = [
    "BuildReport",
    "CategoricalField",
    "DateRange",
    "FilterSpec",
    "FilterValidationError",
    "ScoreRange",
    "Stats",
    "TimelinePoint",
    "VulnerabilityRecord",
]
