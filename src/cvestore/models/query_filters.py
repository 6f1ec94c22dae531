"""Query filter models for engine queries.

This module provides the strongly-typed FilterSpec consumed by
QueryEngine.query() together with its range sub-filters.

All filter classes are immutable. Categorical selections are normalised to
frozensets; an empty selection means "no constraint" on that dimension.

Example:
    from cvestore.models.query_filters import DateRange, FilterSpec, ScoreRange

    spec = FilterSpec(
        severity={"HIGH", "CRITICAL"},
        score_range=ScoreRange(min=7.0),
        date_range=DateRange(start="2021-06-01"),
    )
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional

from cvestore.constants import SCORE_MAX, SCORE_MIN, AnalysisMode
from cvestore.dates import DateLike, parse_range_end, parse_timestamp


class FilterValidationError(ValueError):
    """Raised when a filter value cannot be interpreted."""


class CategoricalField(Enum):
    """Categorical record attributes that carry an index.

    The value is the record attribute name.
    """

    SEVERITY = "severity"
    STATUS = "status"
    VENDOR = "vendor"
    PRODUCT = "product"
    VULNERABILITY_TYPE = "vulnerability_type"


def _as_frozenset(values: Optional[Iterable[str]]) -> frozenset:
    if values is None:
        return frozenset()
    if isinstance(values, str):
        return frozenset([values])
    return frozenset(values)


def _as_bound(value: Any, default: float, name: str) -> float:
    if value is None:
        return default
    if isinstance(value, bool):
        raise FilterValidationError(f"Score {name} must be a number, got {value!r}")
    try:
        bound = float(value)
    except (TypeError, ValueError):
        raise FilterValidationError(
            f"Score {name} must be a number, got {value!r}"
        ) from None
    if math.isnan(bound):
        raise FilterValidationError(f"Score {name} must not be NaN")
    return bound


@dataclass(frozen=True)
class ScoreRange:
    """Inclusive CVSS score window.

    Attributes:
        min: Minimum score (inclusive). Defaults to 0.
        max: Maximum score (inclusive). Defaults to 10.
    """

    min: Optional[float] = None
    max: Optional[float] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "min", _as_bound(self.min, SCORE_MIN, "min"))
        object.__setattr__(self, "max", _as_bound(self.max, SCORE_MAX, "max"))

    @property
    def is_constrained(self) -> bool:
        """False when the window spans the full 0-10 scale."""
        return self.min > SCORE_MIN or self.max < SCORE_MAX

    @property
    def is_inverted(self) -> bool:
        return self.min > self.max


@dataclass(frozen=True)
class DateRange:
    """Inclusive publication date window.

    Either side may be None, which leaves that side unbounded. A bare date
    as ``end`` includes the whole day.

    Attributes:
        start: Earliest publication date.
        end: Latest publication date.
    """

    start: Optional[DateLike] = None
    end: Optional[DateLike] = None

    def __post_init__(self) -> None:
        if self.start is not None and parse_timestamp(self.start) is None:
            raise FilterValidationError(f"Invalid start date: {self.start!r}")
        if self.end is not None and parse_range_end(self.end) is None:
            raise FilterValidationError(f"Invalid end date: {self.end!r}")

    @property
    def start_timestamp(self) -> float:
        """Lower bound as a timestamp, -inf when open."""
        ts = parse_timestamp(self.start)
        return -math.inf if ts is None else ts

    @property
    def end_timestamp(self) -> float:
        """Upper bound as a timestamp, +inf when open."""
        ts = parse_range_end(self.end)
        return math.inf if ts is None else ts

    @property
    def is_constrained(self) -> bool:
        return self.start is not None or self.end is not None

    @property
    def is_inverted(self) -> bool:
        return self.start_timestamp > self.end_timestamp


@dataclass(frozen=True)
class FilterSpec:
    """Combined filter applied by QueryEngine.query().

    Dimensions are ANDed together; values within one categorical dimension
    are ORed. Matching on categorical values is exact.

    Attributes:
        severity: Accepted severity labels.
        status: Accepted status values.
        vendor: Accepted vendors.
        product: Accepted products.
        vulnerability_type: Accepted vulnerability types.
        date_range: Publication date window.
        score_range: CVSS score window.
        analysis_mode: Status-based exclusion mode.
    """

    severity: frozenset = field(default_factory=frozenset)
    status: frozenset = field(default_factory=frozenset)
    vendor: frozenset = field(default_factory=frozenset)
    product: frozenset = field(default_factory=frozenset)
    vulnerability_type: frozenset = field(default_factory=frozenset)
    date_range: DateRange = field(default_factory=DateRange)
    score_range: ScoreRange = field(default_factory=ScoreRange)
    analysis_mode: AnalysisMode = AnalysisMode.NONE

    def __post_init__(self) -> None:
        for dimension in CategoricalField:
            name = dimension.value
            object.__setattr__(self, name, _as_frozenset(getattr(self, name)))
        if self.date_range is None:
            object.__setattr__(self, "date_range", DateRange())
        if self.score_range is None:
            object.__setattr__(self, "score_range", ScoreRange())
        object.__setattr__(self, "analysis_mode", AnalysisMode(self.analysis_mode))

    def values_for(self, dimension: CategoricalField) -> frozenset:
        """Return the selected values for a categorical dimension."""
        return getattr(self, dimension.value)

    @property
    def is_unconstrained(self) -> bool:
        """True when the filter matches every record."""
        return (
            not any(self.values_for(d) for d in CategoricalField)
            and not self.date_range.is_constrained
            and not self.score_range.is_constrained
            and self.analysis_mode == AnalysisMode.NONE
        )

    @classmethod
    def from_dict(cls, data: dict) -> "FilterSpec":
        """Build a FilterSpec from a camelCase dictionary.

        Recognises ``severity``, ``status``, ``vendor``, ``product``,
        ``vulnerabilityType``, ``dateRange`` ({start, end}),
        ``scoreRange`` ({min, max}) and ``analysisMode``.
        """
        date_range = data.get("dateRange") or {}
        score_range = data.get("scoreRange") or {}
        return cls(
            severity=data.get("severity"),
            status=data.get("status"),
            vendor=data.get("vendor"),
            product=data.get("product"),
            vulnerability_type=data.get("vulnerabilityType"),
            date_range=DateRange(
                start=date_range.get("start"), end=date_range.get("end")
            ),
            score_range=ScoreRange(
                min=score_range.get("min"), max=score_range.get("max")
            ),
            analysis_mode=data.get("analysisMode") or AnalysisMode.NONE,
        )
