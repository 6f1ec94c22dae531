"""Linear-scan query service backed by a polars DataFrame.

This is the unindexed baseline: every query evaluates its predicates
against every row. It shares FilterSpec semantics with QueryEngine and
serves as the reference implementation for equivalence checks and as the
comparison point in benchmarks.
"""

from typing import Any, Dict, Iterable, List, Optional

import polars as pl

from cvestore.constants import ANALYSIS_EXCLUDED_STATUS, SeverityLevel
from cvestore.models.query_filters import CategoricalField, FilterSpec
from cvestore.models.record import VulnerabilityRecord

SCAN_SCHEMA = {
    "id": pl.Utf8,
    "severity": pl.Utf8,
    "status": pl.Utf8,
    "vendor": pl.Utf8,
    "product": pl.Utf8,
    "vulnerability_type": pl.Utf8,
    "score": pl.Float64,
    "published_ts": pl.Float64,
}


def _category(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def records_to_frame(records: Iterable[VulnerabilityRecord]) -> pl.DataFrame:
    """Flatten records into one row per record with the filterable columns.

    Empty or non-string categorical values become null; invalid scores and dates become null.
    """
    columns: Dict[str, list] = {name: [] for name in SCAN_SCHEMA}
    for record in records:
        columns["id"].append(record.id)
        for dimension in CategoricalField:
            columns[dimension.value].append(_category(getattr(record, dimension.value)))
        columns["score"].append(record.numeric_score)
        columns["published_ts"].append(record.published_timestamp)
    return pl.DataFrame(columns, schema=SCAN_SCHEMA)


class ScanService:
    """Answers queries by scanning every row.

    Duplicate ids resolve last-write-wins at first position, and records
    without a usable id are dropped, matching the indexed engine.
    """

    def __init__(self, records: Iterable[VulnerabilityRecord]):
        by_id: Dict[str, VulnerabilityRecord] = {}
        for record in records:
            if isinstance(record, VulnerabilityRecord) and record.has_valid_id:
                by_id[record.id] = record
        self._records = by_id
        self._df = records_to_frame(by_id.values())

    @property
    def frame(self) -> pl.DataFrame:
        return self._df

    @property
    def count(self) -> int:
        return len(self._df)

    def _build_expr(self, spec: FilterSpec) -> pl.Expr:
        expr = pl.lit(True)

        for dimension in CategoricalField:
            values = spec.values_for(dimension)
            if values:
                expr = expr & pl.col(dimension.value).is_in(sorted(values))

        score = spec.score_range
        if score.is_constrained:
            if score.is_inverted:
                return pl.lit(False)
            expr = expr & pl.col("score").is_between(score.min, score.max, closed="both")

        dates = spec.date_range
        if dates.is_constrained:
            if dates.is_inverted:
                return pl.lit(False)
            start, end = dates.start_timestamp, dates.end_timestamp
            expr = expr & pl.col("published_ts").is_between(start, end, closed="both")

        excluded_status = ANALYSIS_EXCLUDED_STATUS[spec.analysis_mode]
        if excluded_status is not None:
            expr = expr & pl.col("status").ne_missing(excluded_status)

        return expr

    def filter_ids(self, spec: Optional[FilterSpec] = None) -> List[str]:
        """Ids of matching rows, in row order."""
        if spec is None:
            return self._df.get_column("id").to_list()
        matched = self._df.filter(self._build_expr(spec))
        return matched.get_column("id").to_list()

    def query(self, spec: Optional[FilterSpec] = None) -> List[VulnerabilityRecord]:
        """Matching records, in row order."""
        return [self._records[record_id] for record_id in self.filter_ids(spec)]

    def find_by_id(self, record_id: str) -> Optional[VulnerabilityRecord]:
        """Look up one record by filtering the frame."""
        matched = self._df.filter(pl.col("id") == record_id)
        if len(matched) == 0:
            return None
        return self._records[matched.get_column("id")[0]]

    def summary(self) -> dict:
        """Severity and vendor counts computed with group_by."""
        severity_counts = (
            self._df.with_columns(
                pl.col("severity").fill_null(SeverityLevel.UNKNOWN.value)
            )
            .group_by("severity", maintain_order=True)
            .len()
        )
        vendor_counts = (
            self._df.filter(pl.col("vendor").is_not_null())
            .group_by("vendor", maintain_order=True)
            .len()
            .sort("len", descending=True, maintain_order=True)
        )
        return {
            "total_count": self.count,
            "severity_distribution": {
                row["severity"]: row["len"] for row in severity_counts.to_dicts()
            },
            "vendor_distribution": {
                row["vendor"]: row["len"] for row in vendor_counts.to_dicts()
            },
        }
