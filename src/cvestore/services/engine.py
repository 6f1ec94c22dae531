"""Indexed query engine over one loaded vulnerability dataset.

A QueryEngine bundles a RecordStore with a fixed set of indices, all built
together in one pass and never modified afterwards:

- severity, status, vendor, product, vulnerability_type: CategoricalIndex
- score: RangeIndex
- published_date: DateIndex

Queries intersect id sets from the indices that a filter actually
constrains, then materialise the surviving ids in store insertion order.
"""

import logging
from collections.abc import Iterable as IterableABC
from typing import Dict, Iterable, List, Optional, Set

from cvestore.constants import ANALYSIS_EXCLUDED_STATUS, TimeGrouping
from cvestore.core.config import Config, get_config
from cvestore.index.categorical import CategoricalIndex
from cvestore.index.ranges import DateIndex, RangeIndex
from cvestore.index.store import RecordStore
from cvestore.models.query_filters import CategoricalField, FilterSpec
from cvestore.models.record import VulnerabilityRecord
from cvestore.models.stats import BuildReport, Stats
from cvestore.services import stats as stats_service

logger = logging.getLogger(__name__)

# Below this candidate/store ratio, ordering by stored position beats a full scan
_SPARSE_RATIO = 0.25


class QueryEngine:
    """Immutable snapshot of one dataset and its indices."""

    def __init__(
        self,
        store: RecordStore,
        categorical: Dict[CategoricalField, CategoricalIndex],
        score_index: RangeIndex,
        published_index: DateIndex,
        build_report: BuildReport,
        config: Optional[Config] = None,
    ):
        """Assemble an engine from prebuilt parts. Use build() instead."""
        self.config = config or get_config()
        self._store = store
        self._categorical = categorical
        self._score_index = score_index
        self._published_index = published_index
        self.build_report = build_report
        self._positions = {record_id: i for i, record_id in enumerate(store.ids())}

    @classmethod
    def build(
        cls,
        records: Iterable[VulnerabilityRecord],
        config: Optional[Config] = None,
    ) -> "QueryEngine":
        """Build an engine from canonical records.

        Malformed records (no usable id) are skipped and duplicates resolved
        last-write-wins; both are counted in ``engine.build_report``.

        Args:
            records: Ordered canonical records.
            config: Configuration instance. Uses default if not provided.

        Returns:
            A fully built engine.

        Raises:
            TypeError: If ``records`` is not iterable.
        """
        if not isinstance(records, IterableABC) or isinstance(records, (str, bytes)):
            raise TypeError(
                f"Expected an iterable of records, got {type(records).__name__}"
            )

        store, report = RecordStore.build(records)
        stored = store.all()

        categorical = {
            dimension: CategoricalIndex.build(
                stored,
                lambda r, attr=dimension.value: getattr(r, attr),
                name=dimension.value,
            )
            for dimension in CategoricalField
        }
        score_index = RangeIndex.build(
            stored, lambda r: r.numeric_score, name="score"
        )
        published_index = DateIndex.build_from_dates(
            stored, lambda r: r.published_date, name="published_date"
        )

        logger.info(
            "Built engine: %d accepted, %d malformed skipped, %d duplicates resolved",
            report.accepted,
            report.skipped_malformed,
            report.duplicates_resolved,
        )
        if report.accepted and len(published_index) < report.accepted:
            logger.debug(
                "%d records have no parsable publication date",
                report.accepted - len(published_index),
            )

        return cls(
            store,
            categorical,
            score_index,
            published_index,
            report,
            config=config,
        )

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_by_id(self, record_id: str) -> Optional[VulnerabilityRecord]:
        """Return the record with ``record_id``, or None."""
        return self._store.get(record_id)

    def get_all(self) -> List[VulnerabilityRecord]:
        """Return every record in insertion order."""
        return list(self._store.all())

    @property
    def size(self) -> int:
        return self._store.size()

    def __len__(self) -> int:
        return self._store.size()

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def score_index(self) -> RangeIndex:
        return self._score_index

    @property
    def published_index(self) -> DateIndex:
        return self._published_index

    def categorical_index(self, dimension: CategoricalField) -> CategoricalIndex:
        return self._categorical[CategoricalField(dimension)]

    def unique_values(self, dimension: CategoricalField) -> List[str]:
        """Sorted distinct values of a categorical field."""
        return self.categorical_index(dimension).unique_values()

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    @staticmethod
    def _narrow(candidate: Optional[Set[str]], ids: Set[str]) -> Set[str]:
        return set(ids) if candidate is None else candidate & ids

    def _range_is_total(self, index: RangeIndex, low: float, high: float) -> bool:
        # Every stored record is indexed and the window spans all of them
        return len(index) == self._store.size() and index.covers(low, high)

    def candidate_ids(self, spec: FilterSpec) -> Optional[Set[str]]:
        """Resolve a filter to an id set.

        Returns:
            None when the filter leaves every dimension unconstrained,
            otherwise the set of matching ids (possibly empty).
        """
        candidate: Optional[Set[str]] = None

        for dimension in CategoricalField:
            values = spec.values_for(dimension)
            if not values:
                continue
            ids = self._categorical[dimension].lookup_any(values)
            candidate = self._narrow(candidate, ids)
            if not candidate:
                return set()

        score = spec.score_range
        if score.is_constrained:
            if score.is_inverted:
                return set()
            if not self._range_is_total(self._score_index, score.min, score.max):
                ids = self._score_index.query_range(score.min, score.max)
                candidate = self._narrow(candidate, ids)
                if not candidate:
                    return set()

        dates = spec.date_range
        if dates.is_constrained:
            if dates.is_inverted:
                return set()
            start, end = dates.start_timestamp, dates.end_timestamp
            if not self._range_is_total(self._published_index, start, end):
                ids = self._published_index.query_range(start, end)
                candidate = self._narrow(candidate, ids)
                if not candidate:
                    return set()

        excluded_status = ANALYSIS_EXCLUDED_STATUS[spec.analysis_mode]
        if excluded_status is not None:
            excluded = self._categorical[CategoricalField.STATUS].lookup(excluded_status)
            if excluded:
                if candidate is None:
                    candidate = set(self._store.ids())
                candidate = candidate - excluded

        return candidate

    def _materialize(self, ids: Set[str]) -> List[VulnerabilityRecord]:
        if not ids:
            return []
        if len(ids) < self._store.size() * _SPARSE_RATIO:
            ordered = sorted(ids, key=self._positions.__getitem__)
            return [self._store.get(record_id) for record_id in ordered]
        return [record for record in self._store.all() if record.id in ids]

    def query(self, spec: Optional[FilterSpec] = None) -> List[VulnerabilityRecord]:
        """Return records matching ``spec`` in insertion order.

        Args:
            spec: Filter to apply. None matches everything.

        Returns:
            Matching records. An unconstrained filter returns get_all().
        """
        if spec is None:
            return self.get_all()
        candidate = self.candidate_ids(spec)
        if candidate is None:
            return self.get_all()
        return self._materialize(candidate)

    def count(self, spec: Optional[FilterSpec] = None) -> int:
        """Number of records matching ``spec``."""
        if spec is None:
            return self.size
        candidate = self.candidate_ids(spec)
        return self.size if candidate is None else len(candidate)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def generate_stats(
        self,
        records: Optional[Iterable[VulnerabilityRecord]] = None,
        grouping: Optional[TimeGrouping] = None,
        top_vendors: Optional[int] = None,
    ) -> Stats:
        """Summarise the dataset or a caller-supplied subset of it.

        Args:
            records: Records to summarise (e.g. a query() result). Defaults
                to every stored record.
            grouping: Timeline bucket. Defaults to the configured grouping.
            top_vendors: Vendor cap. Defaults to the configured cap.
        """
        if records is None:
            records = self._store.all()
        return stats_service.generate_stats(
            records,
            grouping=grouping or self.config.timeline_grouping,
            top_vendors=self.config.top_vendors if top_vendors is None else top_vendors,
        )

    def __repr__(self) -> str:
        return f"QueryEngine(records={self.size})"
