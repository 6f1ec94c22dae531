"""Owner of the "current engine" for an application.

The handle holds at most one published QueryEngine. load() builds a new
engine off to the side and publishes it with a single reference
assignment, so a reader sees either the old snapshot or the new one.
Readers never lock. Loads are serialised so two writers cannot interleave.

Before the first successful load, every read returns an empty result.
"""

import logging
import threading
from typing import Iterable, List, Optional

from cvestore.constants import TimeGrouping
from cvestore.core.config import Config, get_config
from cvestore.models.query_filters import CategoricalField, FilterSpec
from cvestore.models.record import VulnerabilityRecord
from cvestore.models.stats import BuildReport, Stats
from cvestore.services.engine import QueryEngine

logger = logging.getLogger(__name__)


class EngineHandle:
    """Explicitly owned reference to the current engine snapshot."""

    def __init__(self, config: Optional[Config] = None):
        """Initialize an empty handle.

        Args:
            config: Configuration passed to every engine built here.
        """
        self.config = config or get_config()
        self._engine: Optional[QueryEngine] = None
        self._write_lock = threading.Lock()
        self._generation = 0

    @property
    def engine(self) -> Optional[QueryEngine]:
        """The published snapshot, or None before the first load."""
        return self._engine

    @property
    def is_loaded(self) -> bool:
        return self._engine is not None

    @property
    def generation(self) -> int:
        """Number of snapshots published so far."""
        return self._generation

    def load(self, records: Iterable[VulnerabilityRecord]) -> BuildReport:
        """Build a new engine from ``records`` and publish it.

        If the build fails, the previous snapshot stays published.

        Returns:
            The BuildReport of the new engine.

        Raises:
            TypeError: If ``records`` is not iterable.
        """
        with self._write_lock:
            engine = QueryEngine.build(records, config=self.config)
            self.publish(engine)
            return engine.build_report

    def publish(self, engine: QueryEngine) -> None:
        """Replace the current snapshot with a fully built engine."""
        self._engine = engine
        self._generation += 1
        logger.info(
            "Published engine generation %d with %d records",
            self._generation,
            engine.size,
        )

    def snapshot(self) -> Optional[QueryEngine]:
        """Return the current engine for a sequence of consistent reads."""
        return self._engine

    def get_by_id(self, record_id: str) -> Optional[VulnerabilityRecord]:
        engine = self._engine
        return engine.get_by_id(record_id) if engine is not None else None

    def get_all(self) -> List[VulnerabilityRecord]:
        engine = self._engine
        return engine.get_all() if engine is not None else []

    def query(self, spec: Optional[FilterSpec] = None) -> List[VulnerabilityRecord]:
        engine = self._engine
        return engine.query(spec) if engine is not None else []

    def unique_values(self, dimension: CategoricalField) -> List[str]:
        engine = self._engine
        return engine.unique_values(dimension) if engine is not None else []

    def generate_stats(
        self,
        records: Optional[Iterable[VulnerabilityRecord]] = None,
        grouping: Optional[TimeGrouping] = None,
        top_vendors: Optional[int] = None,
    ) -> Stats:
        """Statistics for the current snapshot; zero counts before any load."""
        engine = self._engine
        if engine is None:
            return Stats()
        return engine.generate_stats(records, grouping=grouping, top_vendors=top_vendors)
