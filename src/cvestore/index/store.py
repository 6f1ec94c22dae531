"""Record store keyed by vulnerability id."""

import logging
from typing import Dict, Iterable, Iterator, Optional, Tuple, ValuesView

from cvestore.models.record import VulnerabilityRecord
from cvestore.models.stats import BuildReport

logger = logging.getLogger(__name__)


class RecordStore:
    """Canonical id -> record map that preserves first-seen order.

    Duplicate ids resolve last-write-wins: the later record replaces the
    earlier one but keeps the earlier one's position in iteration order.
    """

    def __init__(self) -> None:
        self._records: Dict[str, VulnerabilityRecord] = {}

    @classmethod
    def build(
        cls, records: Iterable[VulnerabilityRecord]
    ) -> Tuple["RecordStore", BuildReport]:
        """Build a store from an ordered sequence of records.

        Args:
            records: Records in input order.

        Returns:
            The store and a BuildReport describing skipped and duplicate input.

        Raises:
            TypeError: If ``records`` is not iterable.
        """
        store = cls()
        skipped = 0
        duplicates = 0
        for position, record in enumerate(records):
            if not isinstance(record, VulnerabilityRecord) or not record.has_valid_id:
                logger.debug("Skipping malformed record at position %d", position)
                skipped += 1
                continue
            if record.id in store._records:
                duplicates += 1
            # dict assignment keeps the original key position
            store._records[record.id] = record

        report = BuildReport(
            accepted=len(store._records),
            skipped_malformed=skipped,
            duplicates_resolved=duplicates,
        )
        return store, report

    def get(self, record_id: str) -> Optional[VulnerabilityRecord]:
        return self._records.get(record_id)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    def all(self) -> ValuesView[VulnerabilityRecord]:
        """Records in insertion order, as a restartable view."""
        return self._records.values()

    def ids(self) -> Iterator[str]:
        return iter(self._records.keys())

    def size(self) -> int:
        return len(self._records)

    def __len__(self) -> int:
        return len(self._records)
