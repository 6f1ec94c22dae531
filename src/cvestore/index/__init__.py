"""In-memory index structures for cvestore."""

from cvestore.index.categorical import CategoricalIndex
from cvestore.index.ranges import DateIndex, RangeIndex
from cvestore.index.store import RecordStore

__all__ = [
    "CategoricalIndex",
    "DateIndex",
    "RangeIndex",
    "RecordStore",
]
