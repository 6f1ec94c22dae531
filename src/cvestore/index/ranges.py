"""Sorted indices for numeric and temporal range queries.

Both indices keep two parallel lists, values ascending and the matching
ids, and answer inclusive [min, max] queries with two binary searches:
O(log n + k) for k results.
"""

import math
from bisect import bisect_left, bisect_right
from typing import Callable, Iterable, List, Optional, Set

from cvestore.dates import DateLike, parse_timestamp
from cvestore.models.record import VulnerabilityRecord

NumericAccessor = Callable[[VulnerabilityRecord], Optional[float]]


class RangeIndex:
    """Sorted (value, id) index over one numeric attribute.

    Entries may be appended with add(), which leaves the index dirty; the
    next query re-sorts before searching. build() sorts once at the end.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._values: List[float] = []
        self._ids: List[str] = []
        self._dirty = False

    @classmethod
    def build(
        cls,
        records: Iterable[VulnerabilityRecord],
        accessor: NumericAccessor,
        name: str = "",
    ) -> "RangeIndex":
        """Build the index from every record with a finite value.

        Ties keep input order.
        """
        index = cls(name)
        for record in records:
            index.add(accessor(record), record.id)
        index._ensure_sorted()
        return index

    def add(self, value: Optional[float], record_id: str) -> bool:
        """Append an entry. Absent and non-finite values are ignored.

        Returns:
            True if the entry was added.
        """
        if value is None or not math.isfinite(value):
            return False
        self._values.append(value)
        self._ids.append(record_id)
        self._dirty = True
        return True

    def _ensure_sorted(self) -> None:
        if not self._dirty:
            return
        # sorted() is stable, so equal values keep append order
        order = sorted(range(len(self._values)), key=self._values.__getitem__)
        self._values = [self._values[i] for i in order]
        self._ids = [self._ids[i] for i in order]
        self._dirty = False

    def query_range(self, min_value: float, max_value: float) -> Set[str]:
        """Ids whose value lies in [min_value, max_value].

        An inverted window returns an empty set.
        """
        self._ensure_sorted()
        if min_value > max_value:
            return set()
        lo = bisect_left(self._values, min_value)
        hi = bisect_right(self._values, max_value)
        return set(self._ids[lo:hi])

    @property
    def min_value(self) -> Optional[float]:
        self._ensure_sorted()
        return self._values[0] if self._values else None

    @property
    def max_value(self) -> Optional[float]:
        self._ensure_sorted()
        return self._values[-1] if self._values else None

    def covers(self, min_value: float, max_value: float) -> bool:
        """True when the window contains every indexed value."""
        if not self._values:
            return True
        return min_value <= self.min_value and max_value >= self.max_value

    def is_sorted(self) -> bool:
        return not self._dirty

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, entries={len(self._values)})"


class DateIndex(RangeIndex):
    """RangeIndex keyed by UTC timestamp.

    Open ends map to -inf/+inf, so an open range goes through the same
    binary search as a closed one.
    """

    @classmethod
    def build_from_dates(
        cls,
        records: Iterable[VulnerabilityRecord],
        accessor: Callable[[VulnerabilityRecord], Optional[DateLike]],
        name: str = "",
    ) -> "DateIndex":
        """Build the index, parsing each date once. Unparsable dates are skipped."""
        return cls.build(records, lambda r: parse_timestamp(accessor(r)), name)
