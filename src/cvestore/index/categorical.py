"""Value -> id-set index for one categorical attribute."""

from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Set

from cvestore.models.record import VulnerabilityRecord

CategoryAccessor = Callable[[VulnerabilityRecord], Optional[str]]

_EMPTY: FrozenSet[str] = frozenset()


class CategoricalIndex:
    """Groups record ids by the value of one attribute.

    Records whose attribute is not a non-empty string are left out.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._groups: Dict[str, Set[str]] = {}

    @classmethod
    def build(
        cls,
        records: Iterable[VulnerabilityRecord],
        accessor: CategoryAccessor,
        name: str = "",
    ) -> "CategoricalIndex":
        """Build the index.

        Args:
            records: Records to index (ids assumed unique).
            accessor: Returns the attribute value for a record.
            name: Label used in logs and repr.
        """
        index = cls(name)
        for record in records:
            value = accessor(record)
            if not isinstance(value, str) or not value:
                continue
            index._groups.setdefault(value, set()).add(record.id)
        return index

    def lookup(self, value: str) -> FrozenSet[str]:
        """Ids carrying ``value``; empty for unknown values."""
        ids = self._groups.get(value)
        return frozenset(ids) if ids else _EMPTY

    def lookup_any(self, values: Iterable[str]) -> Set[str]:
        """Union of lookup() over ``values``.

        An empty ``values`` yields an empty set. Treating an empty selection
        as "no constraint" is the caller's decision.
        """
        result: Set[str] = set()
        for value in values:
            ids = self._groups.get(value)
            if ids:
                result |= ids
        return result

    def unique_values(self) -> List[str]:
        """Indexed values, sorted."""
        return sorted(self._groups)

    def count(self, value: str) -> int:
        return len(self._groups.get(value, ()))

    def __len__(self) -> int:
        return sum(len(ids) for ids in self._groups.values())

    def __repr__(self) -> str:
        return f"CategoricalIndex({self.name!r}, values={len(self._groups)})"
