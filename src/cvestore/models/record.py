"""Canonical vulnerability record.

Records arrive already normalised by the ingestion layer. This module only
defines the shape and the accessors the indices use; it never guesses field
names or unwraps nested documents.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple

from cvestore.dates import parse_timestamp

# Canonical (camelCase) key -> attribute name
_FIELD_MAP = {
    "id": "id",
    "severity": "severity",
    "status": "status",
    "score": "score",
    "vendor": "vendor",
    "product": "product",
    "vulnerabilityType": "vulnerability_type",
    "publishedDate": "published_date",
    "lastModifiedDate": "last_modified_date",
    "weaknessId": "weakness_id",
    "summary": "summary",
    "references": "references",
}


@dataclass(frozen=True)
class VulnerabilityRecord:
    """A single vulnerability as stored by the engine.

    Attributes:
        id: Vulnerability identifier (e.g., "CVE-2024-1234").
        severity: Severity label (critical, high, medium, low, info, unknown).
        status: Free-form triage status.
        score: CVSS base score, nominally 0.0-10.0. May be missing or invalid.
        vendor: Vendor name.
        product: Product name.
        vulnerability_type: Vulnerability class (e.g., "xss").
        published_date: ISO-8601 publication date. May be unparsable.
        last_modified_date: ISO-8601 modification date. May be unparsable.
        weakness_id: CWE identifier, not indexed.
        summary: Free text, not indexed.
        references: Reference URLs, not indexed.
    """

    id: Optional[str]
    severity: Optional[str] = None
    status: Optional[str] = None
    score: Optional[Any] = None
    vendor: Optional[str] = None
    product: Optional[str] = None
    vulnerability_type: Optional[str] = None
    published_date: Optional[str] = None
    last_modified_date: Optional[str] = None
    weakness_id: Optional[str] = None
    summary: Optional[str] = None
    references: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def has_valid_id(self) -> bool:
        """True when the record carries a usable identifier."""
        return isinstance(self.id, str) and bool(self.id.strip())

    @property
    def numeric_score(self) -> Optional[float]:
        """Score as a finite float, or None when absent or invalid."""
        if self.score is None or isinstance(self.score, bool):
            return None
        try:
            value = float(self.score)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(value):
            return None
        return value

    @property
    def published_timestamp(self) -> Optional[float]:
        """Publication date as a UTC timestamp, or None if unparsable."""
        return parse_timestamp(self.published_date)

    @property
    def last_modified_timestamp(self) -> Optional[float]:
        """Modification date as a UTC timestamp, or None if unparsable."""
        return parse_timestamp(self.last_modified_date)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "VulnerabilityRecord":
        """Build a record from a canonical dictionary.

        Accepts camelCase keys (``vulnerabilityType``) as well as the
        attribute names (``vulnerability_type``). Unknown keys are ignored.
        """
        kwargs: dict[str, Any] = {}
        for key, attr in _FIELD_MAP.items():
            if key in data:
                kwargs[attr] = data[key]
            elif attr in data:
                kwargs[attr] = data[attr]

        if "id" not in kwargs:
            kwargs["id"] = None

        refs = kwargs.get("references")
        if refs is None:
            kwargs["references"] = ()
        elif isinstance(refs, str):
            kwargs["references"] = (refs,)
        elif isinstance(refs, (list, tuple)):
            kwargs["references"] = tuple(str(r) for r in refs)
        else:
            kwargs["references"] = ()

        return cls(**kwargs)

    def to_dict(self) -> dict:
        """Convert to a canonical camelCase dictionary."""
        result = {key: getattr(self, attr) for key, attr in _FIELD_MAP.items()}
        result["references"] = list(self.references)
        return result
