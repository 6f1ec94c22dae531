"""Statistics over record sets.

Pure functions: they read the records they are given and keep no state, so
they work equally on a whole engine or on a filtered query result.
"""

import math
from typing import Dict, Iterable, List, Optional

from cvestore.constants import (
    STATUS_AI_INVALID_NORISK,
    STATUS_INVALID_NORISK,
    SeverityLevel,
    TimeGrouping,
)
from cvestore.dates import period_key
from cvestore.models.record import VulnerabilityRecord
from cvestore.models.stats import Stats, TimelinePoint


def _severity_label(record: VulnerabilityRecord) -> str:
    severity = record.severity
    if isinstance(severity, str) and severity:
        return severity
    return SeverityLevel.UNKNOWN.value


def _score_bucket(score: Optional[float]) -> Optional[int]:
    if score is None or score < 0 or score > 10:
        return None
    return int(math.floor(score))


def top_counts(counts: Dict[str, int], limit: Optional[int]) -> Dict[str, int]:
    """Order counts by descending count, keeping first-seen order on ties.

    Args:
        counts: Insertion-ordered counts.
        limit: Keep at most this many entries. None or 0 keeps all.
    """
    ordered = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    if limit:
        ordered = ordered[:limit]
    return dict(ordered)


def _timeline(counts: Dict[str, int]) -> List[TimelinePoint]:
    return [TimelinePoint(key, counts[key]) for key in sorted(counts)]


def generate_stats(
    records: Iterable[VulnerabilityRecord],
    grouping: TimeGrouping = TimeGrouping.MONTH,
    top_vendors: Optional[int] = None,
) -> Stats:
    """Summarise records in a single pass.

    Args:
        records: Records to summarise.
        grouping: Timeline bucket size.
        top_vendors: Cap on vendor_distribution entries (None keeps all).

    Returns:
        Stats with counts, distributions, and the publication timeline.
        Records with an unparsable publication date are left out of the
        timeline only.
    """
    grouping = TimeGrouping(grouping)
    total = 0
    severities: Dict[str, int] = {}
    vendors: Dict[str, int] = {}
    periods: Dict[str, int] = {}
    scores = [0] * 11

    for record in records:
        total += 1

        label = _severity_label(record)
        severities[label] = severities.get(label, 0) + 1

        vendor = record.vendor
        if isinstance(vendor, str) and vendor:
            vendors[vendor] = vendors.get(vendor, 0) + 1

        ts = record.published_timestamp
        if ts is not None:
            key = period_key(ts, grouping)
            periods[key] = periods.get(key, 0) + 1

        bucket = _score_bucket(record.numeric_score)
        if bucket is not None:
            scores[bucket] += 1

    return Stats(
        total_count=total,
        severity_distribution=severities,
        vendor_distribution=top_counts(vendors, top_vendors),
        timeline_data=_timeline(periods),
        score_distribution=scores,
    )


def analysis_comparison(records: Iterable[VulnerabilityRecord]) -> Dict[str, int]:
    """Count how many records survive each analysis filter.

    Returns:
        Dictionary with ``manual``, ``ai`` and ``both`` counts.
    """
    manual = ai = both = 0
    for record in records:
        keep_manual = record.status != STATUS_INVALID_NORISK
        keep_ai = record.status != STATUS_AI_INVALID_NORISK
        manual += keep_manual
        ai += keep_ai
        both += keep_manual and keep_ai
    return {"manual": manual, "ai": ai, "both": both}
