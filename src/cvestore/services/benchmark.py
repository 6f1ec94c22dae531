"""Benchmark the indexed engine against the linear scan.

Also provides a synthetic dataset generator so benchmarks and tests can run
without real data.
"""

import logging
import random
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Sequence

from cvestore.constants import STATUS_AI_INVALID_NORISK, STATUS_INVALID_NORISK
from cvestore.models.query_filters import DateRange, FilterSpec, ScoreRange
from cvestore.models.record import VulnerabilityRecord
from cvestore.services.engine import QueryEngine
from cvestore.services.scan import ScanService
from cvestore.services.stats import generate_stats

logger = logging.getLogger(__name__)

SCAN = "scan"
INDEXED = "indexed"

SYNTHETIC_SEVERITIES = ["CRITICAL", "HIGH", "MEDIUM", "LOW", "NONE"]
SYNTHETIC_VENDORS = ["apache", "microsoft", "oracle", "google", "ibm", "redhat"]
SYNTHETIC_PRODUCTS = ["httpd", "windows", "java", "chrome", "db2", "linux"]
SYNTHETIC_TYPES = ["overflow", "xss", "sql-injection", "rce", "dos", "privilege-escalation"]
SYNTHETIC_STATUSES = [
    "fixed",
    "unfixed",
    "in-progress",
    STATUS_INVALID_NORISK,
    STATUS_AI_INVALID_NORISK,
]

# Score band per synthetic severity: (base, spread)
_SCORE_BANDS = {
    "CRITICAL": (9.0, 1.0),
    "HIGH": (7.0, 2.0),
    "MEDIUM": (4.0, 3.0),
    "LOW": (1.0, 3.0),
    "NONE": (0.0, 1.0),
}


@dataclass(frozen=True)
class BenchmarkResult:
    """Timing of one operation for one implementation."""

    name: str
    operation: str
    execution_time: float
    items_processed: int

    @property
    def items_per_second(self) -> float:
        if self.execution_time <= 0:
            return float("inf")
        return self.items_processed / self.execution_time

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "operation": self.operation,
            "executionTime": self.execution_time,
            "itemsProcessed": self.items_processed,
            "itemsPerSecond": self.items_per_second,
        }


def generate_dataset(
    size: int,
    seed: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[VulnerabilityRecord]:
    """Generate ``size`` synthetic records published over the last five years.

    Args:
        size: Number of records.
        seed: Seed for reproducible output.
        now: Upper bound of the publication window. Defaults to the current time.
    """
    rng = random.Random(seed)
    now = now or datetime.now(timezone.utc)
    window = timedelta(days=5 * 365).total_seconds()
    start = now - timedelta(days=5 * 365)

    def random_date() -> str:
        return (start + timedelta(seconds=rng.random() * window)).isoformat()

    records = []
    for i in range(size):
        severity = rng.choice(SYNTHETIC_SEVERITIES)
        base, spread = _SCORE_BANDS[severity]
        records.append(
            VulnerabilityRecord(
                id=f"CVE-{2020 + rng.randrange(4)}-{10000 + i}",
                severity=severity,
                status=rng.choice(SYNTHETIC_STATUSES),
                score=round(base + rng.random() * spread, 1),
                vendor=rng.choice(SYNTHETIC_VENDORS),
                product=rng.choice(SYNTHETIC_PRODUCTS),
                vulnerability_type=rng.choice(SYNTHETIC_TYPES),
                published_date=random_date(),
                last_modified_date=random_date(),
                weakness_id=f"CWE-{100 + rng.randrange(900)}",
                summary=f"Test vulnerability {i}",
            )
        )
    return records


def _measure(
    fn: Callable[[], object], name: str, operation: str, items: int
) -> BenchmarkResult:
    start = time.perf_counter()
    fn()
    elapsed = time.perf_counter() - start
    return BenchmarkResult(name, operation, elapsed, items)


def benchmark_filters() -> Dict[str, FilterSpec]:
    """Filters exercised by run_benchmark, keyed by operation name."""
    return {
        "Filter High Severity": FilterSpec(severity={"HIGH", "high"}),
        "Complex Filter": FilterSpec(
            severity={"HIGH", "high", "CRITICAL", "critical"},
            vendor={"apache", "Apache", "APACHE"},
            date_range=DateRange(start="2020-01-01"),
            score_range=ScoreRange(min=7, max=10),
        ),
    }


def run_benchmark(
    records: Sequence[VulnerabilityRecord], lookups: int = 100
) -> List[BenchmarkResult]:
    """Time scan and indexed implementations over the same records.

    Builds happen outside the timed sections.

    Args:
        records: Dataset to benchmark.
        lookups: Number of id lookups to time.

    Returns:
        Results in (scan, indexed) pairs per operation.

    Raises:
        ValueError: If ``records`` is empty.
    """
    if not records:
        raise ValueError("No records to benchmark. Load or generate data first.")

    scan = ScanService(records)
    engine = QueryEngine.build(records)
    size = engine.size
    results: List[BenchmarkResult] = []

    results.append(_measure(scan.query, SCAN, "Fetch All Data", size))
    results.append(_measure(engine.get_all, INDEXED, "Fetch All Data", size))

    for operation, spec in benchmark_filters().items():
        results.append(_measure(lambda: scan.query(spec), SCAN, operation, size))
        results.append(_measure(lambda: engine.query(spec), INDEXED, operation, size))

    results.append(
        _measure(lambda: generate_stats(scan.query()), SCAN, "Generate Stats", size)
    )
    results.append(_measure(engine.generate_stats, INDEXED, "Generate Stats", size))

    sample = [record.id for record in engine.get_all()[:lookups]]
    results.append(
        _measure(
            lambda: [scan.find_by_id(i) for i in sample],
            SCAN,
            "Multiple CVE Lookups",
            len(sample),
        )
    )
    results.append(
        _measure(
            lambda: [engine.get_by_id(i) for i in sample],
            INDEXED,
            "Multiple CVE Lookups",
            len(sample),
        )
    )

    for result in results:
        logger.debug(
            "%s %s: %.2fms, %.2f items/s",
            result.name,
            result.operation,
            result.execution_time * 1000,
            result.items_per_second,
        )
    return results


def analyze_results(results: Sequence[BenchmarkResult]) -> dict:
    """Pair scan/indexed timings and compute the improvement per operation.

    Returns:
        Dictionary with ``details`` (one entry per operation) and
        ``average_improvement`` / ``best_operation`` summaries.
    """
    pairs: Dict[str, Dict[str, BenchmarkResult]] = {}
    for result in results:
        pairs.setdefault(result.operation, {})[result.name] = result

    details = []
    for operation, pair in pairs.items():
        if SCAN not in pair or INDEXED not in pair:
            continue
        scan_time = pair[SCAN].execution_time
        indexed_time = pair[INDEXED].execution_time
        improvement = (
            (scan_time - indexed_time) / scan_time * 100 if scan_time > 0 else 0.0
        )
        details.append(
            {
                "operation": operation,
                "scan_time": scan_time,
                "indexed_time": indexed_time,
                "improvement": improvement,
            }
        )

    if not details:
        return {"details": [], "average_improvement": 0.0, "best_operation": None}

    best = max(details, key=lambda d: d["improvement"])
    return {
        "details": details,
        "average_improvement": sum(d["improvement"] for d in details) / len(details),
        "best_operation": best["operation"],
    }
