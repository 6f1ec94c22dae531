"""Unit tests for the benchmark helpers."""

from datetime import datetime, timezone

import pytest

from cvestore.services.benchmark import (
    INDEXED,
    SCAN,
    BenchmarkResult,
    analyze_results,
    benchmark_filters,
    generate_dataset,
    run_benchmark,
)
from cvestore.services.engine import QueryEngine
from cvestore.services.scan import ScanService

NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)


class TestGenerateDataset:
    """Tests for generate_dataset()."""

    def test_size_and_unique_ids(self):
        """Generated records should have unique ids."""
        records = generate_dataset(200, seed=1, now=NOW)
        assert len(records) == 200
        assert len({r.id for r in records}) == 200

    def test_reproducible(self):
        """The same seed should produce the same data."""
        assert generate_dataset(20, seed=7, now=NOW) == generate_dataset(20, seed=7, now=NOW)

    def test_scores_follow_severity(self):
        """Critical records should score at least 9."""
        records = generate_dataset(300, seed=3, now=NOW)
        critical = [r for r in records if r.severity == "CRITICAL"]
        assert critical
        assert all(r.numeric_score >= 9.0 for r in critical)

    def test_dates_within_window(self):
        """Publication dates should fall within the last five years."""
        records = generate_dataset(100, seed=5, now=NOW)
        for record in records:
            assert record.published_timestamp is not None
            assert record.published_timestamp <= NOW.timestamp()


class TestRunBenchmark:
    """Tests for run_benchmark() and analyze_results()."""

    def test_results_are_paired(self):
        """Each operation should have a scan and an indexed timing."""
        results = run_benchmark(generate_dataset(300, seed=11, now=NOW), lookups=20)
        operations = {r.operation for r in results}
        assert operations == {
            "Fetch All Data",
            "Filter High Severity",
            "Complex Filter",
            "Generate Stats",
            "Multiple CVE Lookups",
        }
        for operation in operations:
            names = {r.name for r in results if r.operation == operation}
            assert names == {SCAN, INDEXED}
        lookups = [r for r in results if r.operation == "Multiple CVE Lookups"]
        assert all(r.items_processed == 20 for r in lookups)

    def test_empty_dataset_rejected(self):
        """Benchmarking nothing should raise ValueError."""
        with pytest.raises(ValueError):
            run_benchmark([])

    def test_benchmark_filters_agree(self):
        """The benchmark filters should select the same records either way."""
        records = generate_dataset(500, seed=13, now=NOW)
        engine = QueryEngine.build(records)
        scan = ScanService(records)
        for spec in benchmark_filters().values():
            assert [r.id for r in engine.query(spec)] == scan.filter_ids(spec)

    def test_analyze_results(self):
        """Improvement should be computed relative to the scan time."""
        results = [
            BenchmarkResult(SCAN, "op", 2.0, 10),
            BenchmarkResult(INDEXED, "op", 0.5, 10),
            BenchmarkResult(SCAN, "other", 1.0, 10),
            BenchmarkResult(INDEXED, "other", 1.0, 10),
            BenchmarkResult(SCAN, "unpaired", 1.0, 10),
        ]
        analysis = analyze_results(results)
        assert [d["operation"] for d in analysis["details"]] == ["op", "other"]
        assert analysis["details"][0]["improvement"] == pytest.approx(75.0)
        assert analysis["average_improvement"] == pytest.approx(37.5)
        assert analysis["best_operation"] == "op"

    def test_analyze_empty(self):
        """No results should give an empty analysis."""
        assert analyze_results([]) == {
            "details": [],
            "average_improvement": 0.0,
            "best_operation": None,
        }

    def test_items_per_second(self):
        """Throughput should divide items by seconds."""
        assert BenchmarkResult(SCAN, "op", 0.5, 10).items_per_second == 20
        assert BenchmarkResult(SCAN, "op", 0.0, 10).items_per_second == float("inf")
