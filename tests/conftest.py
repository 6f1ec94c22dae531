"""Pytest fixtures for cvestore tests."""

import json
import tempfile
from pathlib import Path
from typing import Generator, List

import pytest

from cvestore.core.config import Config
from cvestore.models.record import VulnerabilityRecord
from cvestore.services.engine import QueryEngine

# =============================================================================
# Sample records
# =============================================================================

RECORD_A = VulnerabilityRecord(
    id="CVE-1",
    severity="HIGH",
    score=7.5,
    vendor="apache",
    published_date="2021-01-01",
)
RECORD_B = VulnerabilityRecord(
    id="CVE-2",
    severity="CRITICAL",
    score=9.8,
    vendor="apache",
    published_date="2021-06-01",
)
RECORD_C = VulnerabilityRecord(
    id="CVE-3",
    severity="LOW",
    score=2.0,
    vendor="oracle",
    published_date="2022-01-01",
)

SAMPLE_RECORDS_JSON = [
    {
        "id": "CVE-2022-2196",
        "severity": "medium",
        "status": "fixed",
        "score": 5.8,
        "vendor": "Linux",
        "product": "Linux Kernel",
        "vulnerabilityType": "spectre",
        "publishedDate": "2023-01-09T10:59:53.099Z",
        "lastModifiedDate": "2025-02-13T16:28:57.097Z",
        "weaknessId": "CWE-1188",
        "summary": "A regression exists in the Linux Kernel within KVM.",
        "references": ["https://kernel.dance/#2e7eab81425a"],
    },
    {
        "id": "CVE-2016-7054",
        "severity": "high",
        "status": "invalid - norisk",
        "score": 7.5,
        "vendor": "OpenSSL",
        "product": "OpenSSL",
        "vulnerabilityType": "overflow",
        "publishedDate": "2017-05-04T00:00:00.000Z",
        "weaknessId": "CWE-119",
        "summary": "ChaCha20/Poly1305 heap-buffer-overflow",
        "references": ["https://www.openssl.org/news/secadv/20161110.txt"],
    },
    {
        "id": "CVE-2024-1234",
        "severity": "critical",
        "status": "ai-invalid-norisk",
        "score": 9.8,
        "vendor": "Example",
        "product": "Widget",
        "vulnerabilityType": "rce",
        "publishedDate": "2024-06-01T00:00:00.000Z",
        "summary": "Remote code execution in Widget.",
        "references": [],
    },
    {
        "id": "CVE-2023-0001",
        "severity": "unknown",
        "status": "unfixed",
        "score": None,
        "vendor": "Example",
        "product": "Gadget",
        "vulnerabilityType": "dos",
        "publishedDate": "not a date",
        "summary": "Denial of service without a score.",
    },
    {
        "severity": "low",
        "summary": "Malformed entry without an id.",
    },
]


@pytest.fixture
def scenario_records() -> List[VulnerabilityRecord]:
    """The three records A, B, C used across engine tests."""
    return [RECORD_A, RECORD_B, RECORD_C]


@pytest.fixture
def scenario_engine(scenario_records) -> QueryEngine:
    """Engine built from records A, B, C."""
    return QueryEngine.build(scenario_records, config=Config(top_vendors=10))


@pytest.fixture
def sample_records() -> List[VulnerabilityRecord]:
    """Canonical records parsed from SAMPLE_RECORDS_JSON."""
    return [VulnerabilityRecord.from_dict(item) for item in SAMPLE_RECORDS_JSON]


@pytest.fixture
def sample_engine(sample_records) -> QueryEngine:
    """Engine built from the sample records."""
    return QueryEngine.build(sample_records, config=Config(top_vendors=10))


@pytest.fixture
def temp_data_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test data."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_json_file(temp_data_dir: Path) -> Path:
    """Write SAMPLE_RECORDS_JSON to a temporary file."""
    path = temp_data_dir / "records.json"
    with open(path, "w") as f:
        json.dump(SAMPLE_RECORDS_JSON, f)
    return path
