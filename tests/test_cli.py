"""Tests for the CLI commands."""

import json

import pytest
from typer.testing import CliRunner

from cvestore.cli.formatters import get_severity_color
from cvestore.cli.main import app, normalize_date, normalize_end_date, read_records

runner = CliRunner()


class TestHelpers:
    """Tests for CLI helper functions."""

    @pytest.mark.parametrize(
        "value, expected",
        [("2024", "2024-01-01"), ("2024-06", "2024-06-01"), ("2024-06-15", "2024-06-15")],
    )
    def test_normalize_date(self, value, expected):
        """Partial dates should be expanded."""
        assert normalize_date(value) == expected

    def test_severity_color(self):
        """Colors should follow the CVSS bands."""
        assert get_severity_color(None) == "dim"
        assert get_severity_color(9.8) == "red bold"
        assert get_severity_color(7.0) == "red"
        assert get_severity_color(5.0) == "yellow"
        assert get_severity_color(1.0) == "green"

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2024", "2024-12-31"),
            ("2024-02", "2024-02-29"),
            ("2023-02", "2023-02-28"),
            ("2024-06", "2024-06-30"),
            ("2024-06-15", "2024-06-15"),
            ("2024-13", "2024-13"),
        ],
    )
    def test_normalize_end_date(self, value, expected):
        """Partial end dates should expand to the last day they cover."""
        assert normalize_end_date(value) == expected

    def test_read_records(self, sample_json_file):
        """read_records should parse every array entry."""
        records = read_records(sample_json_file)
        assert len(records) == 5
        assert records[0].id == "CVE-2022-2196"

    def test_read_records_rejects_object(self, temp_data_dir):
        """A top-level object is not a record array."""
        path = temp_data_dir / "object.json"
        path.write_text(json.dumps({"records": []}))
        with pytest.raises(ValueError):
            read_records(path)


class TestStatsCommand:
    """Tests for `cvestore stats`."""

    def test_json(self, sample_json_file):
        """JSON stats should include the build report."""
        result = runner.invoke(app, ["stats", str(sample_json_file), "--format", "json"])
        assert result.exit_code == 0
        payload = json.loads(result.stdout[result.stdout.index("{"):])
        assert payload["totalCount"] == 4
        assert payload["buildReport"]["skippedMalformed"] == 1
        assert payload["vendorDistribution"]["Example"] == 2
        assert payload["analysisComparison"] == {"manual": 3, "ai": 3, "both": 2}

    def test_table(self, sample_json_file):
        """Table output should render without error."""
        result = runner.invoke(app, ["stats", str(sample_json_file), "-g", "year"])
        assert result.exit_code == 0
        assert "Vulnerability Statistics" in result.stdout

    def test_invalid_grouping(self, sample_json_file):
        """An unknown grouping should exit with an error."""
        result = runner.invoke(app, ["stats", str(sample_json_file), "-g", "week"])
        assert result.exit_code == 1

    def test_missing_file(self, temp_data_dir):
        """A missing file should exit with an error."""
        result = runner.invoke(app, ["stats", str(temp_data_dir / "nope.json")])
        assert result.exit_code == 1
        assert "not found" in result.stdout

    def test_output_file(self, sample_json_file, temp_data_dir):
        """--output should write JSON to the file."""
        target = temp_data_dir / "stats.json"
        result = runner.invoke(app, ["stats", str(sample_json_file), "-o", str(target)])
        assert result.exit_code == 0
        assert json.loads(target.read_text())["totalCount"] == 4


class TestQueryCommand:
    """Tests for `cvestore query`."""

    def _ids(self, result):
        payload = json.loads(result.stdout[result.stdout.index("{"):])
        return [r["id"] for r in payload["results"]]

    def test_severity_filter(self, sample_json_file):
        """Repeated --severity values should be ORed."""
        result = runner.invoke(
            app,
            ["query", str(sample_json_file), "-s", "high", "-s", "critical", "-f", "json"],
        )
        assert result.exit_code == 0
        assert self._ids(result) == ["CVE-2016-7054", "CVE-2024-1234"]

    def test_score_and_date(self, sample_json_file):
        """Score and date options should combine."""
        result = runner.invoke(
            app,
            [
                "query",
                str(sample_json_file),
                "--min-score",
                "5",
                "--after",
                "2023",
                "-f",
                "json",
            ],
        )
        assert result.exit_code == 0
        assert self._ids(result) == ["CVE-2022-2196", "CVE-2024-1234"]

    def test_analysis_mode(self, sample_json_file):
        """--mode analysis should drop manually invalidated records."""
        result = runner.invoke(
            app, ["query", str(sample_json_file), "-M", "analysis", "-f", "json"]
        )
        assert result.exit_code == 0
        assert "CVE-2016-7054" not in self._ids(result)

    def test_invalid_date(self, sample_json_file):
        """A bad date should exit with an error."""
        result = runner.invoke(app, ["query", str(sample_json_file), "--after", "soon"])
        assert result.exit_code == 1

    def test_invalid_mode(self, sample_json_file):
        """An unknown analysis mode should exit with an error."""
        result = runner.invoke(app, ["query", str(sample_json_file), "-M", "magic"])
        assert result.exit_code == 1

    def test_stats_of_matches(self, sample_json_file):
        """--stats should summarise only the matching records."""
        result = runner.invoke(
            app,
            ["query", str(sample_json_file), "-V", "Example", "--stats", "-f", "json"],
        )
        assert result.exit_code == 0
        payload = json.loads(result.stdout[result.stdout.index("{"):])
        assert payload["totalCount"] == 2

    def test_markdown(self, sample_json_file):
        """Markdown output should contain a table row per match."""
        result = runner.invoke(
            app, ["query", str(sample_json_file), "-V", "Linux", "-f", "markdown"]
        )
        assert result.exit_code == 0
        assert "| CVE-2022-2196 |" in result.stdout

    def test_invalid_format(self, sample_json_file):
        """An unknown format should exit with an error."""
        result = runner.invoke(app, ["query", str(sample_json_file), "-f", "xml"])
        assert result.exit_code == 1


class TestBeforeOption:
    """Tests for partial dates given to --before."""

    @pytest.fixture
    def dated_file(self, temp_data_dir):
        path = temp_data_dir / "dated.json"
        path.write_text(
            json.dumps(
                [
                    {"id": "CVE-1", "publishedDate": "2021-01-01"},
                    {"id": "CVE-2", "publishedDate": "2021-06-01"},
                    {"id": "CVE-4", "publishedDate": "2021-06-30T18:00:00Z"},
                    {"id": "CVE-3", "publishedDate": "2022-01-01"},
                ]
            )
        )
        return path

    def _ids(self, path, before):
        result = runner.invoke(
            app, ["query", str(path), "--before", before, "-f", "json"]
        )
        assert result.exit_code == 0
        payload = json.loads(result.stdout[result.stdout.index("{"):])
        return [r["id"] for r in payload["results"]]

    def test_year(self, dated_file):
        """A bare year should include the whole year."""
        assert self._ids(dated_file, "2021") == ["CVE-1", "CVE-2", "CVE-4"]

    def test_month(self, dated_file):
        """A year and month should include the whole month."""
        assert self._ids(dated_file, "2021-06") == ["CVE-1", "CVE-2", "CVE-4"]
        assert self._ids(dated_file, "2021-05") == ["CVE-1"]

    def test_full_date(self, dated_file):
        """A full date should include that whole day."""
        assert self._ids(dated_file, "2021-06-01") == ["CVE-1", "CVE-2"]

    def test_invalid_month(self, dated_file):
        """An impossible month should exit with an error."""
        result = runner.invoke(app, ["query", str(dated_file), "--before", "2021-13"])
        assert result.exit_code == 1


class TestGetCommand:
    """Tests for `cvestore get`."""

    def test_found(self, sample_json_file):
        """An existing id should print the record."""
        result = runner.invoke(
            app, ["get", str(sample_json_file), "CVE-2022-2196", "-f", "json"]
        )
        assert result.exit_code == 0
        payload = json.loads(result.stdout[result.stdout.index("{"):])
        assert payload["weaknessId"] == "CWE-1188"

    def test_not_found(self, sample_json_file):
        """A missing id should exit with an error."""
        result = runner.invoke(app, ["get", str(sample_json_file), "CVE-0000-0000"])
        assert result.exit_code == 1


class TestValuesCommand:
    """Tests for `cvestore values`."""

    def test_values(self, sample_json_file):
        """Distinct values should be listed in sorted order."""
        result = runner.invoke(
            app, ["values", str(sample_json_file), "vendor", "-f", "json"]
        )
        assert result.exit_code == 0
        payload = json.loads(result.stdout[result.stdout.index("{"):])
        assert payload["values"] == ["Example", "Linux", "OpenSSL"]

    def test_odd_values_in_file(self, temp_data_dir):
        """Non-string values should be ignored and markup printed literally."""
        path = temp_data_dir / "odd.json"
        path.write_text(
            json.dumps(
                [
                    {"id": "CVE-1", "vendor": "[red]acme"},
                    {"id": "CVE-2", "vendor": 42},
                    {"id": "CVE-3", "vendor": ["apache"], "references": 5},
                ]
            )
        )
        result = runner.invoke(app, ["values", str(path), "vendor"])
        assert result.exit_code == 0
        assert "[red]acme" in result.stdout

        result = runner.invoke(app, ["get", str(path), "CVE-1"])
        assert result.exit_code == 0
        assert "[red]acme" in result.stdout

    def test_invalid_field(self, sample_json_file):
        """Unindexed fields should be rejected."""
        result = runner.invoke(app, ["values", str(sample_json_file), "summary"])
        assert result.exit_code == 1


class TestBenchCommand:
    """Tests for `cvestore bench`."""

    def test_synthetic(self):
        """A small synthetic benchmark should report every operation."""
        result = runner.invoke(app, ["bench", "--size", "200", "--seed", "1", "-f", "json"])
        assert result.exit_code == 0
        payload = json.loads(result.stdout[result.stdout.index("{"):])
        assert len(payload["analysis"]["details"]) == 5

    def test_from_file(self, sample_json_file):
        """Benchmarking a data file should succeed."""
        result = runner.invoke(app, ["bench", str(sample_json_file)])
        assert result.exit_code == 0
        assert "Scan vs Indexed" in result.stdout

    def test_invalid_size(self):
        """A non-positive size should exit with an error."""
        result = runner.invoke(app, ["bench", "--size", "0"])
        assert result.exit_code == 1
