"""Tests for coverage data models."""

from __future__ import annotations

from datetime import datetime, timezone

from covermap.models.catalog import Dataset
from covermap.models.coverage import FAILED, CoverageSummary, IntersectionResult, PrecomputedCoverage
from tests.conftest import CA, NY, TEST_REGIONS, TX, make_record


class TestIntersectionResult:
    def test_flags(self):
        assert IntersectionResult(CA, 3).has_data
        assert not IntersectionResult(CA, 0).has_data
        assert IntersectionResult(CA, FAILED).failed
        assert not IntersectionResult(CA, FAILED).has_data


class TestCoverageSummary:
    def test_failed_excluded_from_total(self):
        results = [IntersectionResult(CA, 5), IntersectionResult(TX, FAILED), IntersectionResult(NY, 0)]
        summary = CoverageSummary.from_results(results)
        assert summary.total_features == 5
        assert summary.failed_count == 1

    def test_empty(self):
        assert CoverageSummary.from_results([]).summary_text() == "0 of 0 states with data · 0 intersections"


class TestPrecomputedCoverage:
    def test_from_results(self):
        results = [IntersectionResult(CA, 5), IntersectionResult(TX, FAILED), IntersectionResult(NY, 2)]
        record = PrecomputedCoverage.from_results(results, generated=datetime(2025, 1, 2, tzinfo=timezone.utc))
        assert record.states == {"CA": 5, "TX": -1, "NY": 2}
        assert record.states_with_data == 2
        assert record.total_intersections == 7

    def test_json_aliases(self):
        data = make_record({"CA": 3}).model_dump(mode="json", by_alias=True)
        assert data["statesWithData"] == 1
        assert data["totalIntersections"] == 3
        assert data["generated"].startswith("2025-03-09")

        parsed = PrecomputedCoverage.model_validate(data)
        assert parsed.states == {"CA": 3}
        assert parsed.total_intersections == 3

    def test_reconcile_fills_missing_with_zero(self):
        results = make_record({"CA": 3, "ZZ": 9}).reconcile(TEST_REGIONS)
        assert [(r.region.abbreviation, r.count) for r in results] == [("CA", 3), ("TX", 0), ("NY", 0)]

    def test_text_summary(self):
        summary = make_record({"CA": 3, "TX": 0, "NY": FAILED}).text_summary()
        assert summary.states_with_data == 1
        assert summary.total_features == 3
        assert summary.failed_count == 1

    def test_generated_label(self):
        assert make_record({}).generated_label == "Mar 9, 2025"


class TestDataset:
    def test_embedded_coverage_alias(self):
        ds = Dataset.model_validate({
            "id": "blm_acec",
            "public_web_service": "https://gis.blm.gov/arcgis/rest/services/lands/BLM_Natl_ACEC/MapServer",
            "geometry_type": "POLYGON",
            "maturity": "stable",
            "_coverage": {"generated": "2025-03-09T00:00:00Z", "states": {"NV": 40}},
        })
        assert ds.coverage is not None
        assert ds.coverage.count_for("NV") == 40
        assert ds.coverage.count_for("CA") == 0

    def test_no_coverage(self):
        assert Dataset(id="x").coverage is None
