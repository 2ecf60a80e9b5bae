"""
End-to-end tests for the admission pipeline.
"""

import pytest

from pathway.models.patient import PatientStatus
from pathway.pipeline import AdmissionPipeline
from pathway.ingestion.synthetic_data import SyntheticAdmissionGenerator

from conftest import make_raw


@pytest.fixture
def result(raw_admissions, directory, route_date):
    return AdmissionPipeline().run(raw_admissions, directory, route_date)


class TestAdmissionPipeline:

    def test_counts(self, result):
        assert len(result.records) == 5
        assert result.skipped_count == 1
        assert len(result.assignment.routes) == 3

    def test_records_in_outreach_order(self, result):
        assert [r.id for r in result.records] == [
            "pred-001",
            "pred-003",
            "pred-004",
            "pred-002",
            "pred-005",
        ]
        assert [r.marketing_priority for r in result.records] == [1, 1, 2, 3, 5]

    def test_assigned_marketer_set_from_routes(self, result):
        marketers = {r.id: r.assigned_marketer for r in result.records}
        assert marketers["pred-001"] == "Sarah Johnson"
        assert marketers["pred-002"] == "Mike Rodriguez"
        assert marketers["pred-003"] == "Emily Chen"
        assert marketers["pred-004"] is None

    def test_uncovered_eligible_patient_reported(self, result):
        assert result.assignment.unassigned == ["pred-004"]

    def test_analytics(self, result):
        analytics = result.analytics
        assert analytics.total_admissions == 5
        assert analytics.eligible_patients == 4
        assert analytics.potential_revenue == 23280.0

        hotspots = {z.zip_code: z for z in analytics.zip_code_hotspots}
        assert hotspots["48202"].coverage is True
        assert hotspots["49684"].coverage is False

    def test_terminal_patients_not_routed(self, directory, route_date):
        raws = [
            make_raw(id="done", status="discharged", actualDischarge="2024-01-16T12:00:00Z"),
            make_raw(id="gone", status="lost"),
        ]
        result = AdmissionPipeline().run(raws, directory, route_date)

        assert result.assignment.routes == []
        assert result.assignment.unassigned == []
        assert all(r.marketing_priority == 5 for r in result.records)

    def test_duplicate_admission_routed_once(self, directory, route_date):
        result = AdmissionPipeline().run([make_raw(), make_raw()], directory, route_date)

        assert [r.id for r in result.records] == ["pred-001"]
        assert result.skipped_count == 1
        routed = [pid for route in result.assignment.routes for pid in route.patient_ids]
        assert routed + result.assignment.unassigned == ["pred-001"]
        assert result.analytics.total_admissions == 1

    def test_rebuild_is_deterministic(self, result, directory, route_date):
        pipeline = AdmissionPipeline()
        again = pipeline.rebuild(result.records, directory, route_date)
        assert [r.model_dump() for r in again.records] == [r.model_dump() for r in result.records]
        assert again.assignment == result.assignment


class TestSyntheticAdmissions:

    def test_seeded_generation_is_reproducible(self, route_date):
        first = SyntheticAdmissionGenerator(seed=7).generate_admissions(10, as_of=route_date)
        second = SyntheticAdmissionGenerator(seed=7).generate_admissions(10, as_of=route_date)
        assert first == second

    def test_synthetic_batch_flows_through_pipeline(self, directory, route_date):
        raws = SyntheticAdmissionGenerator(seed=42).generate_admissions(40, as_of=route_date)
        result = AdmissionPipeline().run(raws, directory, route_date)

        assert len(result.records) == 40
        assert result.skipped_count == 0

        routed = {pid for route in result.assignment.routes for pid in route.patient_ids}
        eligible_active = {
            r.id for r in result.records
            if r.home_health_eligible and r.status != PatientStatus.LOST and r.status != PatientStatus.DISCHARGED
        }
        assert routed | set(result.assignment.unassigned) == eligible_active
