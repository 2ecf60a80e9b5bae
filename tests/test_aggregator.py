"""
Tests for the Metrics Aggregator
"""

from datetime import date, datetime

import pytest

from pathway.analytics.aggregator import MetricsAggregator
from pathway.models.patient import PatientStatus

from conftest import make_record


@pytest.fixture
def aggregator(directory):
    return MetricsAggregator(directory.facilities)


@pytest.fixture
def records():
    return [
        make_record(
            id="secured",
            status=PatientStatus.SECURED,
            referral_secured=True,
            contact_attempts=2,
            potential_value=5000.0,
            home_health_eligible=True,
            predicted_los=5,
            predicted_discharge=datetime(2024, 1, 16, 10, 0),
            diagnosis_category="Heart Failure",
            assigned_marketer="Sarah Johnson",
        ),
        make_record(
            id="discharged",
            status=PatientStatus.DISCHARGED,
            referral_secured=True,
            contact_attempts=1,
            potential_value=3000.0,
            home_health_eligible=True,
            predicted_los=4,
            actual_discharge=datetime(2024, 1, 16, 14, 0),
            diagnosis_category="Heart Failure",
        ),
        make_record(
            id="lost",
            status=PatientStatus.LOST,
            contact_attempts=3,
            potential_value=2000.0,
            home_health_eligible=False,
            predicted_los=3,
            facility="Corewell Health (Spectrum)",
            facility_id="CS-001",
            zip_code="49503",
            diagnosis_category="COPD",
        ),
        make_record(
            id="admitted",
            potential_value=1000.0,
            home_health_eligible=True,
            predicted_los=2,
            facility="Unlisted Community Hospital",
            facility_id=None,
            zip_code="49503",
            diagnosis_category=None,
        ),
    ]


class TestSummary:

    def test_headline_numbers(self, aggregator, records):
        analytics = aggregator.summarize(records, as_of=date(2024, 1, 16))

        assert analytics.total_admissions == 4
        assert analytics.eligible_patients == 3
        assert analytics.contacted_patients == 3
        assert analytics.secured_referrals == 1
        assert analytics.predicted_discharges == 1
        # 2 conversions out of 3 contacted
        assert analytics.conversion_rate == 66.7
        assert analytics.potential_revenue == 9000.0

    def test_average_los_uses_actual_when_discharged(self, aggregator, records):
        # secured 5, discharged 2 actual days, lost 3, admitted 2
        analytics = aggregator.summarize(records, as_of=date(2024, 1, 16))
        assert analytics.average_los == 3.0

    def test_empty(self, aggregator):
        analytics = aggregator.summarize([], as_of=date(2024, 1, 16))
        assert analytics.total_admissions == 0
        assert analytics.conversion_rate == 0.0
        assert analytics.facility_performance == []


class TestRollups:

    def test_facility_rollups(self, aggregator, records):
        rollups = aggregator.facility_rollups(records)

        assert rollups[0].facility_id == "HF-001"
        assert rollups[0].admissions == 2
        assert rollups[0].conversions == 2
        assert rollups[0].conversion_rate == 100.0
        assert rollups[0].region == "Southeast Michigan"

        unlisted = next(r for r in rollups if r.facility == "Unlisted Community Hospital")
        assert unlisted.region == "Unknown"

    def test_region_rollups(self, aggregator, records):
        rollups = {r.region: r for r in aggregator.region_rollups(records)}

        assert rollups["Southeast Michigan"].admissions == 2
        assert rollups["Southeast Michigan"].facilities == 1
        assert rollups["West Michigan"].conversions == 0
        assert rollups["Unknown"].admissions == 1

    def test_top_diagnoses(self, aggregator, records):
        top = aggregator.top_diagnoses(records)

        assert top[0].diagnosis == "Heart Failure"
        assert top[0].count == 2
        assert top[0].eligibility == 100.0
        assert top[0].average_value == 4000.0
        assert {d.diagnosis for d in top} == {"Heart Failure", "COPD", "General Medical"}

    def test_zip_code_hotspots(self, aggregator, records):
        hotspots = {z.zip_code: z for z in aggregator.zip_code_hotspots(records)}

        assert hotspots["48202"].patients == 2
        assert hotspots["48202"].coverage is True
        assert hotspots["49503"].patients == 2
        assert hotspots["49503"].coverage is False
        assert hotspots["49503"].value == 3000.0

    def test_discharge_timeline(self, aggregator, records):
        timeline = aggregator.discharge_timeline(records)

        assert len(timeline) == 1
        assert timeline[0].date == date(2024, 1, 16)
        assert timeline[0].predicted == 1
        assert timeline[0].actual == 1

    def test_conversion_rate_denominators(self, aggregator):
        records = [
            make_record(id="secured", status=PatientStatus.SECURED, referral_secured=True, contact_attempts=1),
            make_record(id="waiting"),
        ]
        analytics = aggregator.summarize(records, as_of=date(2024, 1, 16))

        # Summary counts contacted patients, rollups count admissions
        assert analytics.conversion_rate == 100.0
        assert analytics.facility_performance[0].conversion_rate == 50.0
        assert analytics.region_performance[0].conversion_rate == 50.0
