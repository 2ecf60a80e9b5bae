"""Shared fixtures for Pathway tests."""

from datetime import date, datetime

import pytest

from pathway.ingestion.synthetic_data import default_directory
from pathway.models.patient import AcuityLevel, PatientPredictionRecord

ROUTE_DATE = date(2024, 1, 16)


def make_raw(**overrides) -> dict:
    """Raw EHR admission: heart failure, 3 comorbidities, age 72, high acuity."""
    raw = {
        "id": "pred-001",
        "patientName": "Jane Doe",
        "mrn": "MRN-100001",
        "admissionDate": "2024-01-14T08:00:00Z",
        "age": 72,
        "gender": "Female",
        "zipCode": "48202",
        "facility": "Henry Ford Health System",
        "facilityId": "HF-001",
        "primaryDiagnosis": "Acute heart failure with reduced ejection fraction",
        "icd10Codes": ["I50.21"],
        "comorbidities": ["Type 2 diabetes", "Hypertension", "Chronic kidney disease"],
        "insurance": "Medicare",
        "acuityLevel": "high",
        "status": "admitted",
    }
    raw.update(overrides)
    return raw


def make_record(**overrides) -> PatientPredictionRecord:
    """Normalized but unscored admission."""
    fields = dict(
        id="pred-001",
        patient_name="Jane Doe",
        admission_date=datetime(2024, 1, 14, 8, 0),
        age=72,
        zip_code="48202",
        facility="Henry Ford Health System",
        facility_id="HF-001",
        primary_diagnosis="Acute heart failure with reduced ejection fraction",
        icd10_codes=["I50.21"],
        comorbidities=["Type 2 diabetes", "Hypertension", "Chronic kidney disease"],
        insurance="Medicare",
        acuity_level=AcuityLevel.HIGH,
    )
    fields.update(overrides)
    return PatientPredictionRecord(**fields)


@pytest.fixture
def route_date():
    return ROUTE_DATE


@pytest.fixture
def directory():
    return default_directory()


@pytest.fixture
def raw_admissions():
    """Small mixed batch across covered and uncovered facilities."""
    return [
        make_raw(),
        make_raw(
            id="pred-002",
            patientName="John Smith",
            facility="Corewell Health (Beaumont)",
            facilityId="CW-001",
            zipCode="48073",
            primaryDiagnosis="Community-acquired pneumonia",
            icd10Codes=["J18.9"],
            comorbidities=[],
            age=66,
            acuityLevel="medium",
            insurance="Blue Cross Blue Shield of Michigan",
        ),
        make_raw(
            id="pred-003",
            patientName="Mary Brown",
            facility="Corewell Health (Spectrum)",
            facilityId="CS-001",
            zipCode="49503",
            primaryDiagnosis="Cerebral infarction",
            icd10Codes=["I63.9"],
            dischargeDestination="home",
            age=81,
        ),
        make_raw(
            id="pred-004",
            patientName="Robert Jones",
            facility="Munson Healthcare",
            facilityId="MN-001",
            zipCode="49684",
            primaryDiagnosis="Closed fracture of right femoral neck",
            icd10Codes=["S72.001A"],
            comorbidities=["Hypertension"],
        ),
        make_raw(
            id="pred-005",
            patientName="Linda Davis",
            primaryDiagnosis="Major depressive disorder",
            icd10Codes=["F32.9"],
            comorbidities=[],
        ),
        # Missing admission date: skipped and counted
        {"id": "pred-006", "patientName": "No Date"},
    ]
