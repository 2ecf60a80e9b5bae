"""
Patient Routes

Endpoints for the prioritized admission list and referral workflow actions.
"""

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from pathway.api.deps import get_snapshot_service, to_http_error
from pathway.errors import PathwayError
from pathway.ingestion.service import SnapshotService
from pathway.models.patient import PatientPredictionRecord, PatientStatus

router = APIRouter(prefix="/patients", tags=["Patients"])


# =============================================================================
# Request/Response Models
# =============================================================================

class PatientListResponse(BaseModel):
    """Prioritized admissions."""
    patients: List[PatientPredictionRecord]
    total: int
    skipped_records: int = 0


class ContactRequest(BaseModel):
    """Outreach attempt to the case manager."""
    notes: Optional[str] = None
    successful: bool = False


class NotesRequest(BaseModel):
    notes: Optional[str] = None


class DischargeRequest(BaseModel):
    discharged_at: Optional[datetime] = None


class AssignRequest(BaseModel):
    """Manual marketer/nurse assignment."""
    marketer: Optional[str] = Field(default=None, description="Marketer name")
    nurse: Optional[str] = Field(default=None, description="Home-health nurse name")


# =============================================================================
# Endpoints
# =============================================================================

@router.get("", response_model=PatientListResponse)
async def list_patients(
    facility: Optional[str] = Query(default=None, description="Facility id, or part of its name"),
    status: Optional[PatientStatus] = Query(default=None),
    priority: Optional[int] = Query(default=None, ge=1, le=5, description="Marketing priority"),
    discharge_date: Optional[date] = Query(default=None, description="Predicted discharge date"),
    eligible_only: bool = Query(default=False),
    service: SnapshotService = Depends(get_snapshot_service),
):
    """
    List admissions in outreach order.

    Filters combine with AND.
    """
    try:
        snapshot = service.require_snapshot()
    except PathwayError as e:
        raise to_http_error(e)

    patients = snapshot.records
    if facility:
        needle = facility.lower()
        patients = [
            p for p in patients
            if needle in p.facility.lower() or (p.facility_id or "").lower() == needle
        ]
    if status:
        patients = [p for p in patients if p.status == status]
    if priority:
        patients = [p for p in patients if p.marketing_priority == priority]
    if discharge_date:
        patients = [
            p for p in patients
            if p.predicted_discharge and p.predicted_discharge.date() == discharge_date
        ]
    if eligible_only:
        patients = [p for p in patients if p.home_health_eligible]

    return PatientListResponse(
        patients=patients,
        total=len(patients),
        skipped_records=snapshot.skipped_count,
    )


@router.get("/{patient_id}", response_model=PatientPredictionRecord)
async def get_patient(
    patient_id: str,
    service: SnapshotService = Depends(get_snapshot_service),
):
    try:
        return service.patient(patient_id)
    except PathwayError as e:
        raise to_http_error(e)


@router.post("/{patient_id}/contact", response_model=PatientPredictionRecord)
async def contact_patient(
    patient_id: str,
    request: ContactRequest,
    service: SnapshotService = Depends(get_snapshot_service),
):
    """Record an outreach attempt; counts toward the route's progress."""
    try:
        return service.contact(patient_id, notes=request.notes, successful=request.successful)
    except PathwayError as e:
        raise to_http_error(e)


@router.post("/{patient_id}/secure", response_model=PatientPredictionRecord)
async def secure_referral(
    patient_id: str,
    request: NotesRequest,
    service: SnapshotService = Depends(get_snapshot_service),
):
    try:
        return service.secure(patient_id, notes=request.notes)
    except PathwayError as e:
        raise to_http_error(e)


@router.post("/{patient_id}/lose", response_model=PatientPredictionRecord)
async def mark_lost(
    patient_id: str,
    request: NotesRequest,
    service: SnapshotService = Depends(get_snapshot_service),
):
    try:
        return service.lose(patient_id, notes=request.notes)
    except PathwayError as e:
        raise to_http_error(e)


@router.post("/{patient_id}/discharge", response_model=PatientPredictionRecord)
async def mark_discharged(
    patient_id: str,
    request: DischargeRequest,
    service: SnapshotService = Depends(get_snapshot_service),
):
    try:
        return service.discharge(patient_id, at=request.discharged_at)
    except PathwayError as e:
        raise to_http_error(e)


@router.post("/{patient_id}/assign", response_model=PatientPredictionRecord)
async def assign_patient(
    patient_id: str,
    request: AssignRequest,
    service: SnapshotService = Depends(get_snapshot_service),
):
    try:
        return service.assign(patient_id, marketer=request.marketer, nurse=request.nurse)
    except PathwayError as e:
        raise to_http_error(e)
