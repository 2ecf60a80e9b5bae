"""
Tests for the Snapshot Service: stale-on-failure, superseded refreshes,
event updates and workflow actions.
"""

import asyncio
from datetime import datetime

import pytest

from pathway.config import WorkflowSettings
from pathway.errors import (
    ExternalFetchError,
    InvalidStatusTransitionError,
    PatientNotFoundError,
    RouteNotFoundError,
    SnapshotUnavailableError,
)
from pathway.ingestion.service import SnapshotService
from pathway.ingestion.source import AdmissionSource, StaticAdmissionSource
from pathway.models.patient import PatientStatus
from pathway.models.routing import RouteStatus

from conftest import make_raw

NOW = datetime(2024, 1, 16, 8, 0)


class ScriptedSource(AdmissionSource):
    """Returns queued payloads; an exception in the queue is raised."""

    name = "scripted"

    def __init__(self, *responses):
        self.responses = list(responses)

    async def fetch_admissions(self):
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class GatedSource(AdmissionSource):
    """Blocks each fetch until its gate is released."""

    name = "gated"

    def __init__(self):
        self.calls = []

    async def fetch_admissions(self):
        gate = asyncio.Event()
        payload = {}
        self.calls.append((gate, payload))
        await gate.wait()
        return payload["admissions"]


def make_service(source, directory, **kwargs):
    return SnapshotService(source, directory, clock=lambda: NOW, **kwargs)


async def loaded_service(raw_admissions, directory, route_date, **kwargs):
    svc = make_service(StaticAdmissionSource(raw_admissions), directory, **kwargs)
    await svc.refresh(route_date)
    return svc


class TestRefresh:

    @pytest.mark.asyncio
    async def test_no_snapshot_before_first_sync(self, directory):
        svc = make_service(StaticAdmissionSource([]), directory)

        assert svc.snapshot is None
        assert svc.status.message == "not synced yet"
        with pytest.raises(SnapshotUnavailableError):
            svc.require_snapshot()

    @pytest.mark.asyncio
    async def test_successful_refresh(self, raw_admissions, directory, route_date):
        svc = make_service(StaticAdmissionSource(raw_admissions), directory)
        result = await svc.refresh(route_date)

        assert result is svc.snapshot
        assert len(result.records) == 5
        assert svc.status.last_successful_sync == NOW
        assert svc.status.skipped_records == 1
        assert svc.status.sync_failed is False

    @pytest.mark.asyncio
    async def test_stale_on_failure(self, directory, route_date):
        source = ScriptedSource([make_raw()], ExternalFetchError("Admission fetch timed out"))
        svc = make_service(source, directory)

        first = await svc.refresh(route_date)
        with pytest.raises(ExternalFetchError):
            await svc.refresh(route_date)

        assert svc.snapshot is first
        assert [r.id for r in svc.snapshot.records] == ["pred-001"]
        assert svc.status.sync_failed is True
        assert svc.status.last_successful_sync == NOW
        assert svc.status.message == (
            "sync failed, showing last known data as of 2024-01-16T08:00:00"
        )

    @pytest.mark.asyncio
    async def test_failure_before_any_sync(self, directory, route_date):
        svc = make_service(ScriptedSource(ExternalFetchError("down")), directory)

        with pytest.raises(ExternalFetchError):
            await svc.refresh(route_date)
        assert svc.snapshot is None
        assert svc.status.message == "sync failed, no data available yet"

    @pytest.mark.asyncio
    async def test_later_refresh_supersedes_in_flight(self, directory, route_date):
        source = GatedSource()
        svc = make_service(source, directory)

        slow = asyncio.create_task(svc.refresh(route_date))
        await asyncio.sleep(0)
        fast = asyncio.create_task(svc.refresh(route_date))
        await asyncio.sleep(0)

        (slow_gate, slow_payload), (fast_gate, fast_payload) = source.calls
        fast_payload["admissions"] = [make_raw(id="new")]
        fast_gate.set()
        await fast

        slow_payload["admissions"] = [make_raw(id="old")]
        slow_gate.set()
        await slow

        assert [r.id for r in svc.snapshot.records] == ["new"]

    @pytest.mark.asyncio
    async def test_apply_update_rescores_one_record(self, raw_admissions, directory, route_date):
        service = await loaded_service(raw_admissions, directory, route_date)
        before = service.patient("pred-002")
        assert before.marketing_priority == 3

        updated = service.apply_update(make_raw(
            id="pred-002",
            patientName="John Smith",
            facility="Corewell Health (Beaumont)",
            facilityId="CW-001",
            primaryDiagnosis="Sepsis, unspecified organism",
            icd10Codes=["A41.9"],
        ))

        assert updated.marketing_priority == 1
        assert len(service.snapshot.records) == 5
        assert service.snapshot.skipped_count == 1


class TestWorkflowActions:

    @pytest.mark.asyncio
    async def test_contact_counts_attempt_and_route_progress(self, raw_admissions, directory, route_date):
        service = await loaded_service(raw_admissions, directory, route_date)
        patient = service.contact("pred-001", notes="Left voicemail")

        assert patient.status == PatientStatus.CONTACTED
        assert patient.contact_attempts == 1
        assert patient.last_contact_date == NOW
        assert patient.notes == "Left voicemail"

        route = service.route_for_patient("pred-001")
        assert route.completed_contacts == 1
        assert route.status == RouteStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_secure_then_discharge(self, raw_admissions, directory, route_date):
        service = await loaded_service(raw_admissions, directory, route_date)
        secured = service.secure("pred-001")
        assert secured.status == PatientStatus.SECURED
        assert secured.referral_secured is True
        assert service.route_for_patient("pred-001").secured_referrals == 1
        assert service.snapshot.analytics.secured_referrals == 1

        discharged = service.discharge("pred-001", at=datetime(2024, 1, 17, 11, 0))
        assert discharged.status == PatientStatus.DISCHARGED
        assert discharged.marketing_priority == 5
        assert discharged.is_conversion
        assert service.route_for_patient("pred-001") is None

    @pytest.mark.asyncio
    async def test_backwards_transition_rejected(self, raw_admissions, directory, route_date):
        service = await loaded_service(raw_admissions, directory, route_date)
        service.lose("pred-002")
        with pytest.raises(InvalidStatusTransitionError):
            service.contact("pred-002")

    @pytest.mark.asyncio
    async def test_backwards_transition_allowed_when_not_enforced(self, raw_admissions, directory, route_date):
        svc = make_service(
            StaticAdmissionSource(raw_admissions),
            directory,
            workflow_settings=WorkflowSettings(enforce_status_transitions=False),
        )
        await svc.refresh(route_date)
        svc.lose("pred-002")

        assert svc.contact("pred-002").status == PatientStatus.CONTACTED

    @pytest.mark.asyncio
    async def test_route_progress_survives_rebuild(self, raw_admissions, directory, route_date):
        service = await loaded_service(raw_admissions, directory, route_date)
        route = service.route_for_patient("pred-001")
        service.start_route(route.id)
        service.update_route_progress(route.id, completed_contacts=4, successful_contacts=2)

        service.assign("pred-002", nurse="Paul Nguyen, RN")

        route = service.route(route.id)
        assert route.status == RouteStatus.ACTIVE
        assert route.completed_contacts == 4
        assert route.successful_contacts == 2

        completed = service.complete_route(route.id)
        assert completed.status == RouteStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_manual_marketer_assignment_sticks(self, raw_admissions, directory, route_date):
        service = await loaded_service(raw_admissions, directory, route_date)
        assert service.patient("pred-001").assigned_marketer == "Sarah Johnson"

        assigned = service.assign("pred-001", marketer="Mike Rodriguez")

        assert assigned.assigned_marketer == "Mike Rodriguez"
        assert service.patient("pred-001").assigned_marketer == "Mike Rodriguez"
        assert service.route_for_patient("pred-001").marketer_id == "MKT-002"

        # Unrelated rebuilds keep the manual choice
        service.contact("pred-002")
        assert service.patient("pred-001").assigned_marketer == "Mike Rodriguez"

    @pytest.mark.asyncio
    async def test_unknown_ids(self, raw_admissions, directory, route_date):
        service = await loaded_service(raw_admissions, directory, route_date)
        with pytest.raises(PatientNotFoundError):
            service.contact("nobody")
        with pytest.raises(RouteNotFoundError):
            service.start_route("route-19990101-MKT-999")
