"""
Tests for referral workflow transitions and route progress.
"""

from datetime import date, datetime

import pytest

from pathway import workflow
from pathway.errors import InvalidStatusTransitionError
from pathway.models.patient import PatientStatus, can_transition
from pathway.models.routing import MarketingRoute, RouteStatus

from conftest import make_record

NOW = datetime(2024, 1, 16, 9, 30)


@pytest.fixture
def route():
    return MarketingRoute(
        id="route-20240116-MKT-001",
        marketer_id="MKT-001",
        marketer_name="Sarah Johnson",
        date=date(2024, 1, 16),
        patient_ids=["pred-001"],
    )


class TestStatusTransitions:

    @pytest.mark.parametrize("current,target,allowed", [
        (PatientStatus.ADMITTED, PatientStatus.CONTACTED, True),
        (PatientStatus.ADMITTED, PatientStatus.DISCHARGED, True),
        (PatientStatus.CONTACTED, PatientStatus.CONTACTED, True),
        (PatientStatus.CONTACTED, PatientStatus.SECURED, True),
        (PatientStatus.SECURED, PatientStatus.DISCHARGED, True),
        (PatientStatus.SECURED, PatientStatus.CONTACTED, False),
        (PatientStatus.LOST, PatientStatus.SECURED, False),
        (PatientStatus.DISCHARGED, PatientStatus.ADMITTED, False),
    ])
    def test_can_transition(self, current, target, allowed):
        assert can_transition(current, target) is allowed

    def test_transition_rejects_backwards_move(self):
        record = make_record(status=PatientStatus.DISCHARGED)
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            workflow.transition(record, PatientStatus.CONTACTED)
        assert exc_info.value.current == "discharged"
        assert exc_info.value.target == "contacted"

    def test_transition_unenforced(self):
        record = make_record(status=PatientStatus.LOST)
        moved = workflow.transition(record, PatientStatus.CONTACTED, enforce=False)
        assert moved.status == PatientStatus.CONTACTED
        assert record.status == PatientStatus.LOST


class TestPatientActions:

    def test_record_contact(self):
        record = workflow.record_contact(make_record(), at=NOW, notes="Spoke with case manager")
        assert record.status == PatientStatus.CONTACTED
        assert record.contact_attempts == 1
        assert record.last_contact_date == NOW

        again = workflow.record_contact(record, at=NOW)
        assert again.contact_attempts == 2
        assert again.notes == "Spoke with case manager"

    def test_follow_up_keeps_secured(self):
        record = make_record(status=PatientStatus.SECURED, referral_secured=True)
        followed_up = workflow.record_contact(record, at=NOW)
        assert followed_up.status == PatientStatus.SECURED
        assert followed_up.contact_attempts == 1

    def test_secure_referral(self):
        record = workflow.secure_referral(make_record(status=PatientStatus.CONTACTED))
        assert record.status == PatientStatus.SECURED
        assert record.referral_secured is True
        assert record.is_conversion

    def test_mark_lost(self):
        record = workflow.mark_lost(make_record(), notes="Chose another agency")
        assert record.status == PatientStatus.LOST
        assert record.notes == "Chose another agency"
        assert not record.is_conversion

    def test_mark_discharged(self):
        at = datetime(2024, 1, 19, 15, 0)
        record = workflow.mark_discharged(make_record(), at=at)
        assert record.status == PatientStatus.DISCHARGED
        assert record.actual_discharge == at
        assert record.actual_los == 5

    def test_assign_keeps_existing_values(self):
        record = make_record(assigned_marketer="Sarah Johnson")
        assigned = workflow.assign(record, nurse="Karen White, RN")
        assert assigned.assigned_marketer == "Sarah Johnson"
        assert assigned.assigned_nurse == "Karen White, RN"


class TestRouteProgress:

    def test_start_and_complete(self, route):
        assert workflow.start_route(route).status == RouteStatus.ACTIVE
        assert workflow.complete_route(route).status == RouteStatus.COMPLETED

    def test_record_route_contact(self, route):
        workflow.record_route_contact(route)
        workflow.record_route_contact(route, successful=True)
        workflow.record_route_contact(route, secured=True)

        assert route.status == RouteStatus.ACTIVE
        assert route.completed_contacts == 3
        assert route.successful_contacts == 2
        assert route.secured_referrals == 1

    def test_set_route_progress_partial(self, route):
        workflow.set_route_progress(route, completed_contacts=6)
        workflow.set_route_progress(route, secured_referrals=2)

        assert route.completed_contacts == 6
        assert route.successful_contacts == 0
        assert route.secured_referrals == 2
