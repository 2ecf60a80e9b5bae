"""
Referral Workflow

Outreach actions on admissions and progress tracking on routes. Patient
actions return updated copies; the caller rescores and reclassifies.
"""

from typing import Optional
from datetime import datetime

import structlog

from pathway.errors import InvalidStatusTransitionError
from pathway.models.patient import PatientPredictionRecord, PatientStatus, can_transition
from pathway.models.routing import MarketingRoute, RouteStatus

logger = structlog.get_logger(__name__)


def transition(
    record: PatientPredictionRecord,
    target: PatientStatus,
    enforce: bool = True,
    **updates,
) -> PatientPredictionRecord:
    """
    Move a record to a new status.

    Raises:
        InvalidStatusTransitionError: backwards move while enforcing
    """
    if not can_transition(record.status, target):
        if enforce:
            raise InvalidStatusTransitionError(record.id, record.status.value, target.value)
        logger.warning(
            "Out-of-order status change",
            patient_id=record.id,
            current=record.status.value,
            target=target.value,
        )
    return record.model_copy(update={"status": target, **updates})


def record_contact(
    record: PatientPredictionRecord,
    at: datetime,
    notes: Optional[str] = None,
    enforce: bool = True,
) -> PatientPredictionRecord:
    """Log an outreach attempt to the case manager."""
    target = PatientStatus.CONTACTED
    if record.status == PatientStatus.SECURED:
        # Follow-up after securing keeps the secured status
        target = PatientStatus.SECURED
    return _transition_quiet(
        record,
        target,
        enforce,
        contact_attempts=record.contact_attempts + 1,
        last_contact_date=at,
        notes=notes or record.notes,
    )


def secure_referral(
    record: PatientPredictionRecord,
    notes: Optional[str] = None,
    enforce: bool = True,
) -> PatientPredictionRecord:
    return transition(
        record,
        PatientStatus.SECURED,
        enforce,
        referral_secured=True,
        notes=notes or record.notes,
    )


def mark_lost(
    record: PatientPredictionRecord,
    notes: Optional[str] = None,
    enforce: bool = True,
) -> PatientPredictionRecord:
    return transition(record, PatientStatus.LOST, enforce, notes=notes or record.notes)


def mark_discharged(
    record: PatientPredictionRecord,
    at: datetime,
    enforce: bool = True,
) -> PatientPredictionRecord:
    return transition(record, PatientStatus.DISCHARGED, enforce, actual_discharge=at)


def assign(
    record: PatientPredictionRecord,
    marketer: Optional[str] = None,
    nurse: Optional[str] = None,
) -> PatientPredictionRecord:
    """Manually assign a marketer and/or nurse."""
    return record.model_copy(update={
        "assigned_marketer": marketer or record.assigned_marketer,
        "assigned_nurse": nurse or record.assigned_nurse,
    })


def _transition_quiet(record, target, enforce, **updates):
    if record.status == target:
        return record.model_copy(update=updates)
    return transition(record, target, enforce, **updates)


# =============================================================================
# Route progress
# =============================================================================

def start_route(route: MarketingRoute) -> MarketingRoute:
    route.status = RouteStatus.ACTIVE
    logger.info("Route started", route_id=route.id, marketer_id=route.marketer_id)
    return route


def record_route_contact(
    route: MarketingRoute,
    successful: bool = False,
    secured: bool = False,
) -> MarketingRoute:
    """Count one contact made on the route."""
    if route.status == RouteStatus.PLANNED:
        route.status = RouteStatus.ACTIVE
    route.completed_contacts += 1
    if successful or secured:
        route.successful_contacts += 1
    if secured:
        route.secured_referrals += 1
    return route


def set_route_progress(
    route: MarketingRoute,
    completed_contacts: Optional[int] = None,
    successful_contacts: Optional[int] = None,
    secured_referrals: Optional[int] = None,
) -> MarketingRoute:
    """Overwrite progress counters reported from the field."""
    if completed_contacts is not None:
        route.completed_contacts = completed_contacts
    if successful_contacts is not None:
        route.successful_contacts = successful_contacts
    if secured_referrals is not None:
        route.secured_referrals = secured_referrals
    return route


def complete_route(route: MarketingRoute) -> MarketingRoute:
    route.status = RouteStatus.COMPLETED
    logger.info(
        "Route completed",
        route_id=route.id,
        completed_contacts=route.completed_contacts,
        secured_referrals=route.secured_referrals,
    )
    return route
