"""
Pathway Domain Models

Pydantic models for admissions, routes and analytics.
"""

from pathway.models.patient import (
    AcuityLevel,
    DischargeDestination,
    PatientStatus,
    PatientPredictionRecord,
    STATUS_TRANSITIONS,
    ACTIVE_STATUSES,
    can_transition,
)
from pathway.models.routing import (
    GeoPoint,
    Facility,
    Marketer,
    MarketingRoute,
    RouteWaypoint,
    RoutePriority,
    RouteStatus,
    RouteAssignmentResult,
)
from pathway.models.analytics import (
    FacilityAggregate,
    RegionAggregate,
    DiagnosisSummary,
    ZipCodeHotspot,
    DischargeTimelinePoint,
    PredictiveAnalytics,
)

__all__ = [
    # Patient
    "AcuityLevel",
    "DischargeDestination",
    "PatientStatus",
    "PatientPredictionRecord",
    "STATUS_TRANSITIONS",
    "ACTIVE_STATUSES",
    "can_transition",
    # Routing
    "GeoPoint",
    "Facility",
    "Marketer",
    "MarketingRoute",
    "RouteWaypoint",
    "RoutePriority",
    "RouteStatus",
    "RouteAssignmentResult",
    # Analytics
    "FacilityAggregate",
    "RegionAggregate",
    "DiagnosisSummary",
    "ZipCodeHotspot",
    "DischargeTimelinePoint",
    "PredictiveAnalytics",
]
