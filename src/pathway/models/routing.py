"""
Routing Models

Facilities, marketers and the daily marketing routes built for them.
"""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class GeoPoint(BaseModel):
    """Latitude/longitude pair in decimal degrees."""
    lat: float
    lon: float


class Facility(BaseModel):
    """A hospital or health-system campus that sends referrals."""
    id: str
    name: str
    address: Optional[str] = None
    zip_code: Optional[str] = None
    region: Optional[str] = None
    location: GeoPoint


class Marketer(BaseModel):
    """
    Field marketer who visits facilities to capture referrals.

    Coverage is the union of `coverage_regions` and facilities within
    `coverage_radius_miles` of the home base.
    """
    id: str
    name: str
    base: GeoPoint
    coverage_regions: List[str] = Field(default_factory=list)
    coverage_radius_miles: Optional[float] = None


class RoutePriority(str, Enum):
    """Route-level priority label."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RouteStatus(str, Enum):
    """Route execution status."""
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"


class RouteWaypoint(BaseModel):
    """A facility stop on a route."""
    facility_id: str
    facility_name: str
    address: Optional[str] = None
    estimated_arrival: datetime
    estimated_duration: int  # minutes on site
    patient_ids: List[str] = Field(default_factory=list)


class MarketingRoute(BaseModel):
    """
    A marketer's ordered stops for one day.

    Patients are held by id; the patient list owns the records.
    """
    id: str
    marketer_id: str
    marketer_name: str
    date: date
    patient_ids: List[str] = Field(default_factory=list)
    facilities: List[str] = Field(default_factory=list)
    waypoints: List[RouteWaypoint] = Field(default_factory=list)

    estimated_drive_time: int = 0  # minutes
    total_miles: float = 0.0
    priority: RoutePriority = RoutePriority.LOW
    status: RouteStatus = RouteStatus.PLANNED

    completed_contacts: int = 0
    successful_contacts: int = 0
    secured_referrals: int = 0


class RouteAssignmentResult(BaseModel):
    """Outcome of route grouping."""
    routes: List[MarketingRoute] = Field(default_factory=list)
    unassigned: List[str] = Field(default_factory=list)
    reason: Optional[str] = None
