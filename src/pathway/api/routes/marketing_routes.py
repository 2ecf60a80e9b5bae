"""
Marketing Route Endpoints

Daily marketer routes, unassigned patients and route progress.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from pathway.api.deps import get_snapshot_service, to_http_error
from pathway.errors import PathwayError
from pathway.ingestion.service import SnapshotService
from pathway.models.routing import MarketingRoute, RouteStatus

router = APIRouter(prefix="/routes", tags=["Routes"])


# =============================================================================
# Request/Response Models
# =============================================================================

class RouteListResponse(BaseModel):
    routes: List[MarketingRoute]
    total: int
    route_date: date


class UnassignedResponse(BaseModel):
    """Eligible patients no marketer could take."""
    patient_ids: List[str]
    total: int
    reason: Optional[str] = None


class RouteProgressRequest(BaseModel):
    """Progress counters reported from the field."""
    completed_contacts: Optional[int] = Field(default=None, ge=0)
    successful_contacts: Optional[int] = Field(default=None, ge=0)
    secured_referrals: Optional[int] = Field(default=None, ge=0)


# =============================================================================
# Endpoints
# =============================================================================

@router.get("", response_model=RouteListResponse)
async def list_routes(
    marketer: Optional[str] = Query(default=None, description="Marketer id or name"),
    route_date: Optional[date] = Query(default=None, alias="date"),
    status: Optional[RouteStatus] = Query(default=None),
    service: SnapshotService = Depends(get_snapshot_service),
):
    try:
        snapshot = service.require_snapshot()
    except PathwayError as e:
        raise to_http_error(e)

    routes = snapshot.assignment.routes
    if marketer:
        needle = marketer.lower()
        routes = [
            r for r in routes
            if r.marketer_id.lower() == needle or r.marketer_name.lower() == needle
        ]
    if route_date:
        routes = [r for r in routes if r.date == route_date]
    if status:
        routes = [r for r in routes if r.status == status]

    return RouteListResponse(routes=routes, total=len(routes), route_date=snapshot.route_date)


@router.get("/unassigned", response_model=UnassignedResponse)
async def list_unassigned(service: SnapshotService = Depends(get_snapshot_service)):
    try:
        assignment = service.require_snapshot().assignment
    except PathwayError as e:
        raise to_http_error(e)

    return UnassignedResponse(
        patient_ids=assignment.unassigned,
        total=len(assignment.unassigned),
        reason=assignment.reason,
    )


@router.get("/{route_id}", response_model=MarketingRoute)
async def get_route(
    route_id: str,
    service: SnapshotService = Depends(get_snapshot_service),
):
    try:
        return service.route(route_id)
    except PathwayError as e:
        raise to_http_error(e)


@router.post("/{route_id}/start", response_model=MarketingRoute)
async def start_route(
    route_id: str,
    service: SnapshotService = Depends(get_snapshot_service),
):
    try:
        return service.start_route(route_id)
    except PathwayError as e:
        raise to_http_error(e)


@router.post("/{route_id}/progress", response_model=MarketingRoute)
async def update_route_progress(
    route_id: str,
    request: RouteProgressRequest,
    service: SnapshotService = Depends(get_snapshot_service),
):
    try:
        return service.update_route_progress(
            route_id,
            completed_contacts=request.completed_contacts,
            successful_contacts=request.successful_contacts,
            secured_referrals=request.secured_referrals,
        )
    except PathwayError as e:
        raise to_http_error(e)


@router.post("/{route_id}/complete", response_model=MarketingRoute)
async def complete_route(
    route_id: str,
    service: SnapshotService = Depends(get_snapshot_service),
):
    try:
        return service.complete_route(route_id)
    except PathwayError as e:
        raise to_http_error(e)
