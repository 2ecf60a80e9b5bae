"""
Analytics Routes

Dashboard summary and facility/region rollups.
"""

from typing import List

from fastapi import APIRouter, Depends

from pathway.api.deps import get_snapshot_service, to_http_error
from pathway.errors import PathwayError
from pathway.ingestion.service import SnapshotService
from pathway.models.analytics import FacilityAggregate, PredictiveAnalytics, RegionAggregate

router = APIRouter(prefix="/analytics", tags=["Analytics"])


def _analytics(service: SnapshotService) -> PredictiveAnalytics:
    try:
        return service.require_snapshot().analytics
    except PathwayError as e:
        raise to_http_error(e)


@router.get("", response_model=PredictiveAnalytics)
async def get_analytics(service: SnapshotService = Depends(get_snapshot_service)):
    """Full dashboard summary for the current snapshot."""
    return _analytics(service)


@router.get("/facilities", response_model=List[FacilityAggregate])
async def get_facility_performance(service: SnapshotService = Depends(get_snapshot_service)):
    return _analytics(service).facility_performance


@router.get("/regions", response_model=List[RegionAggregate])
async def get_region_performance(service: SnapshotService = Depends(get_snapshot_service)):
    return _analytics(service).region_performance
