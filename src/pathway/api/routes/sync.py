"""
Sync Routes

Manual refresh from the admission source and sync status.

A failed refresh keeps the previous snapshot; the response reports when
the data being shown was last synced.
"""

from datetime import date, datetime
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from pathway.api.deps import get_snapshot_service
from pathway.errors import ExternalFetchError
from pathway.ingestion.service import SnapshotService, SyncStatus

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/sync", tags=["Sync"])


class SyncStatusResponse(BaseModel):
    """Sync status with a display message."""
    last_successful_sync: Optional[datetime] = None
    last_attempt: Optional[datetime] = None
    sync_failed: bool = False
    last_error: Optional[str] = None
    skipped_records: int = 0
    message: str

    @classmethod
    def from_status(cls, sync_status: SyncStatus) -> "SyncStatusResponse":
        return cls(**sync_status.model_dump(), message=sync_status.message)


class RefreshRequest(BaseModel):
    route_date: Optional[date] = None


@router.get("/status", response_model=SyncStatusResponse)
async def get_sync_status(service: SnapshotService = Depends(get_snapshot_service)):
    return SyncStatusResponse.from_status(service.status)


@router.post("/refresh", response_model=SyncStatusResponse)
async def refresh(
    request: RefreshRequest,
    service: SnapshotService = Depends(get_snapshot_service),
):
    """
    Fetch admissions and rebuild routes and analytics.

    Returns 502 on fetch failure; the previous snapshot stays in place.
    """
    route_date = request.route_date or service.clock().date()
    try:
        await service.refresh(route_date)
    except ExternalFetchError as e:
        logger.warning("Manual refresh failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=service.status.message,
        )
    return SyncStatusResponse.from_status(service.status)
