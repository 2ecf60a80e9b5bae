"""
API Dependencies

Shared request dependencies and domain-error translation for the routes.
"""

from fastapi import HTTPException, Request, status

from pathway.errors import (
    ExternalFetchError,
    InvalidStatusTransitionError,
    MalformedRecordError,
    PathwayError,
    PatientNotFoundError,
    RouteNotFoundError,
    SnapshotUnavailableError,
)
from pathway.ingestion.service import SnapshotService


def get_snapshot_service(request: Request) -> SnapshotService:
    """Get the snapshot service created at startup."""
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Snapshot service not initialized",
        )
    return service


def to_http_error(e: PathwayError) -> HTTPException:
    """Translate a domain error to an HTTP error."""
    if isinstance(e, (PatientNotFoundError, RouteNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, InvalidStatusTransitionError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, MalformedRecordError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    if isinstance(e, SnapshotUnavailableError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    if isinstance(e, ExternalFetchError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
