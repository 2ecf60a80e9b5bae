"""
Snapshot Service

Holds the in-memory admission snapshot for a dashboard session.

- refresh(): fetch from the source, run the pipeline, swap the snapshot
- stale-on-failure: a failed or timed-out fetch leaves the previous
  snapshot untouched and flags the sync status
- last-write-wins: a refresh started later supersedes one still in flight
- apply_update(): event-driven single-admission update
- workflow actions: contact / secure / lose / discharge / assign and route
  progress, each followed by a rebuild of routes and analytics
"""

from typing import Callable, List, Optional
from datetime import date, datetime, timezone

import structlog
from pydantic import BaseModel

from pathway import workflow
from pathway.config import WorkflowSettings
from pathway.errors import (
    ExternalFetchError,
    PatientNotFoundError,
    RouteNotFoundError,
    SnapshotUnavailableError,
)
from pathway.ingestion.source import AdmissionSource
from pathway.models.patient import PatientPredictionRecord
from pathway.models.routing import MarketingRoute
from pathway.pipeline import AdmissionPipeline, PipelineResult
from pathway.routing.directory import RoutingDirectory

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SyncStatus(BaseModel):
    """Outcome of the most recent refresh attempts."""
    last_successful_sync: Optional[datetime] = None
    last_attempt: Optional[datetime] = None
    sync_failed: bool = False
    last_error: Optional[str] = None
    skipped_records: int = 0

    @property
    def message(self) -> str:
        if not self.sync_failed:
            if self.last_successful_sync is None:
                return "not synced yet"
            return f"last synced {self.last_successful_sync.isoformat()}"
        if self.last_successful_sync is None:
            return "sync failed, no data available yet"
        return f"sync failed, showing last known data as of {self.last_successful_sync.isoformat()}"


class SnapshotService:
    """
    In-memory snapshot owner.

    Usage:
        service = SnapshotService(source, directory)
        try:
            await service.refresh(date.today())
        except ExternalFetchError:
            print(service.status.message)
        records = service.snapshot.records
    """

    def __init__(
        self,
        source: AdmissionSource,
        directory: RoutingDirectory,
        pipeline: AdmissionPipeline = None,
        workflow_settings: WorkflowSettings = None,
        clock: Callable[[], datetime] = None,
    ):
        self.source = source
        self.directory = directory
        self.pipeline = pipeline or AdmissionPipeline()
        self.workflow_settings = workflow_settings or WorkflowSettings()
        self.clock = clock or _utcnow

        self._snapshot: Optional[PipelineResult] = None
        self._status = SyncStatus()
        self._generation = 0

    @property
    def snapshot(self) -> Optional[PipelineResult]:
        return self._snapshot

    @property
    def status(self) -> SyncStatus:
        return self._status

    def require_snapshot(self) -> PipelineResult:
        if self._snapshot is None:
            raise SnapshotUnavailableError(last_attempt=self._status.last_attempt)
        return self._snapshot

    # =========================================================================
    # Refresh
    # =========================================================================

    async def refresh(self, route_date: date) -> Optional[PipelineResult]:
        """
        Fetch admissions and rebuild the snapshot.

        Returns the snapshot in effect afterwards. If a newer refresh started
        while this one was fetching, this result is discarded.

        Raises:
            ExternalFetchError: fetch failed; the previous snapshot is kept
        """
        self._generation += 1
        generation = self._generation
        started = self.clock()
        self._status.last_attempt = started

        try:
            raw = await self.source.fetch_admissions()
        except ExternalFetchError as e:
            if generation == self._generation:
                self._status.sync_failed = True
                self._status.last_error = str(e)
                logger.error(
                    "Admission sync failed, keeping previous snapshot",
                    error=str(e),
                    source=self.source.name,
                    last_successful_sync=self._status.last_successful_sync,
                )
            raise

        if generation != self._generation:
            logger.info("Discarding superseded refresh", generation=generation, current=self._generation)
            return self._snapshot

        result = self.pipeline.run(raw, self.directory, route_date)
        self._snapshot = result
        self._status = SyncStatus(
            last_successful_sync=started,
            last_attempt=started,
            sync_failed=False,
            skipped_records=result.skipped_count,
        )
        logger.info(
            "Admission snapshot refreshed",
            records=len(result.records),
            skipped=result.skipped_count,
            routes=len(result.assignment.routes),
        )
        return result

    def apply_update(self, raw: dict) -> PatientPredictionRecord:
        """
        Apply one updated admission from the source event feed.

        Raises:
            MalformedRecordError: payload lacks identity fields
            SnapshotUnavailableError: nothing loaded yet
        """
        snapshot = self.require_snapshot()
        record = self.pipeline.normalizer.normalize(raw)
        records = [r for r in snapshot.records if r.id != record.id]
        records.append(record)
        self._rebuild(records)
        logger.info("Applied admission update", patient_id=record.id)
        return self.patient(record.id)

    # =========================================================================
    # Lookups
    # =========================================================================

    def patient(self, patient_id: str) -> PatientPredictionRecord:
        for record in self.require_snapshot().records:
            if record.id == patient_id:
                return record
        raise PatientNotFoundError(f"Patient {patient_id} not found")

    def route(self, route_id: str) -> MarketingRoute:
        for route in self.require_snapshot().assignment.routes:
            if route.id == route_id:
                return route
        raise RouteNotFoundError(f"Route {route_id} not found")

    def route_for_patient(self, patient_id: str) -> Optional[MarketingRoute]:
        for route in self.require_snapshot().assignment.routes:
            if patient_id in route.patient_ids:
                return route
        return None

    # =========================================================================
    # Workflow actions
    # =========================================================================

    def contact(self, patient_id: str, notes: str = None, successful: bool = False) -> PatientPredictionRecord:
        route = self.route_for_patient(patient_id)
        updated = workflow.record_contact(
            self.patient(patient_id),
            at=self.clock(),
            notes=notes,
            enforce=self._enforce,
        )
        if route:
            workflow.record_route_contact(route, successful=successful)
        return self._replace(updated)

    def secure(self, patient_id: str, notes: str = None) -> PatientPredictionRecord:
        route = self.route_for_patient(patient_id)
        updated = workflow.secure_referral(self.patient(patient_id), notes=notes, enforce=self._enforce)
        if route:
            workflow.record_route_contact(route, successful=True, secured=True)
        return self._replace(updated)

    def lose(self, patient_id: str, notes: str = None) -> PatientPredictionRecord:
        updated = workflow.mark_lost(self.patient(patient_id), notes=notes, enforce=self._enforce)
        return self._replace(updated)

    def discharge(self, patient_id: str, at: datetime = None) -> PatientPredictionRecord:
        if at is not None and at.tzinfo is not None:
            at = at.astimezone(timezone.utc).replace(tzinfo=None)
        updated = workflow.mark_discharged(
            self.patient(patient_id),
            at=at or self.clock(),
            enforce=self._enforce,
        )
        return self._replace(updated)

    def assign(self, patient_id: str, marketer: str = None, nurse: str = None) -> PatientPredictionRecord:
        updated = workflow.assign(self.patient(patient_id), marketer=marketer, nurse=nurse)
        return self._replace(updated)

    def start_route(self, route_id: str) -> MarketingRoute:
        return workflow.start_route(self.route(route_id))

    def complete_route(self, route_id: str) -> MarketingRoute:
        return workflow.complete_route(self.route(route_id))

    def update_route_progress(
        self,
        route_id: str,
        completed_contacts: int = None,
        successful_contacts: int = None,
        secured_referrals: int = None,
    ) -> MarketingRoute:
        return workflow.set_route_progress(
            self.route(route_id),
            completed_contacts=completed_contacts,
            successful_contacts=successful_contacts,
            secured_referrals=secured_referrals,
        )

    # =========================================================================
    # Internals
    # =========================================================================

    @property
    def _enforce(self) -> bool:
        return self.workflow_settings.enforce_status_transitions

    def _replace(self, updated: PatientPredictionRecord) -> PatientPredictionRecord:
        records = [updated if r.id == updated.id else r for r in self.require_snapshot().records]
        self._rebuild(records)
        return self.patient(updated.id)

    def _rebuild(self, records: List[PatientPredictionRecord]) -> None:
        previous = self.require_snapshot()
        result = self.pipeline.rebuild(records, self.directory, previous.route_date)
        result.skipped = previous.skipped
        _carry_route_progress(previous.assignment.routes, result.assignment.routes)
        self._snapshot = result


def _carry_route_progress(old: List[MarketingRoute], new: List[MarketingRoute]) -> None:
    """Keep field progress on routes that survive a rebuild."""
    by_id = {r.id: r for r in old}
    for route in new:
        prior = by_id.get(route.id)
        if prior is None:
            continue
        route.status = prior.status
        route.completed_contacts = prior.completed_contacts
        route.successful_contacts = prior.successful_contacts
        route.secured_referrals = prior.secured_referrals
