"""
Admission Scoring & Route Assignment Pipeline

raw admissions -> normalize -> score -> classify -> route -> aggregate

Single pass, synchronous and free of I/O: everything runs over an
already-fetched snapshot and is recomputed in full on each refresh.
"""

from typing import Iterable, List, Optional
from datetime import date

import structlog
from pydantic import BaseModel, Field

from pathway.analytics.aggregator import MetricsAggregator
from pathway.config import RoutingSettings, ScoringSettings
from pathway.ingestion.normalization import PatientRecordNormalizer, SkippedRecord
from pathway.ml.priority import classify_record, prioritize
from pathway.ml.scoring import RiskValueScorer
from pathway.models.analytics import PredictiveAnalytics
from pathway.models.patient import PatientPredictionRecord
from pathway.models.routing import RouteAssignmentResult
from pathway.routing.directory import RoutingDirectory
from pathway.routing.grouper import RouteGrouper

logger = structlog.get_logger(__name__)


class PipelineResult(BaseModel):
    """Everything the dashboard needs for one refresh."""
    route_date: date
    records: List[PatientPredictionRecord] = Field(default_factory=list)
    assignment: RouteAssignmentResult = Field(default_factory=RouteAssignmentResult)
    analytics: PredictiveAnalytics = Field(default_factory=PredictiveAnalytics)
    skipped: List[SkippedRecord] = Field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


class AdmissionPipeline:
    """
    Wires the normalizer, scorer, classifier, route grouper and aggregator.

    Usage:
        pipeline = AdmissionPipeline()
        result = pipeline.run(raw_admissions, directory, route_date=date(2024, 1, 16))
        print(result.analytics.potential_revenue, result.skipped_count)
    """

    def __init__(
        self,
        scorer: RiskValueScorer = None,
        normalizer: PatientRecordNormalizer = None,
        grouper: RouteGrouper = None,
        scoring_settings: ScoringSettings = None,
        routing_settings: RoutingSettings = None,
    ):
        self.scoring_settings = scoring_settings or ScoringSettings()
        self.scorer = scorer or RiskValueScorer(settings=self.scoring_settings)
        self.normalizer = normalizer or PatientRecordNormalizer()
        self.grouper = grouper or RouteGrouper(settings=routing_settings)

    def run(
        self,
        raw_admissions: Iterable[dict],
        directory: RoutingDirectory,
        route_date: date,
    ) -> PipelineResult:
        """Normalize raw admissions and run the full pipeline."""
        normalized = self.normalizer.normalize_batch(raw_admissions)
        result = self.rebuild(normalized.records, directory, route_date)
        result.skipped = normalized.skipped
        return result

    def rebuild(
        self,
        records: Iterable[PatientPredictionRecord],
        directory: RoutingDirectory,
        route_date: date,
    ) -> PipelineResult:
        """Rescore, reclassify, reroute and re-aggregate normalized records."""
        classified = [self.classify(record) for record in records]

        routable = [r for r in classified if r.is_active]
        assignment = self.grouper.generate_routes(
            routable,
            directory.marketers,
            directory.facilities,
            route_date,
        )
        classified = _apply_assignment(classified, assignment)

        aggregator = MetricsAggregator(directory.facilities)
        analytics = aggregator.summarize(classified, as_of=route_date)

        logger.info(
            "Pipeline complete",
            records=len(classified),
            routes=len(assignment.routes),
            unassigned=len(assignment.unassigned),
            reason=assignment.reason,
        )
        return PipelineResult(
            route_date=route_date,
            records=prioritize(classified),
            assignment=assignment,
            analytics=analytics,
        )

    def classify(self, record: PatientPredictionRecord) -> PatientPredictionRecord:
        """Score and classify one record."""
        scored = self.scorer.apply(record)
        return classify_record(scored, max_contact_attempts=self.scoring_settings.max_contact_attempts)


def _apply_assignment(
    records: List[PatientPredictionRecord],
    assignment: RouteAssignmentResult,
) -> List[PatientPredictionRecord]:
    marketer_for = {}
    for route in assignment.routes:
        for patient_id in route.patient_ids:
            marketer_for[patient_id] = route.marketer_name

    updated = []
    for record in records:
        marketer: Optional[str] = marketer_for.get(record.id)
        if marketer and marketer != record.assigned_marketer:
            record = record.model_copy(update={"assigned_marketer": marketer})
        updated.append(record)
    return updated
