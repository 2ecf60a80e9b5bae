"""
Metrics Aggregator

Rolls classified patient records up into facility, region and dashboard
summaries. Stateless: every call recomputes from the records passed in.
"""

from typing import Dict, Iterable, List, Optional
from collections import defaultdict
from datetime import date

import structlog

from pathway.models.analytics import (
    DiagnosisSummary,
    DischargeTimelinePoint,
    FacilityAggregate,
    PredictiveAnalytics,
    RegionAggregate,
    ZipCodeHotspot,
)
from pathway.models.patient import PatientPredictionRecord, PatientStatus
from pathway.models.routing import Facility

logger = structlog.get_logger(__name__)

UNKNOWN_REGION = "Unknown"
GENERAL_DIAGNOSIS = "General Medical"


def _average_los(records: List[PatientPredictionRecord]) -> float:
    values = [r.length_of_stay for r in records if r.length_of_stay is not None]
    if not values:
        return 0.0
    return round(sum(values) / len(values), 1)


def _rate(numerator: int, denominator: int) -> float:
    if not denominator:
        return 0.0
    return round(numerator / denominator * 100, 1)


class MetricsAggregator:
    """
    Dashboard rollups over a classified patient set.

    Usage:
        aggregator = MetricsAggregator(facilities)
        analytics = aggregator.summarize(records, as_of=date(2024, 1, 16))
        for row in analytics.facility_performance:
            print(row.facility, row.conversion_rate)
    """

    def __init__(self, facilities: Optional[List[Facility]] = None):
        self._by_id: Dict[str, Facility] = {}
        self._by_name: Dict[str, Facility] = {}
        for facility in facilities or []:
            self._by_id[facility.id] = facility
            self._by_name[facility.name.lower()] = facility

    def region_of(self, record: PatientPredictionRecord) -> str:
        facility = self._facility_for(record)
        if facility and facility.region:
            return facility.region
        return UNKNOWN_REGION

    def facility_rollups(self, records: Iterable[PatientPredictionRecord]) -> List[FacilityAggregate]:
        """Admissions, conversions, LOS and value per facility."""
        groups: Dict[str, List[PatientPredictionRecord]] = defaultdict(list)
        for record in records:
            groups[self._facility_key(record)].append(record)

        rollups = []
        for key, group in groups.items():
            first = group[0]
            facility = self._facility_for(first)
            conversions = sum(1 for r in group if r.is_conversion)
            rollups.append(FacilityAggregate(
                facility_id=key,
                facility=facility.name if facility else (first.facility or key),
                region=self.region_of(first),
                admissions=len(group),
                conversions=conversions,
                average_los=_average_los(group),
                total_potential_value=round(sum(r.potential_value for r in group), 2),
                conversion_rate=_rate(conversions, len(group)),
            ))

        rollups.sort(key=lambda f: (-f.admissions, f.facility))
        return rollups

    def region_rollups(self, records: Iterable[PatientPredictionRecord]) -> List[RegionAggregate]:
        """Same rollup, grouped by facility region."""
        groups: Dict[str, List[PatientPredictionRecord]] = defaultdict(list)
        for record in records:
            groups[self.region_of(record)].append(record)

        rollups = []
        for region, group in groups.items():
            conversions = sum(1 for r in group if r.is_conversion)
            rollups.append(RegionAggregate(
                region=region,
                facilities=len({self._facility_key(r) for r in group}),
                admissions=len(group),
                conversions=conversions,
                average_los=_average_los(group),
                total_potential_value=round(sum(r.potential_value for r in group), 2),
                conversion_rate=_rate(conversions, len(group)),
            ))

        rollups.sort(key=lambda r: (-r.admissions, r.region))
        return rollups

    def top_diagnoses(
        self,
        records: Iterable[PatientPredictionRecord],
        limit: int = 5,
    ) -> List[DiagnosisSummary]:
        groups: Dict[str, List[PatientPredictionRecord]] = defaultdict(list)
        for record in records:
            groups[record.diagnosis_category or GENERAL_DIAGNOSIS].append(record)

        summaries = [
            DiagnosisSummary(
                diagnosis=name,
                count=len(group),
                average_los=_average_los(group),
                eligibility=_rate(sum(1 for r in group if r.home_health_eligible), len(group)),
                average_value=round(sum(r.potential_value for r in group) / len(group), 2),
            )
            for name, group in groups.items()
        ]
        summaries.sort(key=lambda d: (-d.count, d.diagnosis))
        return summaries[:limit]

    def zip_code_hotspots(self, records: Iterable[PatientPredictionRecord]) -> List[ZipCodeHotspot]:
        """Volume by zip; covered when any patient there has a marketer."""
        groups: Dict[str, List[PatientPredictionRecord]] = defaultdict(list)
        for record in records:
            if record.zip_code:
                groups[record.zip_code].append(record)

        hotspots = [
            ZipCodeHotspot(
                zip_code=zip_code,
                patients=len(group),
                value=round(sum(r.potential_value for r in group), 2),
                coverage=any(r.assigned_marketer for r in group),
            )
            for zip_code, group in groups.items()
        ]
        hotspots.sort(key=lambda z: (-z.patients, z.zip_code))
        return hotspots

    def discharge_timeline(self, records: Iterable[PatientPredictionRecord]) -> List[DischargeTimelinePoint]:
        points: Dict[date, DischargeTimelinePoint] = {}
        for record in records:
            if record.predicted_discharge:
                day = record.predicted_discharge.date()
                points.setdefault(day, DischargeTimelinePoint(date=day)).predicted += 1
            if record.actual_discharge:
                day = record.actual_discharge.date()
                points.setdefault(day, DischargeTimelinePoint(date=day)).actual += 1
        return [points[day] for day in sorted(points)]

    def summarize(
        self,
        records: Iterable[PatientPredictionRecord],
        as_of: date,
    ) -> PredictiveAnalytics:
        """Full dashboard summary; `as_of` selects today's predicted discharges."""
        records = list(records)
        contacted = sum(1 for r in records if r.contact_attempts > 0)
        conversions = sum(1 for r in records if r.is_conversion)

        analytics = PredictiveAnalytics(
            total_admissions=len(records),
            eligible_patients=sum(1 for r in records if r.home_health_eligible),
            predicted_discharges=sum(
                1 for r in records
                if r.predicted_discharge and r.predicted_discharge.date() == as_of
            ),
            contacted_patients=contacted,
            secured_referrals=sum(1 for r in records if r.status == PatientStatus.SECURED),
            average_los=_average_los(records),
            conversion_rate=_rate(conversions, contacted),
            potential_revenue=round(
                sum(r.potential_value for r in records if r.home_health_eligible), 2
            ),
            facility_performance=self.facility_rollups(records),
            region_performance=self.region_rollups(records),
            top_diagnoses=self.top_diagnoses(records),
            zip_code_hotspots=self.zip_code_hotspots(records),
            discharge_timeline=self.discharge_timeline(records),
        )

        logger.debug(
            "Analytics summarized",
            admissions=analytics.total_admissions,
            eligible=analytics.eligible_patients,
        )
        return analytics

    def _facility_for(self, record: PatientPredictionRecord) -> Optional[Facility]:
        if record.facility_id and record.facility_id in self._by_id:
            return self._by_id[record.facility_id]
        return self._by_name.get((record.facility or "").lower())

    def _facility_key(self, record: PatientPredictionRecord) -> str:
        facility = self._facility_for(record)
        if facility:
            return facility.id
        return record.facility_id or record.facility or "unknown"
