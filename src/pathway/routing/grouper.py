"""
Route Grouper

Assigns home-health-eligible patients to field marketers and orders each
marketer's patients into a daily route.

Assignment is greedy: patients are taken in outreach order (priority, then
earliest predicted discharge) and each goes to the covering marketer with
the fewest high-priority patients so far, ties broken by straight-line
distance from the marketer's base to the facility. A patient already
assigned to a covering marketer stays with that marketer. A patient whose
facility no marketer covers is reported as unassigned; no eligible patient
is ever dropped.
"""

from typing import Dict, Iterable, List, Optional, Tuple
from datetime import date, datetime, time, timedelta

import structlog

from pathway.config import RoutingSettings
from pathway.errors import NoMarketersConfiguredError
from pathway.ml.priority import outreach_sort_key
from pathway.models.patient import PatientPredictionRecord
from pathway.models.routing import (
    Facility,
    Marketer,
    MarketingRoute,
    RouteAssignmentResult,
    RoutePriority,
    RouteWaypoint,
)
from pathway.routing.geo import drive_minutes, haversine_miles

logger = structlog.get_logger(__name__)


class RouteGrouper:
    """
    Builds per-marketer daily routes.

    Usage:
        grouper = RouteGrouper()
        result = grouper.generate_routes(patients, marketers, facilities, date(2024, 1, 16))
        for route in result.routes:
            print(route.marketer_name, route.patient_ids)
        print("unassigned:", result.unassigned)
    """

    def __init__(self, settings: RoutingSettings = None):
        self.settings = settings or RoutingSettings()

    def generate_routes(
        self,
        patients: Iterable[PatientPredictionRecord],
        marketers: List[Marketer],
        facilities: List[Facility],
        route_date: date,
    ) -> RouteAssignmentResult:
        """
        Group eligible patients into routes.

        Never raises for an empty marketer list: the result carries no routes,
        every eligible patient id as unassigned, and the reason code.
        """
        eligible = [p for p in patients if p.home_health_eligible]
        try:
            return self.assign(eligible, marketers, facilities, route_date)
        except NoMarketersConfiguredError as e:
            logger.warning("Route grouping skipped", reason=e.reason_code, patients=len(eligible))
            return RouteAssignmentResult(
                routes=[],
                unassigned=[p.id for p in sorted(eligible, key=outreach_sort_key)],
                reason=e.reason_code,
            )

    def assign(
        self,
        patients: List[PatientPredictionRecord],
        marketers: List[Marketer],
        facilities: List[Facility],
        route_date: date,
    ) -> RouteAssignmentResult:
        """
        Greedy assignment of already-eligible patients.

        Raises:
            NoMarketersConfiguredError: marketer list is empty
        """
        if not marketers:
            raise NoMarketersConfiguredError("No marketers configured")

        by_id = {f.id: f for f in facilities}
        by_name = {f.name.lower(): f for f in facilities}

        assigned: Dict[str, List[PatientPredictionRecord]] = {m.id: [] for m in marketers}
        high_priority_load: Dict[str, int] = {m.id: 0 for m in marketers}
        unassigned: List[str] = []

        for patient in sorted(patients, key=outreach_sort_key):
            facility = self._resolve_facility(patient, by_id, by_name)
            if facility is None:
                logger.info("Unknown facility, patient unassigned", patient_id=patient.id)
                unassigned.append(patient.id)
                continue

            candidates = [m for m in marketers if self.covers(m, facility)]
            if not candidates:
                unassigned.append(patient.id)
                continue

            chosen = self._pinned_marketer(patient, candidates) or min(
                candidates,
                key=lambda m: (
                    high_priority_load[m.id],
                    haversine_miles(m.base, facility.location),
                    m.id,
                ),
            )
            assigned[chosen.id].append(patient)
            if patient.marketing_priority <= self.settings.high_priority_cutoff:
                high_priority_load[chosen.id] += 1

        routes = []
        for marketer in marketers:
            stops = assigned[marketer.id]
            if not stops:
                continue
            routes.append(self._build_route(marketer, stops, by_id, by_name, route_date))

        logger.info(
            "Routes generated",
            date=route_date.isoformat(),
            routes=len(routes),
            routed=sum(len(r.patient_ids) for r in routes),
            unassigned=len(unassigned),
        )
        return RouteAssignmentResult(routes=routes, unassigned=unassigned)

    def covers(self, marketer: Marketer, facility: Facility) -> bool:
        """Is the facility inside the marketer's coverage area?"""
        if facility.region and facility.region in marketer.coverage_regions:
            return True
        radius = marketer.coverage_radius_miles
        if radius is None and not marketer.coverage_regions:
            radius = self.settings.default_coverage_radius_miles
        if radius is None:
            return False
        return haversine_miles(marketer.base, facility.location) <= radius

    def order_stops(
        self,
        patients: List[PatientPredictionRecord],
        route_date: date,
    ) -> List[PatientPredictionRecord]:
        """
        Order by predicted discharge; priority-1 patients discharging on the
        route date go first regardless of time.
        """
        def key(p: PatientPredictionRecord) -> Tuple[int, datetime, str]:
            discharge = p.predicted_discharge or datetime.max
            same_day_urgent = p.marketing_priority == 1 and discharge.date() == route_date
            return (0 if same_day_urgent else 1, discharge, p.id)

        return sorted(patients, key=key)

    def _pinned_marketer(
        self,
        patient: PatientPredictionRecord,
        candidates: List[Marketer],
    ) -> Optional[Marketer]:
        """Manual assignment wins when that marketer covers the facility."""
        wanted = (patient.assigned_marketer or "").strip().lower()
        if not wanted:
            return None
        for marketer in candidates:
            if wanted in (marketer.id.lower(), marketer.name.lower()):
                return marketer
        logger.info("Assigned marketer does not cover facility", patient_id=patient.id)
        return None

    def _resolve_facility(
        self,
        patient: PatientPredictionRecord,
        by_id: Dict[str, Facility],
        by_name: Dict[str, Facility],
    ) -> Optional[Facility]:
        if patient.facility_id and patient.facility_id in by_id:
            return by_id[patient.facility_id]
        return by_name.get(patient.facility.lower())

    def _build_route(
        self,
        marketer: Marketer,
        patients: List[PatientPredictionRecord],
        by_id: Dict[str, Facility],
        by_name: Dict[str, Facility],
        route_date: date,
    ) -> MarketingRoute:
        s = self.settings
        ordered = self.order_stops(patients, route_date)

        # Consecutive patients at the same facility share a waypoint
        groups: List[Tuple[Facility, List[PatientPredictionRecord]]] = []
        for patient in ordered:
            facility = self._resolve_facility(patient, by_id, by_name)
            if groups and groups[-1][0].id == facility.id:
                groups[-1][1].append(patient)
            else:
                groups.append((facility, [patient]))

        clock = datetime.combine(route_date, time.fromisoformat(s.day_start))
        position = marketer.base
        total_miles = 0.0
        total_drive = 0.0
        waypoints = []

        for facility, stop_patients in groups:
            leg = haversine_miles(position, facility.location) * s.road_factor
            leg_minutes = drive_minutes(leg, s.average_speed_mph)
            total_miles += leg
            total_drive += leg_minutes
            clock += timedelta(minutes=leg_minutes)

            duration = s.facility_visit_minutes + s.patient_visit_minutes * len(stop_patients)
            waypoints.append(RouteWaypoint(
                facility_id=facility.id,
                facility_name=facility.name,
                address=facility.address,
                estimated_arrival=clock.replace(second=0, microsecond=0),
                estimated_duration=duration,
                patient_ids=[p.id for p in stop_patients],
            ))
            clock += timedelta(minutes=duration)
            position = facility.location

        # Return to base
        leg = haversine_miles(position, marketer.base) * s.road_factor
        total_miles += leg
        total_drive += drive_minutes(leg, s.average_speed_mph)

        facilities = []
        for facility, _ in groups:
            if facility.name not in facilities:
                facilities.append(facility.name)

        return MarketingRoute(
            id=f"route-{route_date:%Y%m%d}-{marketer.id}",
            marketer_id=marketer.id,
            marketer_name=marketer.name,
            date=route_date,
            patient_ids=[p.id for p in ordered],
            facilities=facilities,
            waypoints=waypoints,
            estimated_drive_time=int(round(total_drive)),
            total_miles=round(total_miles, 1),
            priority=_route_priority(ordered, s.high_priority_cutoff),
        )


def _route_priority(patients: List[PatientPredictionRecord], high_cutoff: int) -> RoutePriority:
    best = min(p.marketing_priority for p in patients)
    if best <= high_cutoff:
        return RoutePriority.HIGH
    if best <= 3:
        return RoutePriority.MEDIUM
    return RoutePriority.LOW
