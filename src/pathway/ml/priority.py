"""
Priority Classifier

Maps a risk score and workflow state to a 1-5 marketing priority
(1 = urgent outreach, 5 = deprioritized).
"""

from typing import Iterable, List, Tuple
from datetime import datetime
from enum import IntEnum

from pathway.models.patient import PatientPredictionRecord, PatientStatus


class MarketingPriority(IntEnum):
    """Outreach priority buckets."""
    URGENT = 1
    HIGH = 2
    STANDARD = 3
    ROUTINE = 4
    DEPRIORITIZED = 5


# (minimum risk score, priority); checked top-down
PRIORITY_THRESHOLDS: List[Tuple[int, MarketingPriority]] = [
    (90, MarketingPriority.URGENT),
    (75, MarketingPriority.HIGH),
    (50, MarketingPriority.STANDARD),
]

DEPRIORITIZED_STATUSES = frozenset({PatientStatus.LOST, PatientStatus.DISCHARGED})

DEFAULT_MAX_CONTACT_ATTEMPTS = 5


def classify(
    risk_score: int,
    status: PatientStatus = PatientStatus.ADMITTED,
    home_health_eligible: bool = True,
    contact_attempts: int = 0,
    max_contact_attempts: int = DEFAULT_MAX_CONTACT_ATTEMPTS,
) -> int:
    """
    Classify outreach priority.

    Ineligible patients and patients in a terminal status are 5. Otherwise
    the score bucket applies; a patient contacted more than
    `max_contact_attempts` times without a secured referral drops one
    bucket, but never below 4.
    """
    if not home_health_eligible or PatientStatus(status) in DEPRIORITIZED_STATUSES:
        return int(MarketingPriority.DEPRIORITIZED)

    priority = MarketingPriority.ROUTINE
    for threshold, bucket in PRIORITY_THRESHOLDS:
        if risk_score >= threshold:
            priority = bucket
            break

    if (
        contact_attempts > max_contact_attempts
        and PatientStatus(status) != PatientStatus.SECURED
        and priority < MarketingPriority.ROUTINE
    ):
        priority = MarketingPriority(priority + 1)

    return int(priority)


def classify_record(
    record: PatientPredictionRecord,
    max_contact_attempts: int = DEFAULT_MAX_CONTACT_ATTEMPTS,
) -> PatientPredictionRecord:
    """Return a copy of a scored record with its priority set."""
    priority = classify(
        record.risk_score,
        status=record.status,
        home_health_eligible=record.home_health_eligible,
        contact_attempts=record.contact_attempts,
        max_contact_attempts=max_contact_attempts,
    )
    return record.model_copy(update={"marketing_priority": priority})


def outreach_sort_key(record: PatientPredictionRecord) -> Tuple[int, datetime, str]:
    """Priority first, then earliest predicted discharge, then id."""
    discharge = record.predicted_discharge or datetime.max
    return (record.marketing_priority, discharge, record.id)


def prioritize(records: Iterable[PatientPredictionRecord]) -> List[PatientPredictionRecord]:
    """Order records for outreach."""
    return sorted(records, key=outreach_sort_key)

