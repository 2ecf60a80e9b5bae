"""
Patient Prediction Models

Canonical admission record carried through scoring, classification,
routing and analytics.
"""

from datetime import date, datetime
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AcuityLevel(str, Enum):
    """Clinical acuity of the admission."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DischargeDestination(str, Enum):
    """Where the patient is expected to go after discharge."""
    HOME = "home"
    SNF = "snf"
    LTAC = "ltac"
    REHAB = "rehab"
    OTHER = "other"


class PatientStatus(str, Enum):
    """Referral workflow status."""
    ADMITTED = "admitted"
    CONTACTED = "contacted"
    SECURED = "secured"
    DISCHARGED = "discharged"
    LOST = "lost"


# Forward-only progression: admitted -> contacted -> secured|lost -> discharged
STATUS_TRANSITIONS: Dict[PatientStatus, FrozenSet[PatientStatus]] = {
    PatientStatus.ADMITTED: frozenset({
        PatientStatus.CONTACTED,
        PatientStatus.SECURED,
        PatientStatus.LOST,
        PatientStatus.DISCHARGED,
    }),
    PatientStatus.CONTACTED: frozenset({
        PatientStatus.CONTACTED,
        PatientStatus.SECURED,
        PatientStatus.LOST,
        PatientStatus.DISCHARGED,
    }),
    PatientStatus.SECURED: frozenset({PatientStatus.DISCHARGED}),
    PatientStatus.LOST: frozenset({PatientStatus.DISCHARGED}),
    PatientStatus.DISCHARGED: frozenset(),
}

ACTIVE_STATUSES = frozenset({
    PatientStatus.ADMITTED,
    PatientStatus.CONTACTED,
    PatientStatus.SECURED,
})


def can_transition(current: PatientStatus, target: PatientStatus) -> bool:
    """Check whether a status change follows the forward-only progression."""
    return target in STATUS_TRANSITIONS[current]


class PatientPredictionRecord(BaseModel):
    """
    Admission record with predicted discharge and referral scoring.

    Derived fields (risk score, potential value, priority, eligibility,
    destination, predicted LOS/discharge) are filled by the scorer and
    classifier; they are never edited directly.
    """

    model_config = ConfigDict(use_enum_values=False)

    # Identity
    id: str
    mrn: Optional[str] = None
    patient_name: str
    dob: Optional[date] = None
    age: Optional[int] = None
    gender: str = "unknown"
    address: Optional[str] = None
    zip_code: Optional[str] = None
    phone: Optional[str] = None

    # Clinical
    primary_diagnosis: str = ""
    icd10_codes: List[str] = Field(default_factory=list)
    comorbidities: List[str] = Field(default_factory=list)
    acuity_level: AcuityLevel = AcuityLevel.MEDIUM
    diagnosis_category: Optional[str] = None

    # Administrative
    facility: str = ""
    facility_id: Optional[str] = None
    unit: Optional[str] = None
    admitting_physician: Optional[str] = None
    insurance: str = "Unknown"
    insurance_id: Optional[str] = None

    # Temporal
    admission_date: datetime
    predicted_discharge: Optional[datetime] = None
    predicted_los: Optional[int] = None
    actual_discharge: Optional[datetime] = None

    # Derived
    risk_score: int = 0
    potential_value: float = 0.0
    marketing_priority: int = 5
    home_health_eligible: bool = False
    discharge_destination: Optional[DischargeDestination] = None
    predictive_flags: List[str] = Field(default_factory=list)

    # Workflow
    status: PatientStatus = PatientStatus.ADMITTED
    referral_secured: bool = False
    notes: Optional[str] = None

    # Assignment
    assigned_marketer: Optional[str] = None
    assigned_nurse: Optional[str] = None
    case_manager: Optional[str] = None
    case_manager_phone: Optional[str] = None
    contact_attempts: int = 0
    last_contact_date: Optional[datetime] = None

    @property
    def actual_los(self) -> Optional[int]:
        """Days between admission and actual discharge."""
        if self.actual_discharge is None:
            return None
        return max(0, (self.actual_discharge - self.admission_date).days)

    @property
    def length_of_stay(self) -> Optional[int]:
        """Actual LOS when discharged, otherwise the prediction."""
        actual = self.actual_los
        return actual if actual is not None else self.predicted_los

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_conversion(self) -> bool:
        """Referral was captured for this admission."""
        if self.status == PatientStatus.SECURED:
            return True
        return self.status == PatientStatus.DISCHARGED and self.referral_secured
