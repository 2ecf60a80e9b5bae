"""
Risk/Value Scorer

Weighted heuristic for home-health referral value:
- Diagnosis-category base risk (ICD-10 prefix, then diagnosis text)
- Comorbidity, age and acuity adjustments
- Predicted length of stay and discharge
- Potential value from the payer daily-rate table
- Home-health eligibility and predictive flags

Every output is a pure function of the record and the injected tables;
there is no randomness and no wall-clock input.
"""

from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime, timedelta

import structlog
from pydantic import BaseModel, Field

from pathway.config import ScoringSettings
from pathway.models.patient import (
    AcuityLevel,
    DischargeDestination,
    PatientPredictionRecord,
)

logger = structlog.get_logger(__name__)


# =============================================================================
# Reference Tables
# =============================================================================

# Ordered: the first matching category wins
DIAGNOSIS_CATEGORIES: Dict[str, Dict[str, Any]] = {
    "heart_failure": {
        "name": "Heart Failure",
        "icd10_prefixes": ("I50",),
        "keywords": ("heart failure", "chf", "cardiomyopathy"),
        "base_risk": 70,
        "base_los": 5,
        "home_health": True,
        "destination": DischargeDestination.HOME,
        "flag": "CHF Protocol",
    },
    "stroke": {
        "name": "Stroke",
        "icd10_prefixes": ("I61", "I63"),
        "keywords": ("stroke", "cerebral infarction", "cva"),
        "base_risk": 65,
        "base_los": 6,
        "home_health": True,
        "destination": DischargeDestination.REHAB,
        "flag": "Stroke Protocol",
    },
    "sepsis": {
        "name": "Sepsis",
        "icd10_prefixes": ("A40", "A41"),
        "keywords": ("sepsis", "septic"),
        "base_risk": 65,
        "base_los": 6,
        "home_health": True,
        "destination": DischargeDestination.HOME,
        "flag": "Sepsis Follow-up",
    },
    "copd": {
        "name": "COPD",
        "icd10_prefixes": ("J43", "J44"),
        "keywords": ("copd", "chronic obstructive", "emphysema"),
        "base_risk": 60,
        "base_los": 3,
        "home_health": True,
        "destination": DischargeDestination.HOME,
        "flag": "COPD Protocol",
    },
    "hip_fracture": {
        "name": "Hip Fracture",
        "icd10_prefixes": ("S72",),
        "keywords": ("hip fracture", "femur fracture", "femoral neck"),
        "base_risk": 60,
        "base_los": 4,
        "home_health": True,
        "destination": DischargeDestination.HOME,
        "flag": "Ortho Protocol",
    },
    "myocardial_infarction": {
        "name": "Myocardial Infarction",
        "icd10_prefixes": ("I21", "I22"),
        "keywords": ("myocardial infarction", "heart attack", "stemi"),
        "base_risk": 60,
        "base_los": 4,
        "home_health": True,
        "destination": DischargeDestination.HOME,
        "flag": "Cardiac Rehab",
    },
    "pneumonia": {
        "name": "Pneumonia",
        "icd10_prefixes": ("J12", "J15", "J18"),
        "keywords": ("pneumonia",),
        "base_risk": 50,
        "base_los": 4,
        "home_health": True,
        "destination": DischargeDestination.HOME,
        "flag": "Respiratory Protocol",
    },
    "kidney_disease": {
        "name": "Kidney Disease",
        "icd10_prefixes": ("N17", "N18"),
        "keywords": ("kidney", "renal"),
        "base_risk": 50,
        "base_los": 4,
        "home_health": True,
        "destination": DischargeDestination.HOME,
        "flag": "Renal Protocol",
    },
    "wound": {
        "name": "Wound Care",
        "icd10_prefixes": ("L03", "L89", "L97"),
        "keywords": ("wound", "ulcer", "cellulitis"),
        "base_risk": 45,
        "base_los": 5,
        "home_health": True,
        "destination": DischargeDestination.HOME,
        "flag": "Wound Care",
    },
    "diabetes": {
        "name": "Diabetes",
        "icd10_prefixes": ("E10", "E11"),
        "keywords": ("diabetes", "diabetic"),
        "base_risk": 45,
        "base_los": 3,
        "home_health": True,
        "destination": DischargeDestination.HOME,
        "flag": "Diabetes Education",
    },
    "joint_replacement": {
        "name": "Joint Replacement",
        "icd10_prefixes": ("M16", "M17", "Z96"),
        "keywords": ("arthroplasty", "joint replacement", "knee replacement", "hip replacement"),
        "base_risk": 40,
        "base_los": 3,
        "home_health": True,
        "destination": DischargeDestination.HOME,
        "flag": "Ortho Protocol",
    },
    "behavioral_health": {
        "name": "Behavioral Health",
        "icd10_prefixes": ("F20", "F31", "F32", "F33"),
        "keywords": ("schizophrenia", "bipolar", "depressive"),
        "base_risk": 25,
        "base_los": 7,
        "home_health": False,
        "destination": DischargeDestination.OTHER,
        "flag": None,
    },
}

DEFAULT_CATEGORY: Dict[str, Any] = {
    "name": "General Medical",
    "icd10_prefixes": (),
    "keywords": (),
    "base_risk": 30,
    "base_los": 3,
    "home_health": True,
    "destination": DischargeDestination.HOME,
    "flag": None,
}

# Average daily reimbursement by payer type
PAYER_DAILY_RATES: Dict[str, float] = {
    "medicare": 1040.0,
    "medicare_advantage": 920.0,
    "commercial": 880.0,
    "medicaid": 610.0,
    "unknown": 500.0,
    "self_pay": 250.0,
}

# (substring, payer type); checked in order against the lowercased insurance name
PAYER_KEYWORDS: List[Tuple[str, str]] = [
    ("advantage", "medicare_advantage"),
    ("medicare", "medicare"),
    ("medicaid", "medicaid"),
    ("healthy michigan", "medicaid"),
    ("molina", "medicaid"),
    ("self", "self_pay"),
    ("uninsured", "self_pay"),
    ("unknown", "unknown"),
]

HOME_HEALTH_DESTINATIONS = frozenset({DischargeDestination.HOME, DischargeDestination.OTHER})


def classify_payer(insurance: Optional[str]) -> str:
    """Map an insurance name to a payer type."""
    name = (insurance or "").strip().lower()
    if not name:
        return "unknown"
    for keyword, payer_type in PAYER_KEYWORDS:
        if keyword in name:
            return payer_type
    return "commercial"


def match_diagnosis_category(
    primary_diagnosis: str,
    icd10_codes: List[str],
    table: Dict[str, Dict[str, Any]] = None,
) -> Tuple[str, Dict[str, Any]]:
    """Find the diagnosis category by ICD-10 prefix, then by keyword."""
    table = table if table is not None else DIAGNOSIS_CATEGORIES

    for code in icd10_codes:
        code = code.upper()
        for key, category in table.items():
            if any(code.startswith(p) for p in category["icd10_prefixes"]):
                return key, category

    text = (primary_diagnosis or "").lower()
    for key, category in table.items():
        if any(k in text for k in category["keywords"]):
            return key, category

    return "general", DEFAULT_CATEGORY


# =============================================================================
# Models
# =============================================================================

class RiskAssessment(BaseModel):
    """Everything the scorer derives for one record."""
    patient_id: str
    diagnosis_category: str
    diagnosis_name: str
    payer_type: str

    risk_score: int
    potential_value: float

    predicted_los: int
    predicted_discharge: datetime
    discharge_destination: DischargeDestination
    home_health_eligible: bool

    score_components: Dict[str, int] = Field(default_factory=dict)
    predictive_flags: List[str] = Field(default_factory=list)


# =============================================================================
# Scorer
# =============================================================================

class RiskValueScorer:
    """
    Deterministic risk/value scorer.

    Tables and weights are injected so they can be tuned without code
    changes:

        scorer = RiskValueScorer(
            settings=ScoringSettings(elderly_points=15),
            payer_rates={**PAYER_DAILY_RATES, "commercial": 950.0},
        )
        risk_score, potential_value = scorer.score(record)
    """

    def __init__(
        self,
        settings: ScoringSettings = None,
        diagnosis_table: Dict[str, Dict[str, Any]] = None,
        payer_rates: Dict[str, float] = None,
    ):
        self.settings = settings or ScoringSettings()
        self.diagnosis_table = diagnosis_table if diagnosis_table is not None else DIAGNOSIS_CATEGORIES
        self.payer_rates = payer_rates if payer_rates is not None else PAYER_DAILY_RATES

    def score(self, record: PatientPredictionRecord) -> Tuple[int, float]:
        """Return (risk_score, potential_value) for a record."""
        assessment = self.assess(record)
        return assessment.risk_score, assessment.potential_value

    def assess(self, record: PatientPredictionRecord) -> RiskAssessment:
        """Run the full heuristic for a record."""
        category_key, category = match_diagnosis_category(
            record.primary_diagnosis,
            record.icd10_codes,
            self.diagnosis_table,
        )
        payer_type = classify_payer(record.insurance)

        components = self._score_components(record, category)
        risk_score = max(0, min(100, sum(components.values())))

        predicted_los = self._predict_los(record, category)
        predicted_discharge = record.predicted_discharge or (
            record.admission_date + timedelta(days=predicted_los)
        )

        daily_rate = self.payer_rates.get(payer_type, self.payer_rates.get("unknown", 0.0))
        potential_value = round(predicted_los * daily_rate, 2)

        destination = record.discharge_destination or category["destination"]
        eligible = (
            bool(category["home_health"])
            and payer_type != "self_pay"
            and destination in HOME_HEALTH_DESTINATIONS
        )

        flags = self._flags(record, category, risk_score, potential_value)

        return RiskAssessment(
            patient_id=record.id,
            diagnosis_category=category_key,
            diagnosis_name=category["name"],
            payer_type=payer_type,
            risk_score=risk_score,
            potential_value=potential_value,
            predicted_los=predicted_los,
            predicted_discharge=predicted_discharge,
            discharge_destination=destination,
            home_health_eligible=eligible,
            score_components=components,
            predictive_flags=flags,
        )

    def apply(self, record: PatientPredictionRecord) -> PatientPredictionRecord:
        """Return a copy of the record with the derived fields filled in."""
        assessment = self.assess(record)
        return record.model_copy(update={
            "diagnosis_category": assessment.diagnosis_name,
            "risk_score": assessment.risk_score,
            "potential_value": assessment.potential_value,
            "predicted_los": assessment.predicted_los,
            "predicted_discharge": assessment.predicted_discharge,
            "discharge_destination": assessment.discharge_destination,
            "home_health_eligible": assessment.home_health_eligible,
            "predictive_flags": assessment.predictive_flags,
        })

    def _score_components(
        self,
        record: PatientPredictionRecord,
        category: Dict[str, Any],
    ) -> Dict[str, int]:
        s = self.settings
        extra_comorbidities = max(0, len(record.comorbidities) - s.comorbidity_threshold)
        components = {
            "diagnosis": int(category["base_risk"]),
            "comorbidities": extra_comorbidities * s.points_per_comorbidity,
            "age": s.elderly_points if (record.age or 0) > s.elderly_age else 0,
            "acuity": s.acuity_points.get(record.acuity_level.value, 0),
        }
        return components

    def _predict_los(self, record: PatientPredictionRecord, category: Dict[str, Any]) -> int:
        if record.predicted_los is not None and record.predicted_los > 0:
            return record.predicted_los

        s = self.settings
        los = int(category["base_los"])
        los += s.acuity_los_days.get(record.acuity_level.value, 0)
        if (record.age or 0) > s.very_elderly_age:
            los += s.very_elderly_los_days
        return max(1, los)

    def _flags(
        self,
        record: PatientPredictionRecord,
        category: Dict[str, Any],
        risk_score: int,
        potential_value: float,
    ) -> List[str]:
        s = self.settings
        flags = []
        if potential_value >= s.high_value_threshold:
            flags.append("High-value")
        if category["flag"]:
            flags.append(category["flag"])
        if risk_score >= s.readmission_risk_threshold:
            flags.append("Readmission Risk")
        if len(record.comorbidities) > s.comorbidity_threshold:
            flags.append("Multiple Comorbidities")
        if record.acuity_level == AcuityLevel.HIGH:
            flags.append("High Acuity")
        return flags


# =============================================================================
# API Functions
# =============================================================================

_scorer: Optional[RiskValueScorer] = None


def get_risk_scorer() -> RiskValueScorer:
    """Get global scorer with default tables."""
    global _scorer
    if _scorer is None:
        _scorer = RiskValueScorer()
    return _scorer


def score(record: PatientPredictionRecord) -> Tuple[int, float]:
    """Score a record with the default tables."""
    return get_risk_scorer().score(record)
