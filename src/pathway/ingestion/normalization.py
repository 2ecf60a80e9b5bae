"""
Patient Record Normalizer

Converts raw admission payloads from the EHR / referral source into
canonical PatientPredictionRecord objects.

Source payloads are loosely shaped: keys may be camelCase (EHR JSON) or
snake_case (internal exports), optional fields are frequently absent and
enum-ish values arrive in arbitrary case. Records missing identity fields
are rejected with MalformedRecordError; batch normalization skips them and
keeps going.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple
from datetime import date, datetime, timezone

import structlog
from pydantic import BaseModel, Field

from pathway.errors import MalformedRecordError
from pathway.models.patient import (
    AcuityLevel,
    DischargeDestination,
    PatientPredictionRecord,
    PatientStatus,
)

logger = structlog.get_logger(__name__)


# (canonical field, accepted source keys)
FIELD_ALIASES: Dict[str, tuple] = {
    "id": ("id", "patientId", "patient_id"),
    "mrn": ("mrn", "MRN"),
    "patient_name": ("patientName", "patient_name", "name"),
    "dob": ("dob", "dateOfBirth", "birth_date"),
    "age": ("age",),
    "gender": ("gender", "sex"),
    "address": ("address",),
    "zip_code": ("zipCode", "zip_code", "zip"),
    "phone": ("phone", "phoneNumber"),
    "primary_diagnosis": ("primaryDiagnosis", "primary_diagnosis", "diagnosis"),
    "icd10_codes": ("icd10Codes", "icd10_codes", "icd10"),
    "comorbidities": ("comorbidities",),
    "acuity_level": ("acuityLevel", "acuity_level", "acuity"),
    "facility": ("facility", "facilityName", "facility_name"),
    "facility_id": ("facilityId", "facility_id"),
    "unit": ("unit",),
    "admitting_physician": ("admittingPhysician", "admitting_physician"),
    "insurance": ("insurance", "payer"),
    "insurance_id": ("insuranceId", "insurance_id"),
    "admission_date": ("admissionDate", "admission_date", "admitDate"),
    "predicted_discharge": ("predictedDischarge", "predicted_discharge"),
    "predicted_los": ("predictedLOS", "predicted_los"),
    "actual_discharge": ("actualDischarge", "actual_discharge"),
    "discharge_destination": ("dischargeDestination", "discharge_destination"),
    "status": ("status",),
    "referral_secured": ("referralSecured", "referral_secured"),
    "notes": ("notes",),
    "assigned_marketer": ("assignedMarketer", "assigned_marketer"),
    "assigned_nurse": ("assignedNurse", "assigned_nurse"),
    "case_manager": ("caseManager", "case_manager"),
    "case_manager_phone": ("caseManagerPhone", "case_manager_phone"),
    "contact_attempts": ("contactAttempts", "contact_attempts"),
    "last_contact_date": ("lastContactDate", "last_contact_date"),
}

MANDATORY_FIELDS = ("id", "patient_name", "admission_date")

DUPLICATE_REASON = "Duplicate admission id, superseded by a later record"


class SkippedRecord(BaseModel):
    """A raw record excluded from scoring."""
    index: int
    record_id: Optional[str] = None
    reason: str
    missing: List[str] = Field(default_factory=list)


class NormalizationResult(BaseModel):
    """Outcome of normalizing a batch of raw admissions."""
    records: List[PatientPredictionRecord] = Field(default_factory=list)
    skipped: List[SkippedRecord] = Field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


def _pick(raw: dict, field: str) -> Any:
    """Return the first non-empty value among a field's source keys."""
    for key in FIELD_ALIASES[field]:
        value = raw.get(key)
        if isinstance(value, str):
            value = value.strip()
        if value is not None and value != "":
            return value
    return None


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    # Normalize to naive UTC so records compare cleanly
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _parse_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(v).strip() for v in value if v is not None and str(v).strip()]


def _coerce_enum(enum_cls, value: Any, default=None):
    if value is None:
        return default
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        return default


def _age_at(dob: date, when: datetime) -> int:
    return when.year - dob.year - ((when.month, when.day) < (dob.month, dob.day))


class PatientRecordNormalizer:
    """
    Converts raw admissions to PatientPredictionRecord.

    Usage:
        normalizer = PatientRecordNormalizer()
        result = normalizer.normalize_batch(raw_admissions)
        print(len(result.records), result.skipped_count)
    """

    def normalize(self, raw: dict) -> PatientPredictionRecord:
        """
        Normalize a single raw admission.

        Raises:
            MalformedRecordError: identity fields missing or unparseable
        """
        if not isinstance(raw, dict):
            raise MalformedRecordError("Admission payload is not an object")

        missing = [f for f in MANDATORY_FIELDS if _pick(raw, f) is None]
        record_id = _pick(raw, "id")
        record_id = str(record_id) if record_id is not None else None
        if missing:
            raise MalformedRecordError(
                f"Missing mandatory fields: {', '.join(missing)}",
                record_id=record_id,
                missing=missing,
            )

        try:
            admission_date = _parse_datetime(_pick(raw, "admission_date"))
        except (TypeError, ValueError) as e:
            raise MalformedRecordError(
                f"Unparseable admission date: {e}",
                record_id=record_id,
                missing=("admission_date",),
            )

        try:
            dob = _parse_date(_pick(raw, "dob"))
        except (TypeError, ValueError):
            logger.warning("Ignoring unparseable dob", record_id=record_id)
            dob = None

        age = self._optional_int(raw, "age", record_id)
        if age is None and dob is not None:
            age = _age_at(dob, admission_date)

        return PatientPredictionRecord(
            id=record_id,
            mrn=_pick(raw, "mrn"),
            patient_name=str(_pick(raw, "patient_name")).strip(),
            dob=dob,
            age=age,
            gender=str(_pick(raw, "gender") or "unknown").lower(),
            address=_pick(raw, "address"),
            zip_code=_optional_str(_pick(raw, "zip_code")),
            phone=_pick(raw, "phone"),
            primary_diagnosis=str(_pick(raw, "primary_diagnosis") or ""),
            icd10_codes=[c.upper() for c in _as_list(_pick(raw, "icd10_codes"))],
            comorbidities=_as_list(_pick(raw, "comorbidities")),
            acuity_level=_coerce_enum(AcuityLevel, _pick(raw, "acuity_level"), AcuityLevel.MEDIUM),
            facility=str(_pick(raw, "facility") or ""),
            facility_id=_optional_str(_pick(raw, "facility_id")),
            unit=_pick(raw, "unit"),
            admitting_physician=_pick(raw, "admitting_physician"),
            insurance=str(_pick(raw, "insurance") or "Unknown"),
            insurance_id=_optional_str(_pick(raw, "insurance_id")),
            admission_date=admission_date,
            predicted_discharge=self._optional_datetime(raw, "predicted_discharge", record_id),
            predicted_los=self._optional_int(raw, "predicted_los", record_id),
            actual_discharge=self._optional_datetime(raw, "actual_discharge", record_id),
            discharge_destination=_coerce_enum(DischargeDestination, _pick(raw, "discharge_destination")),
            status=_coerce_enum(PatientStatus, _pick(raw, "status"), PatientStatus.ADMITTED),
            referral_secured=bool(_pick(raw, "referral_secured") or False),
            notes=_pick(raw, "notes"),
            assigned_marketer=_pick(raw, "assigned_marketer"),
            assigned_nurse=_pick(raw, "assigned_nurse"),
            case_manager=_pick(raw, "case_manager"),
            case_manager_phone=_pick(raw, "case_manager_phone"),
            contact_attempts=self._optional_int(raw, "contact_attempts", record_id) or 0,
            last_contact_date=self._optional_datetime(raw, "last_contact_date", record_id),
        )

    def normalize_batch(self, raws: Iterable[dict]) -> NormalizationResult:
        """
        Normalize many admissions, skipping and reporting malformed ones.

        Admission ids are unique in the result: when an id repeats, the last
        record wins and the earlier ones are reported as skipped.
        """
        result = NormalizationResult()
        normalized: List[Tuple[int, PatientPredictionRecord]] = []
        for index, raw in enumerate(raws):
            try:
                normalized.append((index, self.normalize(raw)))
            except MalformedRecordError as e:
                result.skipped.append(SkippedRecord(
                    index=index,
                    record_id=e.record_id,
                    reason=str(e),
                    missing=list(e.missing),
                ))
            except (TypeError, ValueError) as e:
                # Pydantic ValidationError is a ValueError
                record_id = _pick(raw, "id") if isinstance(raw, dict) else None
                result.skipped.append(SkippedRecord(
                    index=index,
                    record_id=str(record_id) if record_id is not None else None,
                    reason=f"Invalid admission payload: {e}",
                ))

        last_seen = {record.id: index for index, record in normalized}
        for index, record in normalized:
            if last_seen[record.id] == index:
                result.records.append(record)
            else:
                result.skipped.append(SkippedRecord(
                    index=index,
                    record_id=record.id,
                    reason=DUPLICATE_REASON,
                ))
        result.skipped.sort(key=lambda s: s.index)

        if result.skipped:
            logger.warning(
                "Skipped malformed admissions",
                skipped=result.skipped_count,
                normalized=len(result.records),
            )
        return result

    def _optional_int(self, raw: dict, field: str, record_id: Optional[str]) -> Optional[int]:
        value = _pick(raw, field)
        if value is None:
            return None
        try:
            parsed = float(value)
            if not parsed.is_integer():
                raise ValueError(f"not a whole number: {value}")
            return int(parsed)
        except (TypeError, ValueError):
            logger.warning("Ignoring unparseable number", field=field, record_id=record_id)
            return None

    def _optional_datetime(self, raw: dict, field: str, record_id: Optional[str]) -> Optional[datetime]:
        try:
            return _parse_datetime(_pick(raw, field))
        except (TypeError, ValueError):
            logger.warning("Ignoring unparseable timestamp", field=field, record_id=record_id)
            return None


def _optional_str(value: Any) -> Optional[str]:
    return str(value) if value is not None else None
