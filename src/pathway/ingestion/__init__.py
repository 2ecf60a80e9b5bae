"""
Pathway Ingestion Module

- Admission sources (EHR over HTTP, in-memory)
- Patient record normalization
- Synthetic seed admissions

The snapshot service lives in pathway.ingestion.service; it depends on the
pipeline and is imported from there directly.
"""

from pathway.ingestion.normalization import (
    PatientRecordNormalizer,
    NormalizationResult,
    SkippedRecord,
)
from pathway.ingestion.source import (
    AdmissionSource,
    HttpAdmissionSource,
    StaticAdmissionSource,
    extract_admissions,
)
from pathway.ingestion.synthetic_data import SyntheticAdmissionGenerator, default_directory

__all__ = [
    "PatientRecordNormalizer",
    "NormalizationResult",
    "SkippedRecord",
    "AdmissionSource",
    "HttpAdmissionSource",
    "StaticAdmissionSource",
    "extract_admissions",
    "SyntheticAdmissionGenerator",
    "default_directory",
]
