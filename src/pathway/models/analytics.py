"""
Analytics Models

Read-only rollups rebuilt on every refresh.
"""

from datetime import date
from typing import List

from pydantic import BaseModel, Field


class FacilityAggregate(BaseModel):
    """Per-facility admission and conversion rollup."""
    facility_id: str
    facility: str
    region: str
    admissions: int = 0
    conversions: int = 0
    average_los: float = 0.0
    total_potential_value: float = 0.0
    conversion_rate: float = Field(default=0.0, description="Percent of admissions converted")


class RegionAggregate(BaseModel):
    """Per-region rollup."""
    region: str
    facilities: int = 0
    admissions: int = 0
    conversions: int = 0
    average_los: float = 0.0
    total_potential_value: float = 0.0
    conversion_rate: float = Field(default=0.0, description="Percent of admissions converted")


class DiagnosisSummary(BaseModel):
    """Volume and value by diagnosis category."""
    diagnosis: str
    count: int
    average_los: float
    eligibility: float  # percent home-health eligible
    average_value: float


class ZipCodeHotspot(BaseModel):
    """Patient volume by home zip code."""
    zip_code: str
    patients: int
    value: float
    coverage: bool


class DischargeTimelinePoint(BaseModel):
    """Predicted vs actual discharges for one day."""
    date: date
    predicted: int = 0
    actual: int = 0


class PredictiveAnalytics(BaseModel):
    """Dashboard summary over the classified patient set."""
    total_admissions: int = 0
    eligible_patients: int = 0
    predicted_discharges: int = 0
    contacted_patients: int = 0
    secured_referrals: int = 0
    average_los: float = 0.0
    conversion_rate: float = Field(default=0.0, description="Percent of contacted patients converted")
    potential_revenue: float = 0.0

    facility_performance: List[FacilityAggregate] = Field(default_factory=list)
    region_performance: List[RegionAggregate] = Field(default_factory=list)
    top_diagnoses: List[DiagnosisSummary] = Field(default_factory=list)
    zip_code_hotspots: List[ZipCodeHotspot] = Field(default_factory=list)
    discharge_timeline: List[DischargeTimelinePoint] = Field(default_factory=list)
