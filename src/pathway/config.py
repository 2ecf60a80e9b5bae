"""
Pathway Configuration Module

Centralized configuration management using Pydantic Settings.
Supports environment variables and .env files.
"""

from functools import lru_cache
from typing import Dict, Literal, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class PathwaySettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="PATHWAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    env: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: str = "INFO"
    log_json: bool = True

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Seed data is served when no EHR source is configured
    seed: int = 42
    seed_admissions: int = 40


class SourceSettings(BaseSettings):
    """External EHR / referral source settings."""

    model_config = SettingsConfigDict(
        env_prefix="EHR_SOURCE_",
        env_file=".env",
        extra="ignore",
    )

    base_url: Optional[str] = None
    admissions_path: str = "/admissions"
    api_token: Optional[SecretStr] = None
    timeout_seconds: float = 10.0

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url)


class ScoringSettings(BaseSettings):
    """Weights for the risk/value heuristic."""

    model_config = SettingsConfigDict(
        env_prefix="SCORING_",
        env_file=".env",
        extra="ignore",
    )

    # Comorbidities beyond this count add points
    comorbidity_threshold: int = 2
    points_per_comorbidity: int = 5

    # Age adjustment
    elderly_age: int = 70
    elderly_points: int = 10

    # Acuity adjustment
    acuity_points: Dict[str, int] = Field(
        default_factory=lambda: {"low": 0, "medium": 5, "high": 10}
    )

    # LOS estimate adjustments (days)
    acuity_los_days: Dict[str, int] = Field(
        default_factory=lambda: {"low": -1, "medium": 0, "high": 1}
    )
    very_elderly_age: int = 80
    very_elderly_los_days: int = 1

    # Flags
    high_value_threshold: float = 4000.0
    readmission_risk_threshold: int = 75

    # Classifier
    max_contact_attempts: int = 5


class RoutingSettings(BaseSettings):
    """Route grouping and drive estimate settings."""

    model_config = SettingsConfigDict(
        env_prefix="ROUTING_",
        env_file=".env",
        extra="ignore",
    )

    # Facilities and marketers (JSON file, optional)
    directory_path: Optional[str] = None

    # Straight-line miles are multiplied by this to approximate road miles
    road_factor: float = 1.3
    average_speed_mph: float = 30.0

    # Visit durations (minutes)
    facility_visit_minutes: int = 15
    patient_visit_minutes: int = 15
    day_start: str = "09:00"

    # Priorities at or above this (numerically <=) count as high priority
    high_priority_cutoff: int = 2

    # Used when a marketer defines neither regions nor a radius
    default_coverage_radius_miles: float = 40.0


class WorkflowSettings(BaseSettings):
    """Referral workflow settings."""

    model_config = SettingsConfigDict(
        env_prefix="WORKFLOW_",
        env_file=".env",
        extra="ignore",
    )

    enforce_status_transitions: bool = True


class Settings:
    """
    Aggregated settings container.

    Usage:
        from pathway.config import get_settings
        settings = get_settings()
        print(settings.app.api_port)
        print(settings.scoring.elderly_age)
    """

    def __init__(self):
        self.app = PathwaySettings()
        self.source = SourceSettings()
        self.scoring = ScoringSettings()
        self.routing = RoutingSettings()
        self.workflow = WorkflowSettings()

    @property
    def is_development(self) -> bool:
        return self.app.env == "development"

    @property
    def is_production(self) -> bool:
        return self.app.env == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: The application settings
    """
    return Settings()
