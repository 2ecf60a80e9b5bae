"""
Tests for structured logging and settings.
"""

from pathway.config import RoutingSettings, ScoringSettings, Settings, SourceSettings
from pathway.observability import configure_logging, get_logger, redact_patient_identifiers


def test_redacts_patient_identifiers():
    event = {
        "event": "Applied admission update",
        "patient_id": "pred-001",
        "patient_name": "Jane Doe",
        "mrn": "MRN-100001",
        "context": {"phone": "(313) 555-1234", "facility": "HF-001"},
    }
    redacted = redact_patient_identifiers(None, "info", event)

    assert redacted["patient_id"] == "pred-001"
    assert redacted["patient_name"] == "[REDACTED]"
    assert redacted["mrn"] == "[REDACTED]"
    assert redacted["context"]["phone"] == "[REDACTED]"
    assert redacted["context"]["facility"] == "HF-001"


def test_configure_logging_console():
    configure_logging("DEBUG", json_output=False)
    logger = get_logger("tests")
    logger.info("Logging configured", patient_name="Jane Doe")


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("SCORING_ELDERLY_POINTS", "15")
    monkeypatch.setenv("ROUTING_ROAD_FACTOR", "1.5")
    monkeypatch.setenv("EHR_SOURCE_BASE_URL", "https://ehr.example.org/api")

    assert ScoringSettings().elderly_points == 15
    assert RoutingSettings().road_factor == 1.5
    assert SourceSettings().is_configured


def test_settings_defaults(monkeypatch):
    monkeypatch.delenv("EHR_SOURCE_BASE_URL", raising=False)
    settings = Settings()

    assert settings.source.is_configured is False
    assert settings.scoring.acuity_points == {"low": 0, "medium": 5, "high": 10}
    assert settings.workflow.enforce_status_transitions is True
