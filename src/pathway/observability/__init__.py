"""
Pathway Observability Module

Structured logging via structlog with patient identifier redaction.
"""

from pathway.observability.logging import (
    configure_logging,
    get_logger,
    redact_patient_identifiers,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "redact_patient_identifiers",
]
