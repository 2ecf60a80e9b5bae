"""
Structured Logging

Features:
- structlog processor chain (JSON or console output)
- Log levels from settings
- Patient identifier redaction
"""

from typing import Any, Dict
import logging
import sys

import structlog

# Event keys that carry patient identifiers
PATIENT_IDENTIFIER_KEYS = frozenset({
    "patient_name",
    "patientName",
    "mrn",
    "dob",
    "phone",
    "address",
    "insurance_id",
})

REDACTED = "[REDACTED]"


def redact_patient_identifiers(logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Replace patient identifiers in log events, including nested dicts."""
    for key, value in list(event_dict.items()):
        if key in PATIENT_IDENTIFIER_KEYS and value is not None:
            event_dict[key] = REDACTED
        elif isinstance(value, dict):
            event_dict[key] = redact_patient_identifiers(logger, method_name, dict(value))
    return event_dict


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """Install the structlog processor chain over stdlib logging."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            redact_patient_identifiers,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str = None):
    """Get a structured logger, optionally bound to a component."""
    logger = structlog.get_logger("pathway")
    if component:
        return logger.bind(component=component)
    return logger
