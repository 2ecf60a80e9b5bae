"""
Admission Sources

Data-access interface for raw admissions:
- HttpAdmissionSource: EHR / referral-source REST endpoint (httpx)
- StaticAdmissionSource: in-memory payloads (seed data, tests, replays)

A fetch is a single request/response. Any transport failure, timeout,
non-2xx status or non-list payload becomes ExternalFetchError.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx
import structlog

from pathway.config import SourceSettings
from pathway.errors import ExternalFetchError

logger = structlog.get_logger(__name__)

# Envelope keys some upstream systems wrap the admission list in
ENVELOPE_KEYS = ("data", "patients", "admissions", "results")


class AdmissionSource(ABC):
    """Where raw admissions come from."""

    name: str = "source"

    @abstractmethod
    async def fetch_admissions(self) -> List[Dict[str, Any]]:
        """
        Fetch the current admission list.

        Raises:
            ExternalFetchError: source unreachable or payload invalid
        """
        pass


def extract_admissions(payload: Any) -> List[Dict[str, Any]]:
    """Unwrap a JSON payload into a list of admission objects."""
    if isinstance(payload, dict):
        for key in ENVELOPE_KEYS:
            inner = payload.get(key)
            if isinstance(inner, list):
                payload = inner
                break
            if isinstance(inner, dict):
                # {"data": {"patients": [...]}}
                for nested in ENVELOPE_KEYS:
                    if isinstance(inner.get(nested), list):
                        payload = inner[nested]
                        break
                if isinstance(payload, list):
                    break

    if not isinstance(payload, list):
        raise ExternalFetchError("Admission payload is not a JSON array")
    return payload


class HttpAdmissionSource(AdmissionSource):
    """
    Fetch admissions from an EHR integration endpoint.

    Usage:
        source = HttpAdmissionSource(SourceSettings(base_url="https://ehr.example.org/api"))
        admissions = await source.fetch_admissions()
    """

    name = "http"

    def __init__(
        self,
        settings: SourceSettings = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or SourceSettings()
        if not self.settings.base_url:
            raise ValueError("EHR source base_url is not configured")
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.settings.api_token:
            headers["Authorization"] = f"Bearer {self.settings.api_token.get_secret_value()}"
        return headers

    async def fetch_admissions(self) -> List[Dict[str, Any]]:
        url = self.settings.admissions_path
        try:
            async with httpx.AsyncClient(
                base_url=self.settings.base_url,
                timeout=self.settings.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.get(url, headers=self._headers())
        except httpx.TimeoutException as e:
            logger.error("Admission fetch timed out", url=url, timeout=self.settings.timeout_seconds)
            raise ExternalFetchError(f"Admission fetch timed out: {e}")
        except httpx.HTTPError as e:
            logger.error("Admission fetch failed", url=url, error=str(e))
            raise ExternalFetchError(f"Admission source unreachable: {e}")

        if response.status_code >= 400:
            logger.error("Admission fetch rejected", url=url, status_code=response.status_code)
            raise ExternalFetchError(
                f"Admission source returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ExternalFetchError(f"Admission source returned invalid JSON: {e}")

        admissions = extract_admissions(payload)
        logger.info("Fetched admissions", count=len(admissions))
        return admissions


class StaticAdmissionSource(AdmissionSource):
    """Serves a fixed list of raw admissions."""

    name = "static"

    def __init__(self, admissions: List[Dict[str, Any]] = None):
        self.admissions = list(admissions or [])

    async def fetch_admissions(self) -> List[Dict[str, Any]]:
        return [dict(a) for a in self.admissions]
