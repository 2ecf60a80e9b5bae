"""
Facility and marketer directory.

Loaded from a JSON file shaped as:

    {
        "facilities": [{"id": "HF-001", "name": "...", "region": "...",
                        "location": {"lat": 42.36, "lon": -83.08}}],
        "marketers": [{"id": "MKT-001", "name": "...",
                       "base": {"lat": 42.33, "lon": -83.05},
                       "coverage_regions": ["Southeast Michigan"]}]
    }
"""

from pathlib import Path
from typing import List, Optional, Union

import structlog
from pydantic import BaseModel, Field

from pathway.models.routing import Facility, Marketer

logger = structlog.get_logger(__name__)


class RoutingDirectory(BaseModel):
    """Facilities and marketers available for routing."""
    facilities: List[Facility] = Field(default_factory=list)
    marketers: List[Marketer] = Field(default_factory=list)

    def facility(self, facility_id: str) -> Optional[Facility]:
        for facility in self.facilities:
            if facility.id == facility_id:
                return facility
        return None


def load_directory(path: Union[str, Path]) -> RoutingDirectory:
    """Load a routing directory from JSON."""
    path = Path(path)
    directory = RoutingDirectory.model_validate_json(path.read_text(encoding="utf-8"))
    logger.info(
        "Loaded routing directory",
        path=str(path),
        facilities=len(directory.facilities),
        marketers=len(directory.marketers),
    )
    return directory
