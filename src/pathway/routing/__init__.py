"""
Pathway Routing Module

- Route Grouper (greedy marketer assignment and stop ordering)
- Straight-line distance and drive estimates
- Facility/marketer directory
"""

from pathway.routing.grouper import RouteGrouper
from pathway.routing.geo import haversine_miles, drive_minutes
from pathway.routing.directory import RoutingDirectory, load_directory

__all__ = [
    "RouteGrouper",
    "haversine_miles",
    "drive_minutes",
    "RoutingDirectory",
    "load_directory",
]
