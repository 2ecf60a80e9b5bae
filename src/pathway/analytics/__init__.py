"""
Pathway Analytics Module

Facility, region and dashboard rollups over classified admissions.
"""

from pathway.analytics.aggregator import MetricsAggregator

__all__ = ["MetricsAggregator"]
