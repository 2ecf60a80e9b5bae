"""
Pathway: Predictive Discharge & Referral Routing

Scores hospital admissions for home-health referral value, classifies
outreach priority, builds per-marketer daily routes and rolls the results
up into dashboard analytics.
"""

__version__ = "0.1.0"
__author__ = "Pathway Team"
