"""
Pathway Scoring Module

- Risk/Value Scorer (diagnosis, comorbidity, age and acuity weights)
- Priority Classifier (1-5 marketing priority)
"""

from pathway.ml.scoring import (
    RiskValueScorer,
    RiskAssessment,
    DIAGNOSIS_CATEGORIES,
    PAYER_DAILY_RATES,
    classify_payer,
    match_diagnosis_category,
    get_risk_scorer,
    score,
)
from pathway.ml.priority import (
    MarketingPriority,
    classify,
    classify_record,
    outreach_sort_key,
    prioritize,
)

__all__ = [
    # Scoring
    "RiskValueScorer",
    "RiskAssessment",
    "DIAGNOSIS_CATEGORIES",
    "PAYER_DAILY_RATES",
    "classify_payer",
    "match_diagnosis_category",
    "get_risk_scorer",
    "score",
    # Priority
    "MarketingPriority",
    "classify",
    "classify_record",
    "outreach_sort_key",
    "prioritize",
]
