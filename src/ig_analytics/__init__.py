"""
ig_analytics
============

Analytics engine behind the IG Afiliados dashboard.

The package turns spreadsheet exports of player transactions and affiliate
payments into weekly acquisition cohorts, per-affiliate CAC/LTV/ROI
rankings, global totals and a fraud-suspicion score per affiliate.
"""

from . import (
    affiliates,
    cohorts,
    config,
    cpa_mapping,
    fraud,
    loaders,
    ngr,
    reporting,
    rev,
    totals,
)
from .data_models import AnalyticsResult, Dataset, Payment, Transaction
from .engine import compute_all

__all__ = [
    "affiliates",
    "cohorts",
    "config",
    "cpa_mapping",
    "fraud",
    "loaders",
    "ngr",
    "reporting",
    "rev",
    "totals",
    "AnalyticsResult",
    "Dataset",
    "Payment",
    "Transaction",
    "compute_all",
]
