"""
Heuristic fraud-suspicion score for affiliates.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional

from .config import ScoringSettings
from .data_models import AffiliateAggregate, AffiliateSummary
from .metrics import get_or_zero, roi, safe_ratio


@dataclass(frozen=True)
class FraudSignals:
    rejected_rate: float
    roi: float
    ltv_per_customer: float
    inactivity_rate: float


def fraud_signals(
    aggregate: AffiliateAggregate, ngr_map: Mapping[str, float]
) -> FraudSignals:
    """
    Derive the four risk signals of an affiliate.

    Inactivity is the share of the affiliate's customers whose lifetime NGR
    is not positive.
    """

    spend = aggregate.cpa + aggregate.rev
    n_customers = len(aggregate.customers)
    active = sum(1 for cid in aggregate.customers if get_or_zero(ngr_map, cid) > 0)

    return FraudSignals(
        rejected_rate=aggregate.rejected_rate,
        roi=roi(aggregate.ngr, spend),
        ltv_per_customer=safe_ratio(aggregate.ngr, n_customers),
        inactivity_rate=safe_ratio(n_customers - active, n_customers),
    )


def fraud_score(signals: FraudSignals, scoring: Optional[ScoringSettings] = None) -> int:
    scoring = scoring or ScoringSettings()
    score = 0
    if signals.rejected_rate > scoring.rejected_rate_threshold:
        score += scoring.rejected_rate_points
    if signals.roi < scoring.roi_threshold:
        score += scoring.roi_points
    if signals.ltv_per_customer < scoring.ltv_per_customer_threshold:
        score += scoring.ltv_per_customer_points
    if signals.inactivity_rate > scoring.inactivity_threshold:
        score += scoring.inactivity_points
    return min(score, scoring.max_score)


def suspicious_affiliates(
    affiliates: Iterable[AffiliateSummary], scoring: Optional[ScoringSettings] = None
) -> List[AffiliateSummary]:
    """
    Affiliates at or above the suspicion cut-off, highest score first.
    """

    scoring = scoring or ScoringSettings()
    flagged = [a for a in affiliates if a.score >= scoring.suspicious_min_score]
    flagged.sort(key=lambda a: a.score, reverse=True)
    return flagged[: scoring.suspicious_limit]
