"""
Per-affiliate rollup of CPA spend, computed REV, attributed NGR and
payment rejection bookkeeping.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional

from .config import ScoringSettings
from .data_models import AffiliateAggregate, AffiliateSummary, Payment
from .fraud import fraud_score, fraud_signals
from .metrics import get_or_zero, roi, safe_ratio


def aggregate_affiliates(
    payments: Iterable[Payment],
    latest_by_customer: Mapping[str, Payment],
    ngr_map: Mapping[str, float],
    rev_map: Mapping[str, float],
) -> Dict[str, AffiliateAggregate]:
    """
    Build the per-affiliate aggregates.

    Pass 1 walks every payment row (any method/status) for payment counts,
    settled CPA spend and distinct customers. Pass 2 credits each customer's
    NGR and REV to the affiliate holding its latest CPA. Pass 3,
    `apply_loss_guard`, runs once both are complete.
    """

    aggregates: Dict[str, AffiliateAggregate] = {}

    for p in payments:
        agg = aggregates.setdefault(p.afiliados_id, AffiliateAggregate())
        agg.payments_total += 1
        if p.is_rejected:
            agg.payments_rejected += 1
        if p.is_cpa and p.is_finished:
            agg.cpa += p.value
            if p.clientes_id:
                agg.customers.add(p.clientes_id)

    for cid, latest in latest_by_customer.items():
        agg = aggregates[latest.afiliados_id]
        agg.ngr += get_or_zero(ngr_map, cid)
        agg.rev += get_or_zero(rev_map, cid)

    apply_loss_guard(aggregates)
    return aggregates


def apply_loss_guard(aggregates: Mapping[str, AffiliateAggregate]) -> None:
    """
    Finalise aggregates in place.

    An affiliate whose base profit (ngr - cpa - rev) is negative forfeits its
    computed REV.
    """

    for agg in aggregates.values():
        agg.rejected_rate = safe_ratio(agg.payments_rejected, agg.payments_total)
        lucro_base = agg.ngr - agg.cpa - agg.rev
        if lucro_base < 0:
            agg.rev = 0.0


def summarize_affiliates(
    aggregates: Mapping[str, AffiliateAggregate],
    ngr_map: Mapping[str, float],
    scoring: Optional[ScoringSettings] = None,
) -> List[AffiliateSummary]:
    """
    Flatten aggregates into summaries ranked by NGR, highest first.
    """

    summaries: List[AffiliateSummary] = []
    for afiliados_id, agg in aggregates.items():
        score = fraud_score(fraud_signals(agg, ngr_map), scoring)
        summaries.append(
            AffiliateSummary(
                afiliados_id=afiliados_id,
                customers=len(agg.customers),
                ngr_total=agg.ngr,
                cpa_total=agg.cpa,
                rev_calculado=agg.rev,
                total_recebido=agg.cpa + agg.rev,
                roi=roi(agg.ngr, agg.cpa + agg.rev),
                score=score,
                rejected_rate=agg.rejected_rate,
            )
        )
    summaries.sort(key=lambda s: s.ngr_total, reverse=True)
    return summaries
