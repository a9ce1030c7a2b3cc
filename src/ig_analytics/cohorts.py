"""
Weekly acquisition cohorts keyed by the Monday of each customer's first
qualifying CPA payment.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Mapping

from .data_models import CohortSummary, Payment
from .metrics import get_or_zero, roi


def week_start(d: datetime) -> datetime:
    """
    Monday 00:00 of the week containing `d` (tzinfo preserved).
    """

    monday = d - timedelta(days=d.weekday())
    return monday.replace(hour=0, minute=0, second=0, microsecond=0)


def cpa_by_customer(cpa_payments: Iterable[Payment]) -> Dict[str, float]:
    totals: Dict[str, float] = defaultdict(float)
    for p in cpa_payments:
        totals[p.clientes_id] += p.value
    return dict(totals)


def build_cohorts(
    first_date_by_customer: Mapping[str, datetime],
    ngr_map: Mapping[str, float],
    rev_map: Mapping[str, float],
    cpa_payments: Iterable[Payment],
) -> List[CohortSummary]:
    """
    Aggregate CAC (CPA + computed REV), LTV (NGR) and ROI per cohort week.

    `cac_cpa` includes every qualifying CPA payment of a cohort customer,
    whichever affiliate received it. `cac_rev` uses the per-customer REV
    before the affiliate loss-guard.
    """

    cpa_map = cpa_by_customer(cpa_payments)
    cohorts: Dict[datetime, CohortSummary] = {}

    for cid, first_date in first_date_by_customer.items():
        wk = week_start(first_date)
        item = cohorts.get(wk)
        if item is None:
            item = cohorts[wk] = CohortSummary(week_start=wk)
        item.customers += 1
        item.cac_cpa += get_or_zero(cpa_map, cid)
        item.cac_rev += get_or_zero(rev_map, cid)
        item.ltv_total += get_or_zero(ngr_map, cid)

    for item in cohorts.values():
        item.cac_total = item.cac_cpa + item.cac_rev
        item.roi = roi(item.ltv_total, item.cac_total)

    return sorted(cohorts.values(), key=lambda c: c.week_start)
