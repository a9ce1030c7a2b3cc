"""
Global totals across every customer and affiliate.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from .data_models import AffiliateSummary, Payment, Totals, Transaction
from .metrics import roi


def compute_totals(
    transactions: Iterable[Transaction],
    cpa_payments: Iterable[Payment],
    affiliates: Iterable[AffiliateSummary],
    ngr_map: Mapping[str, float],
) -> Totals:
    """
    Roll customer and affiliate figures into headline totals.

    Customers are counted over all transactions, attributed or not. REV is
    taken from the affiliate summaries, i.e. after the loss-guard.
    """

    total_customers = len({tx.customer_id for tx in transactions})
    cac_cpa_total = sum(p.value for p in cpa_payments)
    rev_total = sum(a.rev_calculado for a in affiliates)
    cac_total = cac_cpa_total + rev_total
    ltv_total = sum(ngr_map.values())

    return Totals(
        total_customers=total_customers,
        cac_total=cac_total,
        ltv_total=ltv_total,
        roi=roi(ltv_total, cac_total),
    )
