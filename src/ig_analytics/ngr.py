"""
Net gaming revenue accumulation per customer.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable

from .data_models import NGR_FACTOR, Transaction


def ngr_by_customer(
    transactions: Iterable[Transaction], factor: float = NGR_FACTOR
) -> Dict[str, float]:
    """
    Sum (ggr - chargeback) * factor over every transaction of each customer.

    Customers without transactions are absent from the result. Totals can
    be negative when chargebacks exceed GGR.
    """

    totals: Dict[str, float] = defaultdict(float)
    for tx in transactions:
        totals[tx.customer_id] += (tx.ggr - tx.chargeback) * factor
    return dict(totals)
