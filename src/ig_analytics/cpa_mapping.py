"""
Maps each customer to its first (cohort anchor) and latest (current
attribution) qualifying CPA payment.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List

from .data_models import Payment


@dataclass
class CpaMapping:
    first_date_by_customer: Dict[str, datetime] = field(default_factory=dict)
    latest_by_customer: Dict[str, Payment] = field(default_factory=dict)


def qualifying_cpa_payments(payments: Iterable[Payment]) -> List[Payment]:
    """
    Settled CPA payments linked to a customer, in input order.
    """

    return [p for p in payments if p.is_qualifying_cpa]


def map_cpa(cpa_payments: Iterable[Payment]) -> CpaMapping:
    """
    Track the earliest date and the latest payment per customer.

    Only a strictly earlier (resp. later) date replaces the stored value, so
    on ties the first row seen wins.
    """

    mapping = CpaMapping()
    first = mapping.first_date_by_customer
    latest = mapping.latest_by_customer

    for payment in cpa_payments:
        cid = payment.clientes_id
        if cid not in first or payment.date < first[cid]:
            first[cid] = payment.date
        prev = latest.get(cid)
        if prev is None or prev.date < payment.date:
            latest[cid] = payment

    return mapping
