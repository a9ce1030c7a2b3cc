"""
Core data models used across the ig_analytics package.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Set

NGR_FACTOR = 0.8


class PaymentMethod:
    CPA = "cpa"
    REV = "rev"


class PaymentStatus:
    FINISH = "finish"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Transaction:
    """
    One deposit/withdrawal row for a customer on a given day.
    """

    customer_id: str
    date: datetime
    ggr: float
    chargeback: float
    deposit: float = 0.0
    withdrawal: float = 0.0


@dataclass(frozen=True)
class Payment:
    """
    One commission event paid to an affiliate.

    `clientes_id` is None for payments not linked to an end customer.
    `level` is carried for display only.
    """

    clientes_id: Optional[str]
    afiliados_id: str
    date: datetime
    value: float
    method: str
    status: str
    classification: str = "Jogador"
    level: int = 1

    @property
    def is_finished(self) -> bool:
        return self.status == PaymentStatus.FINISH

    @property
    def is_rejected(self) -> bool:
        return self.status == PaymentStatus.REJECTED

    @property
    def is_cpa(self) -> bool:
        return self.method == PaymentMethod.CPA

    @property
    def is_qualifying_cpa(self) -> bool:
        return self.is_finished and self.is_cpa and bool(self.clientes_id)


@dataclass
class Dataset:
    """
    A complete snapshot of transactions and payments.
    """

    transactions: List[Transaction] = field(default_factory=list)
    payments: List[Payment] = field(default_factory=list)


@dataclass
class AffiliateAggregate:
    """
    Mutable per-affiliate accumulator used while rolling up payments.
    """

    ngr: float = 0.0
    cpa: float = 0.0
    rev: float = 0.0
    customers: Set[str] = field(default_factory=set)
    rejected_rate: float = 0.0
    payments_total: int = 0
    payments_rejected: int = 0


@dataclass
class CohortSummary:
    week_start: datetime
    customers: int = 0
    cac_cpa: float = 0.0
    cac_rev: float = 0.0
    cac_total: float = 0.0
    ltv_total: float = 0.0
    roi: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AffiliateSummary:
    afiliados_id: str
    customers: int
    ngr_total: float
    cpa_total: float
    rev_calculado: float
    total_recebido: float
    roi: float
    score: int
    rejected_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Totals:
    total_customers: int
    cac_total: float
    ltv_total: float
    roi: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AnalyticsResult:
    """
    Everything the dashboard renders, recomputed from scratch on each call.
    """

    cohorts: List[CohortSummary]
    affiliates: List[AffiliateSummary]
    totals: Totals
    suspicious: List[AffiliateSummary]
