"""
End-to-end computation of cohorts, affiliate rankings, totals and the
suspicious-affiliate list from a dataset snapshot.
"""

from __future__ import annotations

from typing import Optional

from loguru import logger

from .affiliates import aggregate_affiliates, summarize_affiliates
from .cohorts import build_cohorts
from .config import AnalyticsSettings
from .cpa_mapping import map_cpa, qualifying_cpa_payments
from .data_models import AnalyticsResult, Dataset
from .fraud import suspicious_affiliates
from .ngr import ngr_by_customer
from .rev import rev_by_customer
from .totals import compute_totals


def compute_all(
    dataset: Dataset, settings: Optional[AnalyticsSettings] = None
) -> AnalyticsResult:
    """
    Run every aggregation stage in dependency order.

    The dataset is read only; every intermediate map is local to the call,
    so repeated calls with equal input return equal results.
    """

    settings = settings or AnalyticsSettings()
    transactions = dataset.transactions
    payments = dataset.payments

    ngr_map = ngr_by_customer(transactions, factor=settings.ngr_factor)
    logger.debug(f"ngr: {len(ngr_map)} customers from {len(transactions)} transactions")

    cpa_payments = qualifying_cpa_payments(payments)
    mapping = map_cpa(cpa_payments)
    logger.debug(
        f"cpa: {len(cpa_payments)} qualifying payments, "
        f"{len(mapping.latest_by_customer)} attributed customers"
    )

    rev_map = rev_by_customer(
        mapping.latest_by_customer, ngr_map, table=settings.rev_percent
    )

    aggregates = aggregate_affiliates(
        payments, mapping.latest_by_customer, ngr_map, rev_map
    )
    logger.debug(f"affiliates: {len(aggregates)} aggregated")

    cohorts = build_cohorts(
        mapping.first_date_by_customer, ngr_map, rev_map, cpa_payments
    )
    affiliates = summarize_affiliates(aggregates, ngr_map, settings.scoring)
    totals = compute_totals(transactions, cpa_payments, affiliates, ngr_map)
    suspicious = suspicious_affiliates(affiliates, settings.scoring)

    logger.info(
        f"compute_all: cohorts={len(cohorts)} affiliates={len(affiliates)} "
        f"suspicious={len(suspicious)} customers={totals.total_customers} "
        f"roi={totals.roi:.3f}"
    )
    return AnalyticsResult(
        cohorts=cohorts,
        affiliates=affiliates,
        totals=totals,
        suspicious=suspicious,
    )
