"""
Tabular views of an AnalyticsResult for the presentation layer.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, Union

import pandas as pd
from loguru import logger

from .data_models import AffiliateSummary, AnalyticsResult, CohortSummary

COHORT_COLUMNS = ["week_start", "customers", "cac_cpa", "cac_rev", "cac_total", "ltv_total", "roi"]
AFFILIATE_COLUMNS = [
    "afiliados_id",
    "customers",
    "ngr_total",
    "cpa_total",
    "rev_calculado",
    "total_recebido",
    "roi",
    "score",
    "rejected_rate",
]


def cohorts_frame(cohorts: Iterable[CohortSummary]) -> pd.DataFrame:
    return pd.DataFrame([c.to_dict() for c in cohorts], columns=COHORT_COLUMNS)


def affiliates_frame(affiliates: Iterable[AffiliateSummary]) -> pd.DataFrame:
    return pd.DataFrame([a.to_dict() for a in affiliates], columns=AFFILIATE_COLUMNS)


def suspicious_frame(result: AnalyticsResult) -> pd.DataFrame:
    df = affiliates_frame(result.suspicious)
    return df[["afiliados_id", "score", "roi", "rejected_rate"]]


def totals_frame(result: AnalyticsResult) -> pd.DataFrame:
    return pd.DataFrame([result.totals.to_dict()])


def report_frames(result: AnalyticsResult) -> Dict[str, pd.DataFrame]:
    return {
        "cohorts": cohorts_frame(result.cohorts),
        "affiliates": affiliates_frame(result.affiliates),
        "suspicious": suspicious_frame(result),
        "totals": totals_frame(result),
    }


def write_report(result: AnalyticsResult, directory: Union[str, Path]) -> Dict[str, Path]:
    """
    Write one CSV per table into `directory` and return the paths by table.
    """

    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    written: Dict[str, Path] = {}
    for name, frame in report_frames(result).items():
        path = out_dir / f"{name}.csv"
        frame.to_csv(path, index=False)
        written[name] = path
    logger.info(f"Report written to {out_dir} ({', '.join(written)})")
    return written
