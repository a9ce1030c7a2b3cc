"""
Revenue-share (REV) derived from lifetime NGR and the affiliate's tier.

REV is not read from `rev` payment rows: it is recomputed for every customer
from the classification on the customer's latest CPA payment.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from .data_models import Payment
from .metrics import get_or_zero

DEFAULT_TIER = "Jogador"


@dataclass(frozen=True)
class RevTier:
    """
    Share of NGR paid to an affiliate tier.

    `nivel1` and `outros` are the per-level sub-splits of `total`; they are
    informational and do not enter the computation.
    """

    total: float
    nivel1: float
    outros: float


REV_TIERS: Dict[str, RevTier] = {
    "Jogador": RevTier(total=0.05, nivel1=0.01, outros=0.01),
    "Iniciante": RevTier(total=0.10, nivel1=0.06, outros=0.01),
    "Regular": RevTier(total=0.20, nivel1=0.12, outros=0.02),
    "Profissional": RevTier(total=0.30, nivel1=0.18, outros=0.03),
    "Elite": RevTier(total=0.40, nivel1=0.24, outros=0.04),
    "Expert": RevTier(total=0.50, nivel1=0.30, outros=0.05),
    "Mestre": RevTier(total=0.60, nivel1=0.36, outros=0.06),
    "Lendário": RevTier(total=0.70, nivel1=0.42, outros=0.07),
}

REV_PERCENT: Dict[str, float] = {name: tier.total for name, tier in REV_TIERS.items()}


def rev_percent(
    classification: str, table: Optional[Mapping[str, float]] = None
) -> float:
    """
    Look up the REV share for a tier, falling back to Jogador.
    """

    table = REV_PERCENT if table is None else table
    if classification in table:
        return table[classification]
    return table[DEFAULT_TIER]


def rev_by_customer(
    latest_by_customer: Mapping[str, Payment],
    ngr_map: Mapping[str, float],
    table: Optional[Mapping[str, float]] = None,
) -> Dict[str, float]:
    revs: Dict[str, float] = {}
    for cid, payment in latest_by_customer.items():
        revs[cid] = get_or_zero(ngr_map, cid) * rev_percent(
            payment.classification, table
        )
    return revs
