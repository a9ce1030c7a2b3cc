"""
Zero-safe ratio helpers shared by the aggregation stages.
"""

from __future__ import annotations

from typing import Hashable, Mapping


def get_or_zero(values: Mapping[Hashable, float], key: Hashable) -> float:
    """
    Read an accumulated amount, treating absent keys as the additive identity.
    """

    return values.get(key, 0.0)


def safe_ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    return numerator / denominator


def roi(ltv: float, cac: float) -> float:
    """
    Estimate ROI = (ltv - cac) / cac.

    Returns 0.0 when nothing was spent; callers rely on 0 rather than
    None/inf as the "undefined ROI" sentinel.
    """

    if cac > 0:
        return (ltv - cac) / cac
    return 0.0
