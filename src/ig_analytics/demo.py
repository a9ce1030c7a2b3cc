"""
End-to-end demo running the analytics engine over a synthetic dataset.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import List

import numpy as np

from . import engine, reporting
from .data_models import Dataset, Payment, PaymentMethod, PaymentStatus, Transaction
from .rev import REV_TIERS

START = datetime(2025, 1, 6)


def synthetic_dataset(
    num_customers: int = 500, num_affiliates: int = 25, seed: int = 42
) -> Dataset:
    """
    Create a fake export pair.

    Each customer is acquired by one affiliate through a CPA payment and then
    plays for a few days. A share of customers is re-attributed to a second
    affiliate later on, a share of payments is rejected, and a few `rev`
    rows are mixed in as the back-office would export them.
    """
    rng = np.random.default_rng(seed=seed)
    affiliate_ids = [f"af_{i}" for i in range(num_affiliates)]
    tiers = list(REV_TIERS)
    # Fixed tier per affiliate
    affiliate_tier = {a: tiers[int(rng.integers(len(tiers)))] for a in affiliate_ids}
    # A few affiliates bring low-quality traffic
    shady = set(rng.choice(affiliate_ids, size=max(1, num_affiliates // 8), replace=False))

    transactions: List[Transaction] = []
    payments: List[Payment] = []

    for i in range(num_customers):
        customer_id = f"cl_{i}"
        affiliate = affiliate_ids[int(rng.integers(num_affiliates))]
        acquired = START + timedelta(days=int(rng.integers(0, 60)))

        status = PaymentStatus.FINISH
        if rng.random() < (0.35 if affiliate in shady else 0.05):
            status = PaymentStatus.REJECTED
        payments.append(
            Payment(
                clientes_id=customer_id,
                afiliados_id=affiliate,
                date=acquired,
                value=float(rng.choice([50.0, 80.0, 120.0])),
                method=PaymentMethod.CPA,
                status=status,
                classification=affiliate_tier[affiliate],
                level=int(rng.integers(1, 6)),
            )
        )

        if rng.random() < 0.1:
            new_affiliate = affiliate_ids[int(rng.integers(num_affiliates))]
            payments.append(
                Payment(
                    clientes_id=customer_id,
                    afiliados_id=new_affiliate,
                    date=acquired + timedelta(days=int(rng.integers(7, 30))),
                    value=50.0,
                    method=PaymentMethod.CPA,
                    status=PaymentStatus.FINISH,
                    classification=affiliate_tier[new_affiliate],
                    level=1,
                )
            )

        if rng.random() < 0.2:
            payments.append(
                Payment(
                    clientes_id=customer_id,
                    afiliados_id=affiliate,
                    date=acquired + timedelta(days=30),
                    value=float(rng.uniform(5, 40)),
                    method=PaymentMethod.REV,
                    status=PaymentStatus.FINISH,
                    classification=affiliate_tier[affiliate],
                    level=1,
                )
            )

        if affiliate in shady and rng.random() < 0.8:
            # Registered, paid for, never played
            continue

        for _ in range(int(rng.integers(1, 8))):
            ggr = max(float(rng.normal(120, 80)), 0.0)
            chargeback = ggr * float(rng.uniform(0, 0.2)) if rng.random() < 0.1 else 0.0
            deposit = ggr + float(rng.uniform(0, 200))
            transactions.append(
                Transaction(
                    customer_id=customer_id,
                    date=acquired + timedelta(days=int(rng.integers(0, 90))),
                    ggr=ggr,
                    chargeback=chargeback,
                    deposit=deposit,
                    withdrawal=max(deposit - ggr, 0.0),
                )
            )

    return Dataset(transactions=transactions, payments=payments)


def main():
    dataset = synthetic_dataset()
    print(
        f"[main] Synthetic dataset: {len(dataset.transactions)} transactions, "
        f"{len(dataset.payments)} payments."
    )

    result = engine.compute_all(dataset)
    totals = result.totals
    print(
        f"[main] Customers: {totals.total_customers} | CAC: {totals.cac_total:,.2f} | "
        f"LTV: {totals.ltv_total:,.2f} | ROI: {totals.roi:.1%}"
    )

    frames = reporting.report_frames(result)
    print("[main] Cohorts:")
    print(frames["cohorts"].head())
    print("[main] Top affiliates by NGR:")
    print(frames["affiliates"].head(5))
    if result.suspicious:
        print("[main] Suspicious affiliates:")
        print(frames["suspicious"])
    else:
        print("[main] No suspicious affiliates.")


if __name__ == "__main__":
    main()
