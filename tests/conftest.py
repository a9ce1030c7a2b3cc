from datetime import datetime

import pytest

from ig_analytics.data_models import Payment, Transaction


def tx(customer_id, ggr, chargeback=0.0, date=datetime(2024, 1, 5)):
    return Transaction(customer_id=customer_id, date=date, ggr=ggr, chargeback=chargeback)


def cpa(customer_id, affiliate, date, value=100.0, status="finish", classification="Jogador"):
    return Payment(
        clientes_id=customer_id,
        afiliados_id=affiliate,
        date=date,
        value=value,
        method="cpa",
        status=status,
        classification=classification,
    )


@pytest.fixture
def make_tx():
    return tx


@pytest.fixture
def make_cpa():
    return cpa
