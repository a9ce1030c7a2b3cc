from datetime import datetime, timedelta, timezone

import pandas as pd
import pytest
from loguru import logger

from ig_analytics.data_models import Dataset
from ig_analytics.engine import compute_all
from ig_analytics.loaders import (
    LoaderError,
    load_payments,
    load_transactions,
    parse_date,
    payments_from_frame,
    read_table,
    to_identifier,
    transactions_from_frame,
)


class TestParseDate:
    def test_iso_string(self):
        assert parse_date("2024-01-10") == datetime(2024, 1, 10)

    def test_day_first_string(self):
        assert parse_date("03/01/2024") == datetime(2024, 1, 3)

    def test_datetime_passthrough(self):
        assert parse_date(datetime(2024, 1, 3, 12)) == datetime(2024, 1, 3, 12)
        assert parse_date(pd.Timestamp("2024-01-03")) == datetime(2024, 1, 3)

    def test_excel_serial(self):
        assert parse_date(45294) == datetime(2024, 1, 3)

    def test_invalid(self):
        with pytest.raises(LoaderError):
            parse_date("not a date")
        with pytest.raises(LoaderError):
            parse_date(None)


def test_identifiers():
    assert to_identifier(123.0) == "123"
    assert to_identifier(" c1 ") == "c1"
    assert to_identifier(float("nan")) is None
    assert to_identifier("") is None


def test_transactions_from_frame_aliases():
    df = pd.DataFrame(
        {
            "clientes_id": ["c1", None, "c2"],
            "data": ["2024-01-03", "2024-01-03", "04/01/2024"],
            "ggr": [100, 5, None],
            "chargeback": [10, 0, 0],
            "deposito": [200, 0, 50],
        }
    )
    records = transactions_from_frame(df)
    assert [t.customer_id for t in records] == ["c1", "c2"]
    assert records[0].ggr == 100.0
    assert records[0].deposit == 200.0
    assert records[0].withdrawal == 0.0
    assert records[1].ggr == 0.0
    assert records[1].date == datetime(2024, 1, 4)


def test_transactions_missing_column():
    with pytest.raises(LoaderError):
        transactions_from_frame(pd.DataFrame({"ggr": [1.0]}))


def test_payments_from_frame_normalises_fields():
    df = pd.DataFrame(
        {
            "clientes_id": [101.0, None],
            "afiliado_id": ["a1", "a2"],
            "data": ["2024-01-03", "2024-01-04"],
            "valor": [100, 30],
            "tipo": ["CPA", "Rev"],
            "status": ["Finish", "REJECTED"],
            "classificacao": ["Elite", None],
        }
    )
    first, second = payments_from_frame(df)
    assert first.clientes_id == "101"
    assert first.method == "cpa"
    assert first.status == "finish"
    assert first.classification == "Elite"
    assert first.level == 1
    assert second.clientes_id is None
    assert second.method == "rev"
    assert second.status == "rejected"
    assert second.classification == "Jogador"


def test_payment_with_bad_date_is_rejected():
    df = pd.DataFrame({"afiliados_id": ["a1"], "date": ["garbage"], "value": [1]})
    with pytest.raises(LoaderError):
        payments_from_frame(df)


def test_load_csv(tmp_path):
    path = tmp_path / "transactions.csv"
    path.write_text("customer_id,date,ggr,chargeback\nc1,2024-01-03,100,0\n", encoding="utf-8")
    records = load_transactions(path)
    assert len(records) == 1
    assert records[0].customer_id == "c1"


def test_load_xlsx_prefers_payments_sheet(tmp_path):
    path = tmp_path / "payments.xlsx"
    with pd.ExcelWriter(path) as writer:
        pd.DataFrame({"other": [1]}).to_excel(writer, sheet_name="resumo", index=False)
        pd.DataFrame(
            {
                "clientes_id": ["c1"],
                "afiliados_id": ["a1"],
                "date": [datetime(2024, 1, 3)],
                "value": [100.0],
                "method": ["cpa"],
                "status": ["finish"],
                "classification": ["Regular"],
                "level": [3],
            }
        ).to_excel(writer, sheet_name="pagamentos_cpa_rev", index=False)
    records = load_payments(path)
    assert len(records) == 1
    assert records[0].afiliados_id == "a1"
    assert records[0].date == datetime(2024, 1, 3)
    assert records[0].level == 3


def test_read_table_sheet_name(tmp_path):
    path = tmp_path / "export.xlsx"
    with pd.ExcelWriter(path) as writer:
        pd.DataFrame({"First": [1]}).to_excel(writer, sheet_name="resumo", index=False)
        pd.DataFrame({" Second ": [2]}).to_excel(writer, sheet_name="detalhe", index=False)
    assert list(read_table(path, sheet_name="detalhe").columns) == ["second"]
    assert list(read_table(path, sheet_name="ausente").columns) == ["first"]
    assert list(read_table(path).columns) == ["first"]


def test_load_missing_file(tmp_path):
    with pytest.raises(LoaderError):
        load_transactions(tmp_path / "missing.csv")


@pytest.fixture
def warnings_log():
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="WARNING")
    yield messages
    logger.remove(handler_id)


class TestBlankIdentifiers:
    def test_transactions_without_customer_are_dropped(self, warnings_log):
        df = pd.DataFrame(
            {
                "customer_id": ["c1", None, "  ", "c2"],
                "date": ["2024-01-03"] * 4,
                "ggr": [10, 20, 30, 40],
            }
        )
        records = transactions_from_frame(df)
        assert [t.customer_id for t in records] == ["c1", "c2"]
        assert all(isinstance(t.customer_id, str) for t in records)
        assert warnings_log == ["Dropped 2 transaction rows without customer_id"]

    def test_payments_without_affiliate_are_dropped(self, warnings_log):
        df = pd.DataFrame(
            {
                "clientes_id": ["c1", "c2"],
                "afiliados_id": ["a1", None],
                "date": ["2024-01-03", "2024-01-04"],
                "value": [100, 100],
                "method": ["cpa", "cpa"],
                "status": ["finish", "finish"],
            }
        )
        records = payments_from_frame(df)
        assert [p.afiliados_id for p in records] == ["a1"]
        assert warnings_log == ["Dropped 1 payment rows without afiliados_id"]

    def test_no_warning_when_nothing_dropped(self, warnings_log):
        df = pd.DataFrame({"customer_id": ["c1"], "date": ["2024-01-03"], "ggr": [1]})
        transactions_from_frame(df)
        assert warnings_log == []


class TestMixedDateFormats:
    def test_aware_values_become_naive_utc(self):
        assert parse_date("2024-01-03T10:00:00Z") == datetime(2024, 1, 3, 10)
        assert parse_date("2024-01-03T10:00:00-03:00") == datetime(2024, 1, 3, 13)
        aware = datetime(2024, 1, 3, 10, tzinfo=timezone(timedelta(hours=-3)))
        assert parse_date(aware) == datetime(2024, 1, 3, 13)
        assert parse_date(pd.Timestamp("2024-01-03 10:00", tz="UTC")).tzinfo is None

    def test_mixed_payments_frame_is_comparable(self):
        df = pd.DataFrame(
            {
                "clientes_id": ["c1", "c1", "c1"],
                "afiliados_id": ["a1", "a2", "a3"],
                "date": ["2024-01-03T10:00:00Z", "10/01/2024", 45294.5],
                "value": [100, 50, 10],
                "method": ["cpa"] * 3,
                "status": ["finish"] * 3,
            }
        )
        records = payments_from_frame(df)
        assert all(p.date.tzinfo is None for p in records)
        assert max(records, key=lambda p: p.date).afiliados_id == "a2"


def test_loaded_rows_run_through_engine():
    transactions = transactions_from_frame(
        pd.DataFrame(
            {
                "customer_id": ["c1", None, "c2"],
                "date": ["2024-01-03T22:00:00-03:00", "2024-01-03", "05/01/2024"],
                "ggr": [500, 999, 0],
            }
        )
    )
    payments = payments_from_frame(
        pd.DataFrame(
            {
                "clientes_id": ["c1", "c1", "c2", "c9"],
                "afiliados_id": ["a1", "a2", "a2", None],
                "date": ["2024-01-03T10:00:00Z", "10/01/2024", "2024-01-05", "2024-01-05"],
                "value": [100, 50, 100, 999],
                "method": ["cpa"] * 4,
                "status": ["finish"] * 4,
            }
        )
    )
    result = compute_all(Dataset(transactions=transactions, payments=payments))

    assert result.totals.total_customers == 2
    assert sorted(a.afiliados_id for a in result.affiliates) == ["a1", "a2"]
    a2 = next(a for a in result.affiliates if a.afiliados_id == "a2")
    assert a2.ngr_total == pytest.approx(400.0)
    assert [c.week_start for c in result.cohorts] == [datetime(2024, 1, 1)]
