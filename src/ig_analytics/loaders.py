"""
Spreadsheet ingestion for transaction and payment exports.

Exports come from different back-offices, so each field accepts a few
column aliases (Portuguese and English). Rows are validated here; the
engine assumes typed, well-formed records.
"""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import IO, Any, List, Optional, Sequence, Union

import numpy as np
import pandas as pd
from loguru import logger

from .data_models import Payment, Transaction
from .rev import DEFAULT_TIER

Source = Union[str, Path, IO[bytes]]

PAYMENTS_SHEET = "pagamentos_cpa_rev"
EXCEL_EPOCH = pd.Timestamp("1899-12-30")
_DAY_FIRST = re.compile(r"^\d{1,2}/\d{1,2}/\d{4}")

TRANSACTION_COLUMNS = {
    "customer_id": ("customer_id", "clientes_id", "cliente_id"),
    "date": ("date", "data"),
    "ggr": ("ggr",),
    "chargeback": ("chargeback",),
    "deposit": ("deposit", "deposito"),
    "withdrawal": ("withdrawal", "saque"),
}

PAYMENT_COLUMNS = {
    "clientes_id": ("clientes_id", "cliente_id", "customer_id"),
    "afiliados_id": ("afiliados_id", "afiliado_id"),
    "date": ("date", "data"),
    "value": ("value", "valor"),
    "method": ("method", "tipo"),
    "status": ("status",),
    "classification": ("classification", "classificacao"),
    "level": ("level", "nivel"),
}


class LoaderError(Exception):
    """Raised when a spreadsheet cannot be turned into typed records."""


def _source_name(source: Source) -> str:
    if isinstance(source, (str, Path)):
        return str(source)
    return str(getattr(source, "name", "") or "")


def read_table(source: Source, sheet_name: Optional[str] = None) -> pd.DataFrame:
    """
    Read a csv or Excel export into a DataFrame.

    For workbooks, `sheet_name` is used when present, otherwise the
    first sheet. Column names are stripped and lower-cased.
    """

    name = _source_name(source)
    try:
        if name.lower().endswith(".csv"):
            df = pd.read_csv(source)
        else:
            with pd.ExcelFile(source) as workbook:
                sheets = workbook.sheet_names
                sheet = sheet_name if sheet_name in sheets else sheets[0]
                df = workbook.parse(sheet)
    except FileNotFoundError as e:
        raise LoaderError(f"File not found: {name}") from e
    except (ValueError, OSError, pd.errors.ParserError) as e:
        raise LoaderError(f"Could not read spreadsheet {name or '<buffer>'}: {e}") from e

    df.columns = [str(c).strip().lower() for c in df.columns]
    logger.info(f"Read {len(df)} rows from {name or '<buffer>'}")
    return df


def _pick(df: pd.DataFrame, aliases: Sequence[str]) -> Optional[pd.Series]:
    for alias in aliases:
        if alias in df.columns:
            return df[alias]
    return None


def _require(df: pd.DataFrame, field: str, aliases: Sequence[str]) -> pd.Series:
    column = _pick(df, aliases)
    if column is None:
        raise LoaderError(
            f"Missing required column '{field}' (accepted: {', '.join(aliases)})"
        )
    return column


def _numeric(df: pd.DataFrame, aliases: Sequence[str], default: float = 0.0) -> pd.Series:
    column = _pick(df, aliases)
    if column is None:
        return pd.Series(default, index=df.index, dtype=float)
    return pd.to_numeric(column, errors="coerce").fillna(default).astype(float)


def _text(df: pd.DataFrame, aliases: Sequence[str], default: str = "") -> pd.Series:
    column = _pick(df, aliases)
    if column is None:
        return pd.Series(default, index=df.index, dtype=object)
    return column.map(lambda v: default if _is_blank(v) else str(v).strip())


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def to_identifier(value: Any) -> Optional[str]:
    """
    Normalise an id cell; Excel often stores numeric ids as floats.
    """

    if _is_blank(value):
        return None
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return str(int(value))
    return str(value).strip()


def _normalize(ts: pd.Timestamp) -> datetime:
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts.to_pydatetime()


def parse_date(value: Any) -> datetime:
    """
    Parse a date cell: datetime objects, ISO strings, dd/mm/yyyy strings or
    Excel serial day numbers.

    Timezone-aware values are converted to UTC and returned naive, so every
    record of a load compares against every other.
    """

    if _is_blank(value):
        raise LoaderError("Missing date")
    if isinstance(value, datetime):
        return _normalize(pd.Timestamp(value))
    if isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, bool):
        return _normalize(EXCEL_EPOCH + pd.to_timedelta(float(value), unit="D"))
    text = str(value).strip()
    try:
        if _DAY_FIRST.match(text):
            return _normalize(pd.to_datetime(text, dayfirst=True))
        return _normalize(pd.Timestamp(text))
    except (ValueError, OverflowError) as e:
        raise LoaderError(f"Invalid date: {value!r}") from e


def transactions_from_frame(df: pd.DataFrame) -> List[Transaction]:
    ids = _require(df, "customer_id", TRANSACTION_COLUMNS["customer_id"])
    dates = _require(df, "date", TRANSACTION_COLUMNS["date"])
    ggr = _numeric(df, TRANSACTION_COLUMNS["ggr"])
    chargeback = _numeric(df, TRANSACTION_COLUMNS["chargeback"])
    deposit = _numeric(df, TRANSACTION_COLUMNS["deposit"])
    withdrawal = _numeric(df, TRANSACTION_COLUMNS["withdrawal"])

    records: List[Transaction] = []
    dropped = 0
    for idx in df.index:
        customer_id = to_identifier(ids[idx])
        if customer_id is None:
            dropped += 1
            continue
        try:
            date = parse_date(dates[idx])
        except LoaderError as e:
            raise LoaderError(f"Transaction row {idx}: {e}") from e
        records.append(
            Transaction(
                customer_id=customer_id,
                date=date,
                ggr=float(ggr[idx]),
                chargeback=float(chargeback[idx]),
                deposit=float(deposit[idx]),
                withdrawal=float(withdrawal[idx]),
            )
        )
    if dropped:
        logger.warning(f"Dropped {dropped} transaction rows without customer_id")
    return records


def payments_from_frame(df: pd.DataFrame) -> List[Payment]:
    customers = _pick(df, PAYMENT_COLUMNS["clientes_id"])
    affiliates = _require(df, "afiliados_id", PAYMENT_COLUMNS["afiliados_id"])
    dates = _require(df, "date", PAYMENT_COLUMNS["date"])
    values = _numeric(df, PAYMENT_COLUMNS["value"])
    methods = _text(df, PAYMENT_COLUMNS["method"]).str.lower()
    statuses = _text(df, PAYMENT_COLUMNS["status"]).str.lower()
    classifications = _text(df, PAYMENT_COLUMNS["classification"], default=DEFAULT_TIER)
    levels = _numeric(df, PAYMENT_COLUMNS["level"], default=1.0)

    records: List[Payment] = []
    dropped = 0
    for idx in df.index:
        afiliados_id = to_identifier(affiliates[idx])
        if afiliados_id is None:
            dropped += 1
            continue
        try:
            date = parse_date(dates[idx])
        except LoaderError as e:
            raise LoaderError(f"Payment row {idx}: {e}") from e
        records.append(
            Payment(
                clientes_id=None if customers is None else to_identifier(customers[idx]),
                afiliados_id=afiliados_id,
                date=date,
                value=float(values[idx]),
                method=methods[idx],
                status=statuses[idx],
                classification=classifications[idx],
                level=int(levels[idx]),
            )
        )
    if dropped:
        logger.warning(f"Dropped {dropped} payment rows without afiliados_id")
    return records


def load_transactions(source: Source) -> List[Transaction]:
    records = transactions_from_frame(read_table(source))
    logger.info(f"Loaded {len(records)} transactions")
    return records


def load_payments(source: Source) -> List[Payment]:
    records = payments_from_frame(read_table(source, sheet_name=PAYMENTS_SHEET))
    logger.info(f"Loaded {len(records)} payments")
    return records
