"""Snapshot export of ledger, valuation and summary series to pandas.

Decimal columns are converted to float; frames are meant for reporting
and analysis, not for further accounting.
"""

from decimal import Decimal
from typing import Iterable, Sequence

import pandas as pd
from pydantic import BaseModel

from qledger.services.portfolio.models import PortfolioSummaryRecord, PositionValuationRecord, Transaction


def _to_frame(rows: Iterable[BaseModel], columns: Sequence[str]) -> pd.DataFrame:
    records = []
    for row in rows:
        record = {}
        for column, value in row.model_dump().items():
            record[column] = float(value) if isinstance(value, Decimal) else value
        records.append(record)

    frame = pd.DataFrame.from_records(records, columns=["timestamp", *columns])
    frame["timestamp"] = pd.to_datetime(frame["timestamp"])
    return frame.set_index("timestamp")


def transactions_frame(rows: Iterable[Transaction]) -> pd.DataFrame:
    """Ledger rows, one per transaction, indexed by trade time."""
    return _to_frame(
        rows,
        [
            "quantity",
            "price",
            "fees",
            "value",
            "avg_txn_cost",
            "pos_qty",
            "pos_avg_cost",
            "realized_pl",
            "is_seed",
        ],
    )


def valuation_frame(rows: Iterable[PositionValuationRecord]) -> pd.DataFrame:
    """Valuation rows, one per period, indexed by period end."""
    return _to_frame(
        rows,
        [
            "pos_qty",
            "pos_avg_cost",
            "close_price",
            "price_stale",
            "pos_value",
            "txn_value",
            "txn_fees",
            "realized_pl",
            "unrealized_pl",
            "trading_pl",
            "open_pl",
            "cumulative_pl",
            "fx_rate",
        ],
    )


def summary_frame(rows: Iterable[PortfolioSummaryRecord]) -> pd.DataFrame:
    """Portfolio summary rows, one per period, indexed by period end."""
    return _to_frame(
        rows,
        [
            "long_value",
            "short_value",
            "net_value",
            "gross_value",
            "txn_fees",
            "realized_pl",
            "unrealized_pl",
            "interest",
            "net_trading_pl",
            "instrument_count",
        ],
    )
