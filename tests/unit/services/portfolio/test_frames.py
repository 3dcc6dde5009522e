"""Unit tests for pandas export of ledger, valuation and summary series."""

from datetime import date, datetime
from decimal import Decimal

import pandas as pd

from qledger.services.portfolio.aggregator import PortfolioAggregator
from qledger.services.portfolio.entities import Portfolio
from qledger.services.portfolio.frames import summary_frame, transactions_frame, valuation_frame
from qledger.services.portfolio.ledger import TransactionLedger
from qledger.services.portfolio.lookups import StaticPriceLookup
from qledger.services.portfolio.valuation import PositionValuation


def test_transactions_frame(ledger: TransactionLedger) -> None:
    ledger.record_transaction(datetime(2010, 1, 4, 10), 100, Decimal("30"), Decimal("1"))

    frame = transactions_frame(ledger.transactions)

    assert len(frame) == 2
    assert frame.index[1] == pd.Timestamp("2010-01-04 10:00")
    assert frame["pos_avg_cost"].iloc[1] == 30.01
    assert bool(frame["is_seed"].iloc[0])


def test_valuation_frame(ledger: TransactionLedger, prices: StaticPriceLookup) -> None:
    ledger.record_transaction(datetime(2010, 1, 4, 10), 100, Decimal("30"))
    valuation = PositionValuation(ledger)
    valuation.update_through(date(2010, 1, 6), prices)

    frame = valuation_frame(valuation.rows)

    assert list(frame.index) == [pd.Timestamp(f"2010-01-0{d}") for d in (1, 4, 5, 6)]
    assert frame["pos_value"].tolist() == [0.0, 3050.0, 3100.0, 2900.0]
    assert frame["cumulative_pl"].iloc[-1] == -100.0
    assert pd.isna(frame["close_price"].iloc[0])


def test_summary_frame(initial_date: date, prices: StaticPriceLookup) -> None:
    aggregator = PortfolioAggregator(Portfolio(name="p", init_date=initial_date))
    aggregator.add_instrument("IBM").record_transaction(datetime(2010, 1, 4), 100, Decimal("10"))
    aggregator.update(date(2010, 1, 5), prices)

    frame = summary_frame(aggregator.portfolio.summary)

    assert frame.columns[0] == "long_value"
    assert frame.loc[pd.Timestamp("2010-01-05"), "long_value"] == 1200.0
    assert frame["instrument_count"].tolist() == [1, 1, 1]


def test_empty_series() -> None:
    frame = summary_frame([])

    assert frame.empty
    assert "net_trading_pl" in frame.columns
