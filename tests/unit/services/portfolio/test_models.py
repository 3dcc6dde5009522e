"""Unit tests for portfolio row models."""

from datetime import date, datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from qledger.services.portfolio.models import PortfolioSummaryRecord, PositionValuationRecord, Transaction


class TestTransaction:
    """Test Transaction model validation."""

    def test_valid_trade(self) -> None:
        txn = Transaction(timestamp=datetime(2010, 1, 4), quantity=Decimal("100"), price=Decimal("30"))

        assert txn.fees == Decimal("0")
        assert not txn.is_seed

    def test_frozen(self) -> None:
        txn = Transaction(timestamp=datetime(2010, 1, 4), quantity=Decimal("100"), price=Decimal("30"))

        with pytest.raises(ValidationError):
            txn.quantity = Decimal("5")

    def test_negative_fees(self) -> None:
        with pytest.raises(ValidationError, match="Fees must be non-negative"):
            Transaction(timestamp=datetime(2010, 1, 4), quantity=Decimal("1"), price=Decimal("30"), fees=Decimal("-1"))

    def test_zero_quantity(self) -> None:
        with pytest.raises(ValidationError, match="cannot be zero"):
            Transaction(timestamp=datetime(2010, 1, 4), quantity=Decimal("0"), price=Decimal("30"))

    def test_seed_row_allows_zero_price_and_quantity(self) -> None:
        seed = Transaction(timestamp=datetime(2010, 1, 1), quantity=Decimal("0"), price=Decimal("0"), is_seed=True)

        assert seed.pos_qty == Decimal("0")


class TestPositionValuationRecord:
    """Test valuation row translation."""

    def test_translated_scales_monetary_columns(self) -> None:
        row = PositionValuationRecord(
            timestamp=date(2010, 1, 4),
            pos_qty=Decimal("10"),
            pos_avg_cost=Decimal("40"),
            close_price=Decimal("41"),
            pos_value=Decimal("410"),
            txn_value=Decimal("400"),
            txn_fees=Decimal("1"),
            unrealized_pl=Decimal("10"),
            trading_pl=Decimal("10"),
            open_pl=Decimal("10"),
            cumulative_pl=Decimal("10"),
        )

        usd = row.translated(Decimal("2"))

        assert usd.pos_qty == Decimal("10")
        assert usd.pos_avg_cost == Decimal("80")
        assert usd.close_price == Decimal("82")
        assert usd.pos_value == Decimal("820")
        assert usd.txn_fees == Decimal("2")
        assert usd.trading_pl == Decimal("20")
        assert usd.fx_rate == Decimal("2")
        assert row.fx_rate == Decimal("1")

    def test_translated_seed_keeps_missing_close(self) -> None:
        seed = PositionValuationRecord(timestamp=date(2010, 1, 1))

        assert seed.translated(Decimal("1.5")).close_price is None


class TestPortfolioSummaryRecord:
    def test_defaults_are_zero(self) -> None:
        row = PortfolioSummaryRecord(timestamp=date(2010, 1, 1))

        assert row.net_value == Decimal("0")
        assert row.interest == Decimal("0")
        assert row.instrument_count == 0

    def test_negative_instrument_count(self) -> None:
        with pytest.raises(ValidationError):
            PortfolioSummaryRecord(timestamp=date(2010, 1, 1), instrument_count=-1)
