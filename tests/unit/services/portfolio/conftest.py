"""Fixtures shared by portfolio service tests."""

from datetime import date
from decimal import Decimal

import pytest

from qledger.services.portfolio import StaticFxRateLookup, StaticPriceLookup, TransactionLedger


@pytest.fixture
def initial_date() -> date:
    """Portfolio inception (a Friday)."""
    return date(2010, 1, 1)


@pytest.fixture
def ledger(initial_date: date) -> TransactionLedger:
    """Flat AAPL ledger."""
    return TransactionLedger("AAPL", initial_date)


@pytest.fixture
def prices() -> StaticPriceLookup:
    """Closes for the first business week of 2010."""
    return StaticPriceLookup(
        {
            "AAPL": {
                date(2010, 1, 4): Decimal("30.50"),
                date(2010, 1, 5): Decimal("31.00"),
                date(2010, 1, 6): Decimal("29.00"),
            },
            "IBM": {
                date(2010, 1, 4): Decimal("11"),
                date(2010, 1, 5): Decimal("12"),
                date(2010, 1, 6): Decimal("10"),
            },
            "MSFT": {
                date(2010, 1, 4): Decimal("19"),
                date(2010, 1, 5): Decimal("21"),
                date(2010, 1, 6): Decimal("20"),
            },
            "SAP": {
                date(2010, 1, 4): Decimal("40"),
                date(2010, 1, 5): Decimal("41"),
                date(2010, 1, 6): Decimal("42"),
            },
        }
    )


@pytest.fixture
def fx_rates() -> StaticFxRateLookup:
    """EUR -> USD rates for the first business week of 2010."""
    return StaticFxRateLookup(
        {
            ("EUR", "USD"): {
                date(2010, 1, 4): Decimal("1.1"),
                date(2010, 1, 5): Decimal("1.2"),
                date(2010, 1, 6): Decimal("1.3"),
            }
        }
    )
