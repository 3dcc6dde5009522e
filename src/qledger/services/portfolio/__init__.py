"""Portfolio accounting service.

This module provides single average-cost position accounting, regular
interval valuation with realized/unrealized P&L, currency translation and
portfolio-level roll-up of long/short/net/gross value and P&L.

Key components:
- PortfolioService: Name-based facade (init, add transaction, update)
- PortfolioRegistry: Named portfolios over a shared TradingEnvironment
- TransactionLedger: Per-instrument transactions, position and average cost
- PositionValuation: Per-instrument valuation series and FX translation
- PortfolioAggregator: Portfolio summary series
- IPriceLookup / IFxRateLookup: Collaborator interfaces

Example:
    >>> from qledger.services.portfolio import PortfolioService, StaticPriceLookup
    >>>
    >>> service = PortfolioService()
    >>> service.init_portfolio("P", symbols=["AAPL"], initial_date="1950-01-01")
    >>> service.add_transaction("P", "AAPL", "2010-01-04", 100, "30.00", fees="1.00")
    >>>
    >>> prices = StaticPriceLookup({"AAPL": {"2010-01-04": "30.57"}})
    >>> service.update_portfolio("P", "2010-01-04", prices)
    >>> print(service.get_summary("P")[-1].net_value)
"""

from qledger.services.portfolio.aggregator import PortfolioAggregator
from qledger.services.portfolio.entities import Instrument, Portfolio
from qledger.services.portfolio.exceptions import (
    AlreadyExistsError,
    LengthMismatchError,
    NotFoundError,
    PortfolioError,
    PriceUnavailableError,
    RateUnavailableError,
    WrongTypeError,
)
from qledger.services.portfolio.interface import IFxRateLookup, IPriceLookup
from qledger.services.portfolio.ledger import TransactionLedger
from qledger.services.portfolio.lookups import StaticFxRateLookup, StaticPriceLookup
from qledger.services.portfolio.models import PortfolioSummaryRecord, PositionValuationRecord, Transaction
from qledger.services.portfolio.registry import PortfolioRegistry, TradingEnvironment
from qledger.services.portfolio.service import PortfolioService
from qledger.services.portfolio.valuation import PositionValuation

__all__ = [
    # Service
    "PortfolioService",
    "PortfolioRegistry",
    "TradingEnvironment",
    # Components
    "TransactionLedger",
    "PositionValuation",
    "PortfolioAggregator",
    # Entities and models
    "Instrument",
    "Portfolio",
    "Transaction",
    "PositionValuationRecord",
    "PortfolioSummaryRecord",
    # Collaborators
    "IPriceLookup",
    "IFxRateLookup",
    "StaticPriceLookup",
    "StaticFxRateLookup",
    # Errors
    "PortfolioError",
    "AlreadyExistsError",
    "NotFoundError",
    "WrongTypeError",
    "LengthMismatchError",
    "PriceUnavailableError",
    "RateUnavailableError",
]
