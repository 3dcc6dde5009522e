"""Portfolio service implementation.

Single entry point for a backtest driver or execution callback:
initialize portfolios, record transactions and run update cycles, all by
portfolio name. Calls are expected strictly sequentially from one caller;
concurrent writers to the same portfolio need an external lock.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Sequence

from qledger.services.portfolio.aggregator import PortfolioAggregator
from qledger.services.portfolio.entities import Instrument, Portfolio
from qledger.services.portfolio.interface import IFxRateLookup, IPriceLookup
from qledger.services.portfolio.models import PortfolioSummaryRecord, PositionValuationRecord, Transaction
from qledger.services.portfolio.registry import PortfolioRegistry
from qledger.system import LoggerFactory, SystemConfig, get_system_config, portfolio_context

logger = LoggerFactory.get_logger()


class PortfolioService:
    """
    Portfolio service for transaction recording and P&L roll-up.

    Defaults for portfolio creation (base currency, inception date,
    valuation calendar, missing-price policy) come from SystemConfig.

    Example:
        >>> service = PortfolioService()
        >>> service.init_portfolio("P", symbols=["AAPL"], initial_quantities=0, initial_date="1950-01-01")
        >>> txn = service.add_transaction("P", "AAPL", "2010-01-04", 100, "30.00", "1.00")
        >>> txn.pos_avg_cost
        Decimal('30.01')
        >>> service.update_portfolio("P", "2010-01-29", prices)
    """

    def __init__(
        self,
        registry: PortfolioRegistry | None = None,
        config: SystemConfig | None = None,
    ) -> None:
        self.registry = registry if registry is not None else PortfolioRegistry()
        self.config = config if config is not None else get_system_config()

    def init_portfolio(
        self,
        name: str = "default",
        symbols: Sequence[str] = (),
        initial_quantities: Decimal | int | float | str | Sequence[Decimal | int | float | str] = 0,
        initial_date: date | datetime | str | None = None,
        currency: str | None = None,
    ) -> str:
        """
        Create a portfolio holding the given instruments.

        Raises:
            AlreadyExistsError: If the name is taken
            LengthMismatchError: If quantities and symbols differ in length
        """
        defaults = self.config.portfolio
        return self.registry.create(
            name,
            symbols,
            initial_quantities=initial_quantities,
            initial_date=initial_date if initial_date is not None else defaults.initial_date,
            base_currency=currency or defaults.base_currency,
            frequency=defaults.frequency,
            missing_price_policy=defaults.missing_price_policy,
        )

    def add_instrument(
        self,
        name: str,
        symbol: str,
        initial_quantity: Decimal | int | float | str = Decimal("0"),
        initial_date: date | datetime | str | None = None,
        currency: str | None = None,
    ) -> Instrument:
        """
        Add an instrument to an existing portfolio.

        Raises:
            NotFoundError: If the portfolio does not exist
            AlreadyExistsError: If the symbol is already held
        """
        return self.registry.update(
            name,
            lambda portfolio: PortfolioAggregator(portfolio).add_instrument(
                symbol,
                initial_quantity=initial_quantity,
                initial_date=initial_date,
                currency=currency,
            ),
        )

    def add_transaction(
        self,
        name: str,
        symbol: str,
        timestamp: date | datetime | str,
        quantity: Decimal | int | float | str,
        price: Decimal | int | float | str,
        fees: Decimal | int | float | str = Decimal("0"),
    ) -> Transaction:
        """
        Record a trade for an instrument in a portfolio.

        Args:
            name: Portfolio name
            symbol: Instrument identifier
            timestamp: Trade time
            quantity: Signed quantity (positive=buy, negative=sell)
            price: Trade price per unit
            fees: Total fees (non-negative)

        Returns:
            The computed transaction row

        Raises:
            NotFoundError: If the portfolio or instrument does not exist
        """
        with portfolio_context(name):
            txn = self.registry.update(
                name,
                lambda portfolio: portfolio.get_instrument(symbol).record_transaction(timestamp, quantity, price, fees),
            )
            logger.info(
                "portfolio.transaction_recorded",
                symbol=symbol,
                timestamp=txn.timestamp,
                quantity=txn.quantity,
                price=txn.price,
                fees=txn.fees,
                pos_qty=txn.pos_qty,
                realized_pl=txn.realized_pl,
            )
        return txn

    def update_portfolio(
        self,
        name: str,
        through: date | datetime | str,
        price_lookup: IPriceLookup,
        fx_lookup: IFxRateLookup | None = None,
    ) -> list[PortfolioSummaryRecord]:
        """
        Value every instrument through a period end and rebuild the summary.

        Raises:
            NotFoundError: If the portfolio does not exist
            PriceUnavailableError: If a period cannot be priced
            RateUnavailableError: If translation needs a missing rate
        """
        with portfolio_context(name):
            return self.registry.update(
                name,
                lambda portfolio: PortfolioAggregator(portfolio).update(through, price_lookup, fx_lookup),
            )

    def get_portfolio(self, name: str) -> Portfolio:
        """Get a snapshot of a portfolio."""
        return self.registry.get(name)

    def get_summary(self, name: str) -> list[PortfolioSummaryRecord]:
        return list(self.registry.get_live(name).summary)

    def get_transactions(self, name: str, symbol: str) -> list[Transaction]:
        return self.registry.get_live(name).get_instrument(symbol).ledger.transactions

    def get_valuation(self, name: str, symbol: str, currency: str | None = None) -> list[PositionValuationRecord]:
        """
        Get an instrument's valuation series.

        Args:
            currency: Currency of the series (default: the instrument's own)
        """
        return self.registry.get_live(name).get_instrument(symbol).series(currency)
