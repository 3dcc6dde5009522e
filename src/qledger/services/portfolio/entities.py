"""Portfolio and Instrument entities.

A Portfolio owns a mapping symbol -> Instrument and its summary series.
Each Instrument owns exactly one TransactionLedger, the native
PositionValuation built on it and any translated valuation series.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from qledger.services.portfolio.exceptions import NotFoundError
from qledger.services.portfolio.ledger import TransactionLedger
from qledger.services.portfolio.models import PortfolioSummaryRecord, PositionValuationRecord, Transaction
from qledger.services.portfolio.periods import to_date
from qledger.services.portfolio.valuation import PositionValuation
from qledger.system.config import Frequency, MissingPricePolicy


class Instrument(BaseModel):
    """
    One instrument held in a portfolio.

    Attributes:
        symbol: Instrument identifier
        currency: Currency the instrument trades in
        ledger: Transaction ledger
        valuation: Valuation series in the instrument's own currency
        translations: Valuation series translated into other currencies
    """

    symbol: str
    currency: str
    ledger: TransactionLedger
    valuation: PositionValuation
    translations: dict[str, list[PositionValuationRecord]] = Field(default_factory=dict)

    model_config = ConfigDict(arbitrary_types_allowed=True)  # NOT frozen - mutable

    @classmethod
    def create(
        cls,
        symbol: str,
        initial_date: date | datetime | str,
        initial_quantity: Decimal | int | float | str = Decimal("0"),
        currency: str = "USD",
        frequency: Frequency = "business_daily",
        missing_price_policy: MissingPricePolicy = "raise",
    ) -> "Instrument":
        """Build an instrument with seeded ledger and valuation series."""
        ledger = TransactionLedger(symbol, initial_date, initial_quantity)
        valuation = PositionValuation(
            ledger,
            currency=currency,
            frequency=frequency,
            missing_price_policy=missing_price_policy,
        )
        return cls(symbol=symbol, currency=currency, ledger=ledger, valuation=valuation)

    def record_transaction(
        self,
        timestamp: date | datetime | str,
        quantity: Decimal | int | float | str,
        price: Decimal | int | float | str,
        fees: Decimal | int | float | str = Decimal("0"),
    ) -> Transaction:
        """
        Record a trade and drop valuation rows it makes stale.

        Rows for periods on or after the trade date are recomputed by the
        next update, which keeps back-dated trades consistent.
        """
        txn = self.ledger.record_transaction(timestamp, quantity, price, fees)
        on = txn.timestamp.date()
        if on <= self.valuation.last_period:
            self.valuation.invalidate_from(on)
            for currency, rows in self.translations.items():
                self.translations[currency] = [rows[0]] + [row for row in rows[1:] if row.timestamp < on]
        return txn

    def series(self, currency: str | None = None) -> list[PositionValuationRecord]:
        """
        Get the valuation series in a currency.

        Args:
            currency: Target currency (default: the instrument's own)

        Raises:
            NotFoundError: If no series has been translated into currency yet
        """
        if currency is None or currency == self.currency:
            return self.valuation.rows
        if currency not in self.translations:
            raise NotFoundError(
                f"{currency} valuation series for instrument",
                self.symbol,
                "update the portfolio to translate it",
            )
        return list(self.translations[currency])


class Portfolio(BaseModel):
    """
    Named portfolio: instruments plus the portfolio-level summary series.

    Attributes:
        name: Unique name within the registry
        currency: Base currency the summary is expressed in
        init_date: Inception date holding the initial positions
        frequency: Valuation calendar shared by all instruments
        missing_price_policy: How valuation treats a missing close price
        instruments: symbol -> Instrument
        summary: Summary rows, sorted by period
    """

    name: str
    currency: str = "USD"
    init_date: date
    frequency: Frequency = "business_daily"
    missing_price_policy: MissingPricePolicy = "raise"
    instruments: dict[str, Instrument] = Field(default_factory=dict)
    summary: list[PortfolioSummaryRecord] = Field(default_factory=list)

    model_config = ConfigDict(arbitrary_types_allowed=True)  # NOT frozen - mutable

    @property
    def symbols(self) -> list[str]:
        return list(self.instruments)

    def get_instrument(self, symbol: str) -> Instrument:
        """
        Get instrument by symbol.

        Raises:
            NotFoundError: If the symbol is not in the portfolio
        """
        if symbol not in self.instruments:
            raise NotFoundError("Instrument", symbol, f"add it to portfolio '{self.name}' first")
        return self.instruments[symbol]

    def summary_at(self, on: date | datetime | str) -> PortfolioSummaryRecord | None:
        """Get the summary row for a period end, if computed."""
        target = to_date(on)
        for row in self.summary:
            if row.timestamp == target:
                return row
        return None
