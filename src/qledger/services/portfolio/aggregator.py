"""Portfolio roll-up of per-instrument valuation series."""

from datetime import date, datetime
from decimal import Decimal
from typing import Iterable

from qledger.services.portfolio.entities import Instrument, Portfolio
from qledger.services.portfolio.exceptions import AlreadyExistsError
from qledger.services.portfolio.interface import IFxRateLookup, IPriceLookup
from qledger.services.portfolio.models import PortfolioSummaryRecord, PositionValuationRecord
from qledger.services.portfolio.periods import ZERO, to_date
from qledger.system import LoggerFactory

logger = LoggerFactory.get_logger()


class PortfolioAggregator:
    """
    Maintains a portfolio's instruments and its summary series.

    Summary fields are plain sums over the instruments' base-currency rows,
    so the result does not depend on the order instruments are visited in.

    Example:
        >>> aggregator = PortfolioAggregator(portfolio)
        >>> aggregator.add_instrument("IBM", initial_quantity=0)
        >>> aggregator.update(date(2010, 1, 29), prices)
        >>> portfolio.summary[-1].net_value
    """

    def __init__(self, portfolio: Portfolio) -> None:
        self.portfolio = portfolio

    def add_instrument(
        self,
        symbol: str,
        initial_quantity: Decimal | int | float | str = Decimal("0"),
        initial_date: date | datetime | str | None = None,
        currency: str | None = None,
    ) -> Instrument:
        """
        Add a new instrument with a seeded ledger and valuation series.

        Args:
            symbol: Instrument identifier
            initial_quantity: Starting position
            initial_date: Date of the starting position (default: portfolio inception)
            currency: Instrument currency (default: portfolio base currency)

        Raises:
            AlreadyExistsError: If symbol is already in the portfolio
        """
        if symbol in self.portfolio.instruments:
            raise AlreadyExistsError("Instrument", symbol, f"it is already held in portfolio '{self.portfolio.name}'")

        instrument = Instrument.create(
            symbol,
            initial_date if initial_date is not None else self.portfolio.init_date,
            initial_quantity,
            currency=currency or self.portfolio.currency,
            frequency=self.portfolio.frequency,
            missing_price_policy=self.portfolio.missing_price_policy,
        )
        self.portfolio.instruments[symbol] = instrument

        logger.debug(
            "portfolio.instrument_added",
            portfolio=self.portfolio.name,
            symbol=symbol,
            currency=instrument.currency,
            initial_quantity=str(instrument.ledger.initial_quantity),
        )
        return instrument

    def base_series(self, instrument: Instrument) -> list[PositionValuationRecord]:
        """Valuation rows of instrument in the portfolio's base currency (empty if not translated yet)."""
        if instrument.currency == self.portfolio.currency:
            return instrument.valuation.rows
        return list(instrument.translations.get(self.portfolio.currency, []))

    def rebuild_summary(self, periods: Iterable[date | datetime | str] | None = None) -> list[PortfolioSummaryRecord]:
        """
        Recompute summary rows for the given periods.

        Instruments without a row for a period contribute zero. Existing rows
        for those periods are replaced; the summary stays sorted by period.

        Args:
            periods: Period ends to compute (default: every period any
                instrument has a base-currency row for, plus inception)

        Returns:
            The recomputed rows, in period order
        """
        by_period: dict[date, list[PositionValuationRecord]] = {}
        for instrument in self.portfolio.instruments.values():
            for row in self.base_series(instrument):
                by_period.setdefault(row.timestamp, []).append(row)

        if periods is None:
            targets = sorted(set(by_period) | {self.portfolio.init_date})
        else:
            targets = sorted({to_date(p) for p in periods})

        rebuilt = [self._summarize(period, by_period.get(period, [])) for period in targets]

        merged = {row.timestamp: row for row in self.portfolio.summary}
        merged.update({row.timestamp: row for row in rebuilt})
        self.portfolio.summary = [merged[period] for period in sorted(merged)]

        logger.debug(
            "portfolio.summary_rebuilt",
            portfolio=self.portfolio.name,
            periods=len(rebuilt),
            total_periods=len(self.portfolio.summary),
        )
        return rebuilt

    def update(
        self,
        period_end: date | datetime | str,
        price_lookup: IPriceLookup,
        fx_lookup: IFxRateLookup | None = None,
    ) -> list[PortfolioSummaryRecord]:
        """
        Run one update cycle: value, translate, then roll up.

        Args:
            period_end: Last period end to value (inclusive)
            price_lookup: Close price source
            fx_lookup: FX source, required when an instrument's currency
                differs from the base currency

        Returns:
            The full summary series after the update

        Raises:
            PriceUnavailableError: If a period cannot be priced
            RateUnavailableError: If translation needs a missing rate
            ValueError: If translation is needed but no fx_lookup was given
        """
        base = self.portfolio.currency
        for instrument in self.portfolio.instruments.values():
            instrument.valuation.update_through(period_end, price_lookup)
            if instrument.currency != base:
                if fx_lookup is None:
                    raise ValueError(
                        f"Instrument {instrument.symbol} is priced in {instrument.currency}; "
                        f"an FX lookup is required to translate into {base}"
                    )
                instrument.translations[base] = instrument.valuation.translate(base, fx_lookup)

        # Rows dropped by back-dated trades leave stale summary periods behind
        self.portfolio.summary = []
        self.rebuild_summary()

        logger.info(
            "portfolio.updated",
            portfolio=self.portfolio.name,
            through=to_date(period_end).isoformat(),
            instruments=len(self.portfolio.instruments),
            periods=len(self.portfolio.summary),
        )
        return list(self.portfolio.summary)

    @staticmethod
    def _summarize(period: date, rows: list[PositionValuationRecord]) -> PortfolioSummaryRecord:
        long_value = sum((row.pos_value for row in rows if row.pos_value > 0), start=ZERO)
        short_value = sum((row.pos_value for row in rows if row.pos_value < 0), start=ZERO)
        realized_pl = sum((row.realized_pl for row in rows), start=ZERO)
        unrealized_pl = sum((row.unrealized_pl for row in rows), start=ZERO)
        interest = ZERO

        return PortfolioSummaryRecord(
            timestamp=period,
            long_value=long_value,
            short_value=short_value,
            net_value=long_value + short_value,
            gross_value=long_value - short_value,
            txn_fees=sum((row.txn_fees for row in rows), start=ZERO),
            realized_pl=realized_pl,
            unrealized_pl=unrealized_pl,
            interest=interest,
            net_trading_pl=realized_pl + unrealized_pl + interest,
            instrument_count=len(rows),
        )
