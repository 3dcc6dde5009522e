"""Regular-interval position valuation for one instrument.

Each row values the position at a period end:

    open_pl       = pos_value - pos_qty * pos_avg_cost
    unrealized_pl = open_pl(t) - open_pl(t-1)
    trading_pl    = realized_pl + unrealized_pl

which makes trading_pl equal to pos_value(t) - pos_value(t-1) - txn_value - txn_fees.
"""

from datetime import date, datetime
from decimal import Decimal

from qledger.services.portfolio.exceptions import PriceUnavailableError, RateUnavailableError
from qledger.services.portfolio.interface import IFxRateLookup, IPriceLookup
from qledger.services.portfolio.ledger import TransactionLedger
from qledger.services.portfolio.models import PositionValuationRecord
from qledger.services.portfolio.periods import ZERO, period_ends, to_date, to_decimal
from qledger.system import LoggerFactory
from qledger.system.config import Frequency, MissingPricePolicy

logger = LoggerFactory.get_logger()


class PositionValuation:
    """
    Valuation series derived from a transaction ledger and close prices.

    The series starts with a zero-valued seed row at the ledger's initial
    date holding the starting quantity. update_through() appends one row per
    period boundary that has not been computed yet.
    Periods in which the position is flat before and after, with no trades,
    get a zero row without a price lookup (close_price is None).

    Attributes:
        symbol: Instrument identifier
        currency: Currency the ledger prices are expressed in
        frequency: Valuation calendar ("daily" or "business_daily")
        missing_price_policy: "raise" or "carry_forward"

    Example:
        >>> valuation = PositionValuation(ledger, currency="USD")
        >>> valuation.update_through(date(2010, 1, 8), prices)
        >>> valuation.rows[-1].trading_pl
    """

    def __init__(
        self,
        ledger: TransactionLedger,
        currency: str = "USD",
        frequency: Frequency = "business_daily",
        missing_price_policy: MissingPricePolicy = "raise",
    ) -> None:
        self.ledger = ledger
        self.symbol = ledger.symbol
        self.currency = currency
        self.frequency = frequency
        self.missing_price_policy = missing_price_policy
        self._rows: list[PositionValuationRecord] = [
            PositionValuationRecord(
                timestamp=ledger.initial_date,
                pos_qty=ledger.initial_quantity,
            )
        ]

    @property
    def rows(self) -> list[PositionValuationRecord]:
        return list(self._rows)

    @property
    def last_period(self) -> date:
        return self._rows[-1].timestamp

    def update_through(
        self,
        period_end: date | datetime | str,
        close_price_lookup: IPriceLookup,
    ) -> list[PositionValuationRecord]:
        """
        Compute every period boundary not yet valued, up to period_end.

        Rows computed before a failing period are kept, so a retry resumes
        where the failure happened. Calling again with the same end and the
        same inputs adds nothing.

        Args:
            period_end: Last period end to value (inclusive)
            close_price_lookup: Close price source

        Returns:
            Newly appended rows

        Raises:
            PriceUnavailableError: If a period cannot be priced (and either the
                policy is "raise" or no earlier close exists to carry forward)
        """
        end = to_date(period_end)
        added: list[PositionValuationRecord] = []

        for boundary in period_ends(self.last_period, end, self.frequency):
            row = self._value_period(self._rows[-1], boundary, close_price_lookup)
            self._rows.append(row)
            added.append(row)

        if added:
            logger.debug(
                "valuation.updated",
                symbol=self.symbol,
                periods=len(added),
                through=end.isoformat(),
                pos_qty=str(added[-1].pos_qty),
                pos_value=str(added[-1].pos_value),
            )
        return added

    def invalidate_from(self, timestamp: date | datetime | str) -> int:
        """
        Drop rows whose period could include a trade dated at timestamp.

        The seed row is always kept.

        Returns:
            Number of rows removed
        """
        on = to_date(timestamp)
        keep = [self._rows[0]] + [row for row in self._rows[1:] if row.timestamp < on]
        removed = len(self._rows) - len(keep)
        self._rows = keep
        if removed:
            logger.debug("valuation.invalidated", symbol=self.symbol, since=on.isoformat(), rows=removed)
        return removed

    def translate(self, to_currency: str, fx_rate_lookup: IFxRateLookup) -> list[PositionValuationRecord]:
        """
        Produce the series expressed in another currency.

        Every monetary column of each row is multiplied by that period's rate,
        except cumulative_pl, which is re-accumulated from the translated
        trading_pl so it keeps summing the per-period P&L as rates move.
        The zero-valued seed row and unpriced flat periods are carried over
        without a lookup.

        Args:
            to_currency: Target ISO currency
            fx_rate_lookup: FX rate source

        Returns:
            Translated rows (the native rows if to_currency is the native currency)

        Raises:
            RateUnavailableError: If a rate is missing for any period
        """
        if to_currency == self.currency:
            return self.rows

        translated = [self._rows[0]]
        cumulative_pl = translated[0].cumulative_pl
        for row in self._rows[1:]:
            if row.close_price is None:
                # Unpriced flat period: every monetary column is zero
                translated.append(row.model_copy(update={"cumulative_pl": cumulative_pl}))
                continue
            rate = fx_rate_lookup.get_rate(self.currency, to_currency, row.timestamp)
            if rate is None:
                logger.error(
                    "valuation.rate_unavailable",
                    symbol=self.symbol,
                    from_currency=self.currency,
                    to_currency=to_currency,
                    on=row.timestamp.isoformat(),
                )
                raise RateUnavailableError(self.currency, to_currency, row.timestamp)
            row = row.translated(to_decimal(rate))
            cumulative_pl += row.trading_pl
            translated.append(row.model_copy(update={"cumulative_pl": cumulative_pl}))
        return translated

    def _value_period(
        self,
        prev: PositionValuationRecord,
        boundary: date,
        close_price_lookup: IPriceLookup,
    ) -> PositionValuationRecord:
        txns = self.ledger.transactions_between(prev.timestamp, boundary)
        pos_qty, pos_avg_cost = self.ledger.position_at(boundary)

        if prev.pos_qty == 0 and pos_qty == 0 and not txns:
            # Flat with no trades: nothing to mark, so no close is needed
            return PositionValuationRecord(timestamp=boundary, cumulative_pl=prev.cumulative_pl)

        price = close_price_lookup.get_close(self.symbol, boundary)
        stale = False
        if price is None:
            last_close = self._last_close()
            if self.missing_price_policy == "carry_forward" and last_close is not None:
                price = last_close
                stale = True
                logger.warning(
                    "valuation.price_carried_forward",
                    symbol=self.symbol,
                    on=boundary.isoformat(),
                    price=str(price),
                )
            else:
                logger.error("valuation.price_unavailable", symbol=self.symbol, on=boundary.isoformat())
                raise PriceUnavailableError(self.symbol, boundary)
        close = to_decimal(price)

        pos_value = pos_qty * close
        open_pl = pos_value - pos_qty * pos_avg_cost
        realized_pl = sum((txn.realized_pl for txn in txns), start=ZERO)
        unrealized_pl = open_pl - prev.open_pl
        trading_pl = realized_pl + unrealized_pl

        return PositionValuationRecord(
            timestamp=boundary,
            pos_qty=pos_qty,
            pos_avg_cost=pos_avg_cost,
            close_price=close,
            price_stale=stale,
            pos_value=pos_value,
            txn_value=sum((txn.value for txn in txns), start=ZERO),
            txn_fees=sum((txn.fees for txn in txns), start=ZERO),
            realized_pl=realized_pl,
            unrealized_pl=unrealized_pl,
            trading_pl=trading_pl,
            open_pl=open_pl,
            cumulative_pl=prev.cumulative_pl + trading_pl,
        )

    def _last_close(self) -> Decimal | None:
        """Most recent close used by this series, skipping unpriced flat periods."""
        for row in reversed(self._rows):
            if row.close_price is not None:
                return row.close_price
        return None

    def __len__(self) -> int:
        return len(self._rows)
