"""In-memory price and FX rate lookups.

Useful for backtest drivers that already hold their price history in
memory, and for tests.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Mapping

from qledger.services.portfolio.periods import to_date, to_decimal

ONE = Decimal("1")


class StaticPriceLookup:
    """
    Close prices held in a nested mapping symbol -> date -> price.

    Example:
        >>> prices = StaticPriceLookup({"AAPL": {date(2010, 1, 4): Decimal("30.57")}})
        >>> prices.get_close("AAPL", date(2010, 1, 4))
        Decimal('30.57')
    """

    def __init__(self, closes: Mapping[str, Mapping[date | str, Decimal | float | str]] | None = None) -> None:
        self._closes: dict[str, dict[date, Decimal]] = {}
        for symbol, series in (closes or {}).items():
            for on, price in series.items():
                self.set_close(symbol, on, price)

    def set_close(self, symbol: str, on: date | datetime | str, price: Decimal | float | str) -> None:
        self._closes.setdefault(symbol, {})[to_date(on)] = to_decimal(price)

    def get_close(self, symbol: str, on: date) -> Decimal | None:
        return self._closes.get(symbol, {}).get(to_date(on))


class StaticFxRateLookup:
    """
    FX rates held per currency pair and date.

    Identity pairs always resolve to 1. A missing pair falls back to the
    reciprocal of the inverse pair when that one is known.
    """

    def __init__(
        self,
        rates: Mapping[tuple[str, str], Mapping[date | str, Decimal | float | str]] | None = None,
    ) -> None:
        self._rates: dict[tuple[str, str], dict[date, Decimal]] = {}
        for pair, series in (rates or {}).items():
            for on, rate in series.items():
                self.set_rate(pair[0], pair[1], on, rate)

    def set_rate(
        self,
        from_currency: str,
        to_currency: str,
        on: date | datetime | str,
        rate: Decimal | float | str,
    ) -> None:
        value = to_decimal(rate)
        if value <= 0:
            raise ValueError(f"FX rate must be positive, got {value}")
        self._rates.setdefault((from_currency, to_currency), {})[to_date(on)] = value

    def get_rate(self, from_currency: str, to_currency: str, on: date) -> Decimal | None:
        if from_currency == to_currency:
            return ONE
        on = to_date(on)
        rate = self._rates.get((from_currency, to_currency), {}).get(on)
        if rate is not None:
            return rate
        inverse = self._rates.get((to_currency, from_currency), {}).get(on)
        if inverse is not None:
            return ONE / inverse
        return None
