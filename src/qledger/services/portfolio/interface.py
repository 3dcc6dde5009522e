"""Collaborator interfaces (Protocols) for the accounting core.

Price history and FX rates live outside the core. Valuation only needs
these two synchronous lookups; a stalled lookup stalls the update.
"""

from datetime import date
from decimal import Decimal
from typing import Protocol, runtime_checkable


@runtime_checkable
class IPriceLookup(Protocol):
    """
    Close price source.

    Example:
        >>> class CsvPrices:
        ...     def get_close(self, symbol: str, on: date) -> Decimal | None:
        ...         return self._frame.at[on, symbol]
    """

    def get_close(self, symbol: str, on: date) -> Decimal | float | None:
        """
        Get the close price of symbol for a period end.

        Args:
            symbol: Instrument identifier
            on: Period end date

        Returns:
            Close price, or None if not available
        """
        ...


@runtime_checkable
class IFxRateLookup(Protocol):
    """FX rate source used to translate valuation series."""

    def get_rate(self, from_currency: str, to_currency: str, on: date) -> Decimal | float | None:
        """
        Get the rate converting one unit of from_currency into to_currency.

        Args:
            from_currency: ISO currency of the amounts being translated
            to_currency: ISO currency to translate into
            on: Period end date

        Returns:
            Conversion rate, or None if not available
        """
        ...
