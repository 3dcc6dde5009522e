"""Errors raised by the portfolio accounting core.

None of these are retried internally; they propagate to the caller.
"""

from datetime import date


class PortfolioError(Exception):
    """Base exception for portfolio accounting errors."""

    pass


class AlreadyExistsError(PortfolioError):
    """Portfolio or instrument already registered under this name."""

    def __init__(self, kind: str, name: str, hint: str = ""):
        self.kind = kind
        self.name = name
        message = f"{kind} '{name}' already exists"
        if hint:
            message = f"{message}, {hint}"
        super().__init__(message)


class NotFoundError(PortfolioError, KeyError):
    """Lookup miss for a portfolio or instrument."""

    def __init__(self, kind: str, name: str, hint: str = ""):
        self.kind = kind
        self.name = name
        message = f"{kind} '{name}' not found"
        if hint:
            message = f"{message}, {hint}"
        super().__init__(message)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class WrongTypeError(PortfolioError, TypeError):
    """Name resolves to an object that is not a portfolio."""

    def __init__(self, name: str, actual: type):
        self.name = name
        self.actual = actual
        super().__init__(f"'{name}' is not the name of a portfolio object (found {actual.__name__})")


class LengthMismatchError(PortfolioError, ValueError):
    """Initial quantity vector does not match the number of symbols."""

    def __init__(self, n_symbols: int, n_quantities: int):
        self.n_symbols = n_symbols
        self.n_quantities = n_quantities
        super().__init__(
            f"The length of initial quantities ({n_quantities}) is unequal to "
            f"the number of symbols in the portfolio ({n_symbols})"
        )


class PriceUnavailableError(PortfolioError):
    """No close price available to value a period."""

    def __init__(self, symbol: str, on: date):
        self.symbol = symbol
        self.on = on
        super().__init__(f"No close price available for {symbol} on {on.isoformat()}")


class RateUnavailableError(PortfolioError):
    """No FX rate available to translate a period."""

    def __init__(self, from_currency: str, to_currency: str, on: date):
        self.from_currency = from_currency
        self.to_currency = to_currency
        self.on = on
        super().__init__(f"No {from_currency}/{to_currency} rate available on {on.isoformat()}")
