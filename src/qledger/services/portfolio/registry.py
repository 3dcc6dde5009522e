"""
Portfolio registry over a shared trading environment.

The TradingEnvironment is a keyed store that can hold any kind of object
(portfolios, accounts, instruments defined by other components). Portfolios
live under the key "portfolio.<name>", and every lookup verifies the type of
what it finds.

Usage:
    registry = PortfolioRegistry()
    registry.create("default", symbols=["IBM", "AAPL"], initial_quantities=0)

    # Snapshot (deep copy, safe to keep around)
    snapshot = registry.get("default")

    # In-place mutation of the live object
    registry.update("default", lambda p: p.instruments["IBM"].record_transaction(...))
"""

import threading
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Sequence, TypeVar

from qledger.services.portfolio.aggregator import PortfolioAggregator
from qledger.services.portfolio.entities import Portfolio
from qledger.services.portfolio.exceptions import AlreadyExistsError, LengthMismatchError, NotFoundError, WrongTypeError
from qledger.services.portfolio.periods import to_date, to_decimal
from qledger.system import LoggerFactory
from qledger.system.config import Frequency, MissingPricePolicy

logger = LoggerFactory.get_logger()

T = TypeVar("T")

PORTFOLIO_PREFIX = "portfolio."


class TradingEnvironment:
    """
    Shared keyed store of named objects.

    Objects are stored by reference; callers that hold an object observe
    later mutations made through any other reference.
    """

    def __init__(self) -> None:
        self._objects: dict[str, Any] = {}
        self._lock = threading.Lock()

    def assign(self, key: str, obj: Any, overwrite: bool = True) -> None:
        """
        Store obj under key.

        Raises:
            AlreadyExistsError: If key is taken and overwrite is False
        """
        with self._lock:
            if not overwrite and key in self._objects:
                raise AlreadyExistsError("Object", key)
            self._objects[key] = obj

    def lookup(self, key: str) -> Any:
        """
        Get the object stored under key.

        Raises:
            NotFoundError: If nothing is stored under key
        """
        if key not in self._objects:
            raise NotFoundError("Object", key)
        return self._objects[key]

    def remove(self, key: str) -> Any:
        """
        Remove and return the object stored under key.

        Raises:
            NotFoundError: If nothing is stored under key
        """
        with self._lock:
            if key not in self._objects:
                raise NotFoundError("Object", key)
            return self._objects.pop(key)

    def exists(self, key: str) -> bool:
        return key in self._objects

    def keys(self) -> list[str]:
        return sorted(self._objects)

    def clear(self) -> None:
        """Remove everything (useful for testing)."""
        with self._lock:
            self._objects.clear()


class PortfolioRegistry:
    """
    Create, fetch, update and remove named portfolios.

    Attributes:
        environment: Backing store, shareable with other components
    """

    def __init__(self, environment: TradingEnvironment | None = None) -> None:
        self.environment = environment if environment is not None else TradingEnvironment()

    @staticmethod
    def key_for(name: str) -> str:
        """Environment key for a portfolio name (names already carrying the prefix are kept)."""
        if name.startswith(PORTFOLIO_PREFIX):
            return name
        return f"{PORTFOLIO_PREFIX}{name}"

    def create(
        self,
        name: str,
        symbols: Sequence[str],
        initial_quantities: Decimal | int | float | str | Sequence[Decimal | int | float | str] = 0,
        initial_date: date | datetime | str = "1950-01-01",
        base_currency: str = "USD",
        frequency: Frequency = "business_daily",
        missing_price_policy: MissingPricePolicy = "raise",
    ) -> str:
        """
        Create and register a portfolio with one instrument per symbol.

        Args:
            name: Portfolio name (unique)
            symbols: Instrument identifiers
            initial_quantities: One starting quantity per symbol, or a single
                value applied to every symbol
            initial_date: Inception date, prior to the first close price used
            base_currency: ISO currency the summary is expressed in
            frequency: Valuation calendar
            missing_price_policy: How valuation treats a missing close price

        Returns:
            The portfolio name

        Raises:
            AlreadyExistsError: If a portfolio with this name exists
            LengthMismatchError: If the quantity vector length differs from symbols
        """
        key = self.key_for(name)
        if self.environment.exists(key):
            raise AlreadyExistsError("Portfolio", name, "use update_portfolio() or add_instrument() to update it")

        if isinstance(symbols, str):
            symbols = [symbols]
        if isinstance(initial_quantities, (Decimal, int, float, str)):
            quantities = [to_decimal(initial_quantities)] * len(symbols)
        else:
            quantities = [to_decimal(qty) for qty in initial_quantities]
        if len(quantities) != len(symbols):
            raise LengthMismatchError(len(symbols), len(quantities))

        portfolio = Portfolio(
            name=name,
            currency=base_currency,
            init_date=to_date(initial_date),
            frequency=frequency,
            missing_price_policy=missing_price_policy,
        )
        aggregator = PortfolioAggregator(portfolio)
        for symbol, quantity in zip(symbols, quantities):
            aggregator.add_instrument(symbol, initial_quantity=quantity)
        aggregator.rebuild_summary()

        # assign() repeats the existence check under the environment lock
        try:
            self.environment.assign(key, portfolio, overwrite=False)
        except AlreadyExistsError:
            raise AlreadyExistsError(
                "Portfolio",
                name,
                "use update_portfolio() or add_instrument() to update it",
            ) from None

        logger.info(
            "portfolio.created",
            portfolio=name,
            symbols=len(symbols),
            currency=base_currency,
            init_date=portfolio.init_date.isoformat(),
        )
        return name

    def get(self, name: str) -> Portfolio:
        """
        Get a deep-copied snapshot of a portfolio.

        Later updates to the registered portfolio do not show up in the
        snapshot, and changes to the snapshot are not written back.

        Raises:
            NotFoundError: If no portfolio has this name
            WrongTypeError: If the name holds a non-portfolio object
        """
        return self.get_live(name).model_copy(deep=True)

    def get_live(self, name: str) -> Portfolio:
        """
        Get the registered portfolio itself.

        Any reference returned here observes every later update.

        Raises:
            NotFoundError: If no portfolio has this name
            WrongTypeError: If the name holds a non-portfolio object
        """
        key = self.key_for(name)
        try:
            obj = self.environment.lookup(key)
        except NotFoundError:
            raise NotFoundError("Portfolio", name, "use create() to create a new portfolio") from None
        if not isinstance(obj, Portfolio):
            raise WrongTypeError(name, type(obj))
        return obj

    def update(self, name: str, mutator: Callable[[Portfolio], T]) -> T:
        """
        Apply mutator to the live portfolio and return its result.

        Raises:
            NotFoundError: If no portfolio has this name
            WrongTypeError: If the name holds a non-portfolio object
        """
        return mutator(self.get_live(name))

    def remove(self, name: str) -> Portfolio:
        """
        Remove a portfolio from the registry.

        Raises:
            NotFoundError: If no portfolio has this name
            WrongTypeError: If the name holds a non-portfolio object
        """
        portfolio = self.get_live(name)
        self.environment.remove(self.key_for(name))
        logger.info("portfolio.removed", portfolio=name)
        return portfolio

    def exists(self, name: str) -> bool:
        """True if a portfolio (and not some other object) is registered under name."""
        key = self.key_for(name)
        return self.environment.exists(key) and isinstance(self.environment.lookup(key), Portfolio)

    def list_names(self) -> list[str]:
        """Names of all registered portfolios."""
        names = []
        for key in self.environment.keys():
            if key.startswith(PORTFOLIO_PREFIX) and isinstance(self.environment.lookup(key), Portfolio):
                names.append(key[len(PORTFOLIO_PREFIX) :])
        return names
