"""Unit tests for PortfolioRegistry and TradingEnvironment."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from qledger.services.portfolio.entities import Portfolio
from qledger.services.portfolio.exceptions import (
    AlreadyExistsError,
    LengthMismatchError,
    NotFoundError,
    PortfolioError,
    WrongTypeError,
)
from qledger.services.portfolio.registry import PortfolioRegistry, TradingEnvironment


@pytest.fixture
def environment() -> TradingEnvironment:
    return TradingEnvironment()


@pytest.fixture
def registry(environment: TradingEnvironment) -> PortfolioRegistry:
    return PortfolioRegistry(environment)


class TestTradingEnvironment:
    """Test the shared keyed store."""

    def test_assign_and_lookup(self, environment: TradingEnvironment) -> None:
        obj = object()
        environment.assign("account.main", obj)

        assert environment.lookup("account.main") is obj
        assert environment.exists("account.main")
        assert environment.keys() == ["account.main"]

    def test_assign_without_overwrite(self, environment: TradingEnvironment) -> None:
        environment.assign("x", 1)

        with pytest.raises(AlreadyExistsError):
            environment.assign("x", 2, overwrite=False)
        assert environment.lookup("x") == 1

    def test_lookup_missing(self, environment: TradingEnvironment) -> None:
        with pytest.raises(NotFoundError):
            environment.lookup("missing")

    def test_remove_and_clear(self, environment: TradingEnvironment) -> None:
        environment.assign("a", 1)
        environment.assign("b", 2)

        assert environment.remove("a") == 1
        assert environment.keys() == ["b"]
        environment.clear()
        assert environment.keys() == []
        with pytest.raises(NotFoundError):
            environment.remove("a")


class TestCreate:
    """Test portfolio creation."""

    def test_create_registers_portfolio(self, registry: PortfolioRegistry, environment: TradingEnvironment) -> None:
        name = registry.create("P", symbols=["IBM", "AAPL"], initial_quantities=[10, 0], initial_date="2010-01-01")

        assert name == "P"
        assert environment.exists("portfolio.P")
        portfolio = registry.get_live("P")
        assert portfolio.symbols == ["IBM", "AAPL"]
        assert portfolio.init_date == date(2010, 1, 1)
        assert portfolio.get_instrument("IBM").ledger.initial_quantity == Decimal("10")

    def test_create_seeds_summary_at_inception(self, registry: PortfolioRegistry) -> None:
        registry.create("P", symbols=["IBM"], initial_date="2010-01-01")

        summary = registry.get_live("P").summary
        assert len(summary) == 1
        assert summary[0].timestamp == date(2010, 1, 1)
        assert summary[0].instrument_count == 1

    def test_scalar_quantity_is_broadcast(self, registry: PortfolioRegistry) -> None:
        registry.create("P", symbols=["IBM", "MSFT", "AAPL"], initial_quantities=5)

        portfolio = registry.get_live("P")
        assert [i.ledger.initial_quantity for i in portfolio.instruments.values()] == [Decimal("5")] * 3

    def test_single_symbol_string(self, registry: PortfolioRegistry) -> None:
        registry.create("P", symbols="IBM")

        assert registry.get_live("P").symbols == ["IBM"]

    def test_defaults(self, registry: PortfolioRegistry) -> None:
        registry.create("P", symbols=["IBM"])

        portfolio = registry.get_live("P")
        assert portfolio.currency == "USD"
        assert portfolio.init_date == date(1950, 1, 1)
        assert portfolio.frequency == "business_daily"

    def test_duplicate_name_rejected(self, registry: PortfolioRegistry) -> None:
        registry.create("P", symbols=["IBM"])

        with pytest.raises(AlreadyExistsError, match="Portfolio 'P' already exists"):
            registry.create("P", symbols=["MSFT"])
        assert registry.get_live("P").symbols == ["IBM"]

    def test_length_mismatch_rejected(self, registry: PortfolioRegistry) -> None:
        with pytest.raises(LengthMismatchError) as exc_info:
            registry.create("P", symbols=["IBM", "MSFT"], initial_quantities=[1, 2, 3])

        assert exc_info.value.n_symbols == 2
        assert exc_info.value.n_quantities == 3
        assert not registry.exists("P")

    def test_length_mismatch_is_value_error(self, registry: PortfolioRegistry) -> None:
        with pytest.raises(ValueError):
            registry.create("P", symbols=["IBM"], initial_quantities=[])


class TestLookup:
    """Test fetching portfolios."""

    def test_unknown_name(self, registry: PortfolioRegistry) -> None:
        with pytest.raises(NotFoundError, match="Portfolio 'nope' not found"):
            registry.get("nope")

    def test_not_found_is_key_error(self, registry: PortfolioRegistry) -> None:
        with pytest.raises(KeyError):
            registry.get_live("nope")

    def test_wrong_type(self, registry: PortfolioRegistry, environment: TradingEnvironment) -> None:
        environment.assign("portfolio.acct", {"cash": 100})

        with pytest.raises(WrongTypeError, match="not the name of a portfolio object") as exc_info:
            registry.get("acct")

        assert exc_info.value.actual is dict
        assert isinstance(exc_info.value, PortfolioError)
        assert not registry.exists("acct")

    def test_prefixed_name_is_accepted(self, registry: PortfolioRegistry) -> None:
        registry.create("P", symbols=["IBM"])

        assert registry.get_live("portfolio.P") is registry.get_live("P")
        assert PortfolioRegistry.key_for("portfolio.P") == "portfolio.P"
        assert PortfolioRegistry.key_for("P") == "portfolio.P"

    def test_list_names_ignores_other_objects(
        self, registry: PortfolioRegistry, environment: TradingEnvironment
    ) -> None:
        registry.create("B", symbols=["IBM"])
        registry.create("A", symbols=["IBM"])
        environment.assign("account.main", object())
        environment.assign("portfolio.bogus", object())

        assert registry.list_names() == ["A", "B"]


class TestSharing:
    """Test snapshot and live access semantics."""

    def test_snapshot_is_isolated(self, registry: PortfolioRegistry) -> None:
        registry.create("P", symbols=["IBM"], initial_date="2010-01-01")
        snapshot = registry.get("P")

        registry.update(
            "P",
            lambda p: p.get_instrument("IBM").record_transaction(datetime(2010, 1, 4), 100, Decimal("10")),
        )

        assert len(snapshot.get_instrument("IBM").ledger) == 1
        assert len(registry.get_live("P").get_instrument("IBM").ledger) == 2

    def test_snapshot_changes_are_not_written_back(self, registry: PortfolioRegistry) -> None:
        registry.create("P", symbols=["IBM"], initial_date="2010-01-01")
        snapshot = registry.get("P")

        snapshot.get_instrument("IBM").record_transaction(datetime(2010, 1, 4), 100, Decimal("10"))

        assert len(registry.get_live("P").get_instrument("IBM").ledger) == 1

    def test_live_references_observe_updates(self, registry: PortfolioRegistry) -> None:
        registry.create("P", symbols=["IBM"], initial_date="2010-01-01")
        first = registry.get_live("P")

        registry.update(
            "P",
            lambda p: p.get_instrument("IBM").record_transaction(datetime(2010, 1, 4), 100, Decimal("10")),
        )

        assert first.get_instrument("IBM").ledger.last_transaction.pos_qty == Decimal("100")

    def test_update_returns_mutator_result(self, registry: PortfolioRegistry) -> None:
        registry.create("P", symbols=["IBM"])

        assert registry.update("P", lambda p: p.name) == "P"

    def test_update_unknown_portfolio(self, registry: PortfolioRegistry) -> None:
        with pytest.raises(NotFoundError):
            registry.update("nope", lambda p: None)

    def test_registries_share_environment(self, environment: TradingEnvironment) -> None:
        PortfolioRegistry(environment).create("P", symbols=["IBM"])

        assert isinstance(PortfolioRegistry(environment).get_live("P"), Portfolio)


class TestRemove:
    """Test removing portfolios."""

    def test_remove(self, registry: PortfolioRegistry) -> None:
        registry.create("P", symbols=["IBM"])

        removed = registry.remove("P")

        assert removed.name == "P"
        assert not registry.exists("P")
        assert registry.list_names() == []

    def test_name_reusable_after_remove(self, registry: PortfolioRegistry) -> None:
        registry.create("P", symbols=["IBM"])
        registry.remove("P")

        registry.create("P", symbols=["MSFT"])

        assert registry.get_live("P").symbols == ["MSFT"]

    def test_remove_unknown(self, registry: PortfolioRegistry) -> None:
        with pytest.raises(NotFoundError):
            registry.remove("nope")
