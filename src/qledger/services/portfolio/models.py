"""Data models for portfolio accounting.

Defines the row types of the three series the core maintains:
- Transaction: One ledger row per trade (irregular time series)
- PositionValuationRecord: One row per valuation period and instrument
- PortfolioSummaryRecord: One row per valuation period, portfolio-wide
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from qledger.services.portfolio.periods import ZERO


class Transaction(BaseModel):
    """
    Single row of an instrument's transaction ledger.

    Derived columns (value onwards) are computed by TransactionLedger from
    the preceding row; rows are never modified once created.

    Attributes:
        timestamp: When the trade happened (need not be unique)
        quantity: Signed quantity (positive=buy, negative=sell)
        price: Trade price per unit
        fees: Total fees for the trade (non-negative cost)
        value: Notional value (quantity * price)
        avg_txn_cost: Net price paid (received) per unit, fees included
        pos_qty: Resulting position quantity
        pos_avg_cost: Average cost of the resulting open position
        realized_pl: P&L realized by closing part or all of the prior position
        is_seed: True for the initialization row holding the starting position

    Example:
        >>> txn = ledger.record_transaction(datetime(2010, 1, 4), 100, Decimal("30.00"), Decimal("1.00"))
        >>> txn.pos_avg_cost
        Decimal('30.01')
    """

    timestamp: datetime
    quantity: Decimal
    price: Decimal
    fees: Decimal = ZERO

    value: Decimal = ZERO
    avg_txn_cost: Decimal = ZERO
    pos_qty: Decimal = ZERO
    pos_avg_cost: Decimal = ZERO
    realized_pl: Decimal = ZERO

    is_seed: bool = False

    @field_validator("fees")
    @classmethod
    def validate_fees(cls, v: Decimal) -> Decimal:
        """Validate fees are non-negative."""
        if v < 0:
            raise ValueError(f"Fees must be non-negative, got {v}")
        return v

    @model_validator(mode="after")
    def validate_trade(self) -> "Transaction":
        """Non-seed rows need a non-zero quantity and a positive price."""
        if self.is_seed:
            return self
        if self.quantity == 0:
            raise ValueError("Transaction quantity cannot be zero")
        if self.price <= 0:
            raise ValueError(f"Transaction price must be positive, got {self.price}")
        return self

    model_config = ConfigDict(frozen=True)


class PositionValuationRecord(BaseModel):
    """
    Valuation of one instrument at the end of one period.

    Attributes:
        timestamp: Period end date
        pos_qty: Position held at period end
        pos_avg_cost: Average cost basis at period end
        close_price: Close price used (None on the seed row and unpriced flat periods)
        price_stale: True if close_price was carried forward from an earlier period
        pos_value: Notional value of the position (pos_qty * close_price)
        txn_value: Sum of transaction notional within the period
        txn_fees: Sum of transaction fees within the period
        realized_pl: Sum of realized P&L within the period
        unrealized_pl: Change in open P&L over the period
        trading_pl: realized_pl + unrealized_pl
        open_pl: Mark-to-market gain against cost basis at period end
        cumulative_pl: Running total of trading_pl
        fx_rate: Rate applied if this row was translated (1 for native rows)
    """

    timestamp: date
    pos_qty: Decimal = ZERO
    pos_avg_cost: Decimal = ZERO
    close_price: Decimal | None = None
    price_stale: bool = False

    pos_value: Decimal = ZERO
    txn_value: Decimal = ZERO
    txn_fees: Decimal = ZERO
    realized_pl: Decimal = ZERO
    unrealized_pl: Decimal = ZERO
    trading_pl: Decimal = ZERO

    open_pl: Decimal = ZERO
    cumulative_pl: Decimal = ZERO

    fx_rate: Decimal = Decimal("1")

    def translated(self, rate: Decimal) -> "PositionValuationRecord":
        """Return a copy with every monetary column multiplied by rate."""
        return self.model_copy(
            update={
                "pos_avg_cost": self.pos_avg_cost * rate,
                "close_price": self.close_price * rate if self.close_price is not None else None,
                "pos_value": self.pos_value * rate,
                "txn_value": self.txn_value * rate,
                "txn_fees": self.txn_fees * rate,
                "realized_pl": self.realized_pl * rate,
                "unrealized_pl": self.unrealized_pl * rate,
                "trading_pl": self.trading_pl * rate,
                "open_pl": self.open_pl * rate,
                "cumulative_pl": self.cumulative_pl * rate,
                "fx_rate": rate,
            }
        )

    model_config = ConfigDict(frozen=True)


class PortfolioSummaryRecord(BaseModel):
    """
    Portfolio-wide totals for one period, in the portfolio's base currency.

    Attributes:
        timestamp: Period end date
        long_value: Sum of positive position values
        short_value: Sum of negative position values (negative number)
        net_value: long_value + short_value
        gross_value: long_value + |short_value|
        txn_fees: Fees paid during the period
        realized_pl: Net realized P&L (fees already deducted)
        unrealized_pl: Change in unrealized P&L over the period
        interest: Carrying/interest income for the period
        net_trading_pl: realized_pl + unrealized_pl + interest
        instrument_count: Number of instruments with a row for this period
    """

    timestamp: date
    long_value: Decimal = ZERO
    short_value: Decimal = ZERO
    net_value: Decimal = ZERO
    gross_value: Decimal = ZERO
    txn_fees: Decimal = ZERO
    realized_pl: Decimal = ZERO
    unrealized_pl: Decimal = ZERO
    interest: Decimal = ZERO
    net_trading_pl: Decimal = ZERO
    instrument_count: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)
