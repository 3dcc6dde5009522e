"""Transaction ledger with single average-cost position accounting.

Fee treatment:
- Trades that open or add to a position capitalize their fees into the
  average cost basis.
- Trades that reduce, close or reverse a position charge their full fees
  against that trade's realized P&L; on a reversal the new position starts
  at the trade price.
"""

from bisect import bisect_right
from datetime import date, datetime
from decimal import Decimal

from qledger.services.portfolio.models import Transaction
from qledger.services.portfolio.periods import ZERO, sign, to_date, to_datetime, to_decimal
from qledger.system import LoggerFactory

logger = LoggerFactory.get_logger()


class TransactionLedger:
    """
    Append-only, time-ordered transaction record for one instrument.

    The first row is a seed row holding the starting position at the
    initial date. Each further row carries the running position quantity,
    average cost and realized P&L computed from the row before it.

    Example:
        >>> ledger = TransactionLedger("AAPL", date(1950, 1, 1))
        >>> txn = ledger.record_transaction(datetime(2010, 1, 4), 100, "30.00", "1.00")
        >>> (txn.pos_qty, txn.pos_avg_cost, txn.realized_pl)
        (Decimal('100'), Decimal('30.01'), Decimal('0'))
    """

    def __init__(
        self,
        symbol: str,
        initial_date: date | datetime | str,
        initial_quantity: Decimal | int | float | str = ZERO,
    ) -> None:
        """
        Initialize ledger with a seed row.

        Args:
            symbol: Instrument identifier
            initial_date: Date of the starting position (precedes all trades)
            initial_quantity: Starting position quantity (may be zero)
        """
        self.symbol = symbol
        qty = to_decimal(initial_quantity)
        seed = Transaction(
            timestamp=to_datetime(initial_date),
            quantity=qty,
            price=ZERO,
            pos_qty=qty,
            is_seed=True,
        )
        self._rows: list[Transaction] = [seed]

    @property
    def initial_date(self) -> date:
        return self._rows[0].timestamp.date()

    @property
    def initial_quantity(self) -> Decimal:
        return self._rows[0].pos_qty

    @property
    def transactions(self) -> list[Transaction]:
        """All rows including the seed, in chronological order."""
        return list(self._rows)

    @property
    def last_transaction(self) -> Transaction:
        return self._rows[-1]

    def __len__(self) -> int:
        return len(self._rows)

    def record_transaction(
        self,
        timestamp: date | datetime | str,
        quantity: Decimal | int | float | str,
        price: Decimal | int | float | str,
        fees: Decimal | int | float | str = ZERO,
    ) -> Transaction:
        """
        Record a trade and compute its derived columns.

        Rows sharing a timestamp keep insertion order. A back-dated trade is
        inserted in place and every later row is recomputed (replaced by a
        new row); rows before it are left untouched.

        Args:
            timestamp: When the trade happened (must fall after the initial date)
            quantity: Signed quantity (positive=buy, negative=sell)
            price: Trade price per unit
            fees: Total fees for the trade (non-negative)

        Returns:
            The computed transaction row

        Raises:
            ValueError: If quantity is zero or the trade falls on or before
                the initial date
            pydantic.ValidationError: If price is not positive or fees are negative
        """
        ts = to_datetime(timestamp)
        qty = to_decimal(quantity)
        if qty == 0:
            raise ValueError(f"Transaction quantity for {self.symbol} cannot be zero")
        if ts.date() <= self.initial_date:
            raise ValueError(
                f"Transaction for {self.symbol} on {ts.date().isoformat()} must fall after "
                f"the initial date {self.initial_date.isoformat()}"
            )

        index = bisect_right(self._rows, ts, key=lambda row: row.timestamp)
        prior = self._rows[index - 1]
        row = self._apply(prior, ts, qty, to_decimal(price), to_decimal(fees))

        later = self._rows[index:]
        rows = self._rows[:index] + [row]
        for old in later:
            rows.append(self._apply(rows[-1], old.timestamp, old.quantity, old.price, old.fees))
        self._rows = rows

        if later:
            logger.warning(
                "ledger.backdated_transaction",
                symbol=self.symbol,
                timestamp=ts.isoformat(),
                recomputed_rows=len(later),
            )

        logger.debug(
            "ledger.transaction_recorded",
            symbol=self.symbol,
            timestamp=ts.isoformat(),
            quantity=str(row.quantity),
            price=str(row.price),
            pos_qty=str(row.pos_qty),
            pos_avg_cost=str(row.pos_avg_cost),
            realized_pl=str(row.realized_pl),
        )

        # Later rows were rebuilt, so hand back the stored instance
        return self._rows[index]

    def position_at(self, timestamp: date | datetime | str) -> tuple[Decimal, Decimal]:
        """
        Get position quantity and average cost as of a point in time.

        A date covers every trade on that day; a datetime covers trades at or
        before that instant. Before the initial date the position is flat.

        Returns:
            (pos_qty, pos_avg_cost)
        """
        row = self._row_at(timestamp)
        if row is None:
            return ZERO, ZERO
        return row.pos_qty, row.pos_avg_cost

    def transactions_between(self, start: date | datetime | str, end: date | datetime | str) -> list[Transaction]:
        """
        Get trades dated after start and up to and including end.

        Both bounds are compared as dates; the seed row is never included.
        """
        start_date = to_date(start)
        end_date = to_date(end)
        return [
            row for row in self._rows if not row.is_seed and start_date < row.timestamp.date() <= end_date
        ]

    def _row_at(self, timestamp: date | datetime | str) -> Transaction | None:
        if isinstance(timestamp, datetime):
            index = bisect_right(self._rows, timestamp, key=lambda row: row.timestamp)
        else:
            on = to_date(timestamp)
            index = bisect_right(self._rows, on, key=lambda row: row.timestamp.date())
        if index == 0:
            return None
        return self._rows[index - 1]

    @staticmethod
    def _apply(
        prior: Transaction,
        timestamp: datetime,
        quantity: Decimal,
        price: Decimal,
        fees: Decimal,
    ) -> Transaction:
        """Compute a trade row from the previous row's position."""
        prior_qty = prior.pos_qty
        prior_cost = prior.pos_avg_cost
        value = quantity * price
        new_qty = prior_qty + quantity

        if prior_qty == 0 or (sign(prior_qty) == sign(new_qty) and abs(new_qty) >= abs(prior_qty)):
            # Opening or adding: fees go into the cost basis
            realized = ZERO
            avg_cost = (prior_qty * prior_cost + value + fees) / new_qty
        elif sign(prior_qty) == sign(new_qty) or new_qty == 0:
            # Reducing or closing out
            realized = (price - prior_cost) * abs(quantity) * sign(prior_qty) - fees
            avg_cost = prior_cost if new_qty != 0 else ZERO
        else:
            # Close and reverse: only the prior position is realized
            realized = (price - prior_cost) * abs(prior_qty) * sign(prior_qty) - fees
            avg_cost = price

        return Transaction(
            timestamp=timestamp,
            quantity=quantity,
            price=price,
            fees=fees,
            value=value,
            avg_txn_cost=(value + fees) / quantity,
            pos_qty=new_qty,
            pos_avg_cost=avg_cost,
            realized_pl=realized,
        )
