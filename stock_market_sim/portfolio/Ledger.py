import logging
import math
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from numbers import Integral, Real
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from stock_market_sim.errors import ErrorKind
from stock_market_sim.models import (
    HoldingRecord,
    LedgerConfig,
    LedgerRecord,
    TradeSide,
    TransactionRecord,
)

logger = logging.getLogger(__name__)


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_transaction_id() -> str:
    return f"txn-{uuid.uuid4().hex}"


@dataclass
class Holding:
    symbol: str
    quantity: int
    average_cost_basis: float

    def market_value(self, price: float) -> float:
        return self.quantity * price

    def to_record(self) -> HoldingRecord:
        return HoldingRecord(symbol=self.symbol, quantity=self.quantity, average_cost_basis=self.average_cost_basis)


@dataclass(frozen=True)
class Transaction:
    transaction_id: str
    type: TradeSide
    symbol: str
    quantity: int
    price_per_share: float
    total_value: float
    timestamp: str

    def to_record(self) -> TransactionRecord:
        return TransactionRecord(
            transaction_id=self.transaction_id,
            type=self.type,
            symbol=self.symbol,
            quantity=self.quantity,
            price_per_share=self.price_per_share,
            total_value=self.total_value,
            timestamp=self.timestamp,
        )

    @classmethod
    def from_record(cls, record: TransactionRecord) -> "Transaction":
        return cls(
            transaction_id=record.transaction_id,
            type=TradeSide(record.type),
            symbol=record.symbol,
            quantity=record.quantity,
            price_per_share=record.price_per_share,
            total_value=record.total_value,
            timestamp=record.timestamp,
        )


@dataclass(frozen=True)
class HoldingMetrics:
    symbol: str
    quantity: int
    average_cost_basis: float
    price: float
    market_value: float
    profit_loss: float
    percent_change: float


@dataclass(frozen=True)
class SectorAllocation:
    sector: str
    value: float
    percentage: float


@dataclass
class TradeResult:
    success: bool
    side: TradeSide
    symbol: str
    quantity: Any
    price: Any
    cash: float
    holding: Optional[Holding] = None
    transaction: Optional[Transaction] = None
    error: Optional[ErrorKind] = None
    message: Optional[str] = None
    held_quantity: Optional[int] = None


def is_positive_int(value) -> bool:
    return isinstance(value, Integral) and not isinstance(value, bool) and value > 0


def is_valid_price(value) -> bool:
    return (
        isinstance(value, Real)
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value > 0
    )


class Ledger:
    """
    Cash, holdings and the append-only transaction log for one user.

    buy/sell validate everything before touching state, so a rejected trade
    leaves cash, holdings and the log exactly as they were. Rejections are
    returned as TradeResult objects, never raised.
    """

    def __init__(
        self,
        starting_cash: float = 10000.0,
        user_id: str = "local",
        config: Optional[LedgerConfig] = None,
        timestamp_fn: Callable[[], str] = _utc_timestamp,
    ):
        if starting_cash < 0:
            raise ValueError(f"Starting cash must be non-negative, got {starting_cash}")
        self.config = config or LedgerConfig(starting_cash=starting_cash)
        self.user_id = user_id
        self.starting_cash = float(starting_cash)
        self.cash = float(starting_cash)
        self.holdings: Dict[str, Holding] = {}
        self.transactions: List[Transaction] = []
        self._timestamp_fn = timestamp_fn

    def reset(self) -> None:
        self.cash = self.starting_cash
        self.holdings = {}
        self.transactions = []

    def _reject(self, side: TradeSide, symbol: str, quantity, price, error: ErrorKind, message: str, **extra) -> TradeResult:
        logger.warning(f"{side.value} {quantity} {symbol} @ {price} rejected ({error.value}): {message}")
        holding = self.holdings.get(symbol)
        return TradeResult(
            success=False,
            side=side,
            symbol=symbol,
            quantity=quantity,
            price=price,
            cash=self.cash,
            holding=replace(holding) if holding else None,
            error=error,
            message=message,
            **extra,
        )

    def _validate_order(self, side: TradeSide, symbol: str, quantity, price) -> Optional[TradeResult]:
        if not is_positive_int(quantity):
            return self._reject(side, symbol, quantity, price, ErrorKind.INVALID_QUANTITY,
                                f"Quantity must be a positive whole number, got {quantity!r}")
        limit = self.config.max_order_quantity
        if limit is not None and quantity > limit:
            return self._reject(side, symbol, quantity, price, ErrorKind.INVALID_QUANTITY,
                                f"Quantity {quantity} exceeds the per-order limit of {limit}")
        if not is_valid_price(price):
            return self._reject(side, symbol, quantity, price, ErrorKind.INVALID_PRICE,
                                f"Price must be a positive finite number, got {price!r}")
        return None

    def _record(self, side: TradeSide, symbol: str, quantity: int, price: float) -> Transaction:
        txn = Transaction(
            transaction_id=_new_transaction_id(),
            type=side,
            symbol=symbol,
            quantity=quantity,
            price_per_share=float(price),
            total_value=quantity * float(price),
            timestamp=self._timestamp_fn(),
        )
        self.transactions.append(txn)
        return txn

    def buy(self, symbol: str, quantity: int, price: float) -> TradeResult:
        rejected = self._validate_order(TradeSide.BUY, symbol, quantity, price)
        if rejected:
            return rejected

        cost = quantity * price
        if cost > self.cash:
            return self._reject(TradeSide.BUY, symbol, quantity, price, ErrorKind.INSUFFICIENT_FUNDS,
                                f"Insufficient funds: order costs {cost:.2f}, available cash is {self.cash:.2f}")

        existing = self.holdings.get(symbol)
        if existing:
            new_qty = existing.quantity + quantity
            new_avg = (existing.quantity * existing.average_cost_basis + quantity * price) / new_qty
            holding = Holding(symbol=symbol, quantity=new_qty, average_cost_basis=new_avg)
        else:
            holding = Holding(symbol=symbol, quantity=quantity, average_cost_basis=float(price))

        self.cash -= cost
        self.holdings[symbol] = holding
        txn = self._record(TradeSide.BUY, symbol, quantity, price)
        logger.info(f"BUY {quantity} {symbol} @ {price:.2f}; cash {self.cash:.2f}")
        return TradeResult(
            success=True,
            side=TradeSide.BUY,
            symbol=symbol,
            quantity=quantity,
            price=price,
            cash=self.cash,
            holding=replace(holding),
            transaction=txn,
        )

    def sell(self, symbol: str, quantity: int, price: float) -> TradeResult:
        rejected = self._validate_order(TradeSide.SELL, symbol, quantity, price)
        if rejected:
            return rejected

        existing = self.holdings.get(symbol)
        if existing is None:
            return self._reject(TradeSide.SELL, symbol, quantity, price, ErrorKind.NO_POSITION,
                                f"No position held in {symbol}")
        if existing.quantity < quantity:
            return self._reject(TradeSide.SELL, symbol, quantity, price, ErrorKind.INSUFFICIENT_SHARES,
                                f"Cannot sell {quantity} {symbol}: only {existing.quantity} held",
                                held_quantity=existing.quantity)

        remaining = existing.quantity - quantity
        self.cash += quantity * price
        if remaining == 0:
            del self.holdings[symbol]
            holding = None
        else:
            # selling never moves the cost basis of the remaining lot
            holding = Holding(symbol=symbol, quantity=remaining, average_cost_basis=existing.average_cost_basis)
            self.holdings[symbol] = holding
        txn = self._record(TradeSide.SELL, symbol, quantity, price)
        logger.info(f"SELL {quantity} {symbol} @ {price:.2f}; cash {self.cash:.2f}")
        return TradeResult(
            success=True,
            side=TradeSide.SELL,
            symbol=symbol,
            quantity=quantity,
            price=price,
            cash=self.cash,
            holding=replace(holding) if holding else None,
            transaction=txn,
        )

    # Derived queries

    def portfolio_value(self, prices: Mapping[str, float]) -> float:
        """Mark holdings to `prices`; symbols missing from the map contribute nothing."""
        total = 0.0
        for symbol, holding in self.holdings.items():
            price = prices.get(symbol)
            if price is None:
                logger.debug(f"No price for {symbol}, excluded from portfolio value")
                continue
            total += holding.market_value(price)
        return total

    def total_assets(self, prices: Mapping[str, float]) -> float:
        return self.cash + self.portfolio_value(prices)

    def profit_loss(self, prices: Mapping[str, float]) -> float:
        return self.total_assets(prices) - self.starting_cash

    def percent_change(self, prices: Mapping[str, float]) -> float:
        if not self.starting_cash:
            return 0.0
        return self.profit_loss(prices) / self.starting_cash * 100

    def unrealized_gain(self, symbol: str, price: float) -> float:
        holding = self.holdings.get(symbol)
        if holding is None:
            return 0.0
        return (price - holding.average_cost_basis) * holding.quantity

    def holding_breakdown(self, prices: Mapping[str, float]) -> List[HoldingMetrics]:
        """
        Per-holding value and gain against average cost, in holding order.
        Holdings without a price are left out, as in portfolio_value().
        """
        breakdown = []
        for symbol, holding in self.holdings.items():
            price = prices.get(symbol)
            if price is None:
                continue
            cost = holding.average_cost_basis
            breakdown.append(HoldingMetrics(
                symbol=symbol,
                quantity=holding.quantity,
                average_cost_basis=cost,
                price=price,
                market_value=holding.market_value(price),
                profit_loss=(price - cost) * holding.quantity,
                percent_change=(price / cost - 1) * 100 if cost else 0.0,
            ))
        return breakdown

    def sector_allocation(self, prices: Mapping[str, float], sectors: Mapping[str, str]) -> List[SectorAllocation]:
        """Market value per sector, largest first. Symbols with no known sector go under "Unknown"."""
        totals: Dict[str, float] = {}
        for metrics in self.holding_breakdown(prices):
            sector = sectors.get(metrics.symbol, "Unknown")
            totals[sector] = totals.get(sector, 0.0) + metrics.market_value

        grand_total = sum(totals.values())
        allocation = [
            SectorAllocation(sector=sector, value=value,
                             percentage=value / grand_total * 100 if grand_total else 0.0)
            for sector, value in totals.items()
        ]
        return sorted(allocation, key=lambda a: a.value, reverse=True)

    def transactions_for(self, symbol: str, side: Optional[TradeSide] = None) -> List[Transaction]:
        return [
            t for t in self.transactions
            if t.symbol == symbol and (side is None or t.type == side)
        ]

    def replay_cost_basis(self, symbol: str) -> Tuple[int, float]:
        """Rebuild (quantity, average cost) for `symbol` from the transaction log alone."""
        quantity = 0
        average = 0.0
        for txn in self.transactions_for(symbol):
            if txn.type == TradeSide.BUY:
                new_qty = quantity + txn.quantity
                average = (quantity * average + txn.quantity * txn.price_per_share) / new_qty
                quantity = new_qty
            else:
                quantity -= txn.quantity
                if quantity == 0:
                    average = 0.0
        return quantity, average

    # Persistence

    def to_record(self) -> LedgerRecord:
        return LedgerRecord(
            user_id=self.user_id,
            cash=self.cash,
            starting_cash=self.starting_cash,
            holdings=[h.to_record() for h in self.holdings.values()],
            transactions=[t.to_record() for t in self.transactions],
        )

    @classmethod
    def from_record(cls, record: LedgerRecord, config: Optional[LedgerConfig] = None) -> "Ledger":
        ledger = cls(starting_cash=record.starting_cash, user_id=record.user_id, config=config)
        ledger.cash = record.cash
        ledger.holdings = {
            h.symbol: Holding(symbol=h.symbol, quantity=h.quantity, average_cost_basis=h.average_cost_basis)
            for h in record.holdings
        }
        ledger.transactions = [Transaction.from_record(t) for t in record.transactions]
        return ledger
