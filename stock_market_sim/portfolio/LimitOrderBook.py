import logging
import uuid
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Deque, Dict, List, Mapping, Optional, Union

from stock_market_sim.errors import ErrorKind
from stock_market_sim.models import TradeSide
from stock_market_sim.portfolio.Ledger import Ledger, TradeResult, is_positive_int, is_valid_price

logger = logging.getLogger(__name__)

CLOSED_ORDER_HISTORY = 100


def _as_utc(moment: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class OrderStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


@dataclass
class LimitOrder:
    order_id: str
    side: TradeSide
    symbol: str
    quantity: int
    target_price: float
    created_at: datetime
    expires_at: Optional[datetime] = None
    status: OrderStatus = OrderStatus.ACTIVE
    execution_price: Optional[float] = None
    closed_at: Optional[datetime] = None
    fail_reason: Optional[str] = None

    def is_triggered(self, price: float) -> bool:
        if self.side == TradeSide.BUY:
            return price <= self.target_price
        return price >= self.target_price


class LimitOrderBook:
    """
    Resting buy/sell orders that execute through a Ledger once the market
    crosses their target price.

    Only active orders are kept in `orders`; once an order completes, fails,
    expires or is cancelled it moves to the bounded `closed` history.
    """

    def __init__(self, ledger: Ledger, history_limit: int = CLOSED_ORDER_HISTORY):
        self.ledger = ledger
        self.orders: Dict[str, LimitOrder] = {}
        self.closed: Deque[LimitOrder] = deque(maxlen=history_limit)

    def add(
        self,
        side: Union[TradeSide, str],
        symbol: str,
        quantity: int,
        target_price: float,
        expires_at: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> Union[LimitOrder, TradeResult]:
        """Place an order, or return a failed TradeResult explaining why it was refused."""
        side = TradeSide(side.upper() if isinstance(side, str) else side)
        now = _as_utc(now) if now else datetime.now(timezone.utc)
        if expires_at is not None:
            expires_at = _as_utc(expires_at)

        def refuse(kind: ErrorKind, message: str, **extra) -> TradeResult:
            logger.warning(f"Limit {side.value} {quantity} {symbol} @ {target_price} refused: {message}")
            return TradeResult(
                success=False, side=side, symbol=symbol, quantity=quantity, price=target_price,
                cash=self.ledger.cash, error=kind, message=message, **extra,
            )

        if not is_positive_int(quantity):
            return refuse(ErrorKind.INVALID_QUANTITY, f"Quantity must be a positive whole number, got {quantity!r}")
        if not is_valid_price(target_price):
            return refuse(ErrorKind.INVALID_PRICE, f"Target price must be positive, got {target_price!r}")
        if side == TradeSide.SELL:
            holding = self.ledger.holdings.get(symbol)
            if holding is None:
                return refuse(ErrorKind.NO_POSITION, f"No position held in {symbol}")
            if holding.quantity < quantity:
                return refuse(ErrorKind.INSUFFICIENT_SHARES,
                              f"Cannot sell {quantity} {symbol}: only {holding.quantity} held",
                              held_quantity=holding.quantity)

        order = LimitOrder(
            order_id=f"order-{uuid.uuid4().hex[:12]}",
            side=side,
            symbol=symbol,
            quantity=quantity,
            target_price=float(target_price),
            created_at=now,
            expires_at=expires_at,
        )
        self.orders[order.order_id] = order
        logger.info(f"Limit {side.value} {quantity} {symbol} @ {target_price:.2f} placed as {order.order_id}")
        return order

    def _close(self, order: LimitOrder, status: OrderStatus, now: datetime) -> LimitOrder:
        order.status = status
        order.closed_at = now
        del self.orders[order.order_id]
        self.closed.append(order)
        return order

    def get(self, order_id: str) -> Optional[LimitOrder]:
        """Look up an active order, or a closed one still held in history."""
        order = self.orders.get(order_id)
        if order is None:
            order = next((o for o in self.closed if o.order_id == order_id), None)
        return order

    def cancel(self, order_id: str, now: Optional[datetime] = None) -> LimitOrder:
        order = self.get(order_id)
        if order is None:
            raise KeyError(f"Order {order_id} not found")
        if order.status == OrderStatus.ACTIVE:
            self._close(order, OrderStatus.CANCELLED, _as_utc(now) if now else datetime.now(timezone.utc))
            logger.info(f"Limit order {order_id} cancelled")
        return order

    def active_orders(self) -> List[LimitOrder]:
        return list(self.orders.values())

    def check(self, prices: Mapping[str, float], now: Optional[datetime] = None) -> List[LimitOrder]:
        """Expire or execute active orders against `prices`; returns orders closed by this call."""
        now = _as_utc(now) if now else datetime.now(timezone.utc)
        closed: List[LimitOrder] = []
        for order in self.active_orders():
            if order.expires_at is not None and order.expires_at < now:
                closed.append(self._close(order, OrderStatus.EXPIRED, now))
                continue

            price = prices.get(order.symbol)
            if price is None or not order.is_triggered(price):
                continue

            if order.side == TradeSide.BUY:
                result = self.ledger.buy(order.symbol, order.quantity, price)
            else:
                result = self.ledger.sell(order.symbol, order.quantity, price)

            if result.success:
                order.execution_price = price
                closed.append(self._close(order, OrderStatus.COMPLETED, now))
            else:
                order.fail_reason = result.message
                closed.append(self._close(order, OrderStatus.FAILED, now))
        return closed
