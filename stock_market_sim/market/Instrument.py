from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable, Optional

from stock_market_sim.models import InstrumentRecord

DEFAULT_HISTORY_LIMIT = 100

SECTORS = [
    "Technology",
    "Healthcare",
    "Financial Services",
    "Consumer Goods",
    "Energy",
    "Telecommunications",
    "Real Estate",
    "Utilities",
    "Materials",
    "Industrials",
]


def bounded_history(prices: Iterable[float] = (), limit: int = DEFAULT_HISTORY_LIMIT) -> Deque[float]:
    return deque((float(p) for p in prices), maxlen=limit)


@dataclass
class Instrument:
    """
    A tradable symbol in the simulation.

    `price_history` is a bounded deque ordered oldest to newest; appending past
    the limit evicts the oldest entry.
    """
    symbol: str
    company_name: str
    sector: str
    market_price: float
    open_price: float = 0.0
    previous_close_price: float = 0.0
    volatility: float = 0.015
    sentiment: float = 0.0
    volume: int = 0
    is_synthetic: bool = False
    price_history: Deque[float] = field(default_factory=bounded_history)
    high_price: Optional[float] = None
    low_price: Optional[float] = None

    def __post_init__(self):
        # a plain deque or list would grow without bound
        if not isinstance(self.price_history, deque) or self.price_history.maxlen is None:
            self.price_history = bounded_history(self.price_history, DEFAULT_HISTORY_LIMIT)

    def record_price(self, price: float) -> None:
        self.market_price = price
        self.price_history.append(price)
        self.high_price = price if self.high_price is None else max(self.high_price, price)
        self.low_price = price if self.low_price is None else min(self.low_price, price)

    def replace_history(self, prices: Iterable[float]) -> None:
        self.price_history = bounded_history(prices, self.history_limit)

    @property
    def history_limit(self) -> int:
        return self.price_history.maxlen or DEFAULT_HISTORY_LIMIT

    def day_change(self) -> Dict[str, float]:
        value = self.market_price - self.open_price
        percent = ((self.market_price / self.open_price) - 1) * 100 if self.open_price else 0.0
        return {"value": value, "percent": percent}

    def price_change(self) -> float:
        return self.market_price - self.previous_close_price

    def to_record(self) -> InstrumentRecord:
        return InstrumentRecord(
            symbol=self.symbol,
            company_name=self.company_name,
            sector=self.sector,
            market_price=self.market_price,
            open_price=self.open_price,
            previous_close_price=self.previous_close_price,
            volatility=self.volatility,
            sentiment=self.sentiment,
            price_history=list(self.price_history),
            volume=self.volume,
            high_price=self.high_price,
            low_price=self.low_price,
            is_synthetic=self.is_synthetic,
        )

    @classmethod
    def from_record(cls, record: InstrumentRecord, history_limit: int = DEFAULT_HISTORY_LIMIT) -> "Instrument":
        return cls(
            symbol=record.symbol,
            company_name=record.company_name,
            sector=record.sector,
            market_price=record.market_price,
            open_price=record.open_price,
            previous_close_price=record.previous_close_price,
            volatility=record.volatility,
            sentiment=record.sentiment,
            volume=record.volume,
            is_synthetic=record.is_synthetic,
            price_history=bounded_history(record.price_history, history_limit),
            high_price=record.high_price,
            low_price=record.low_price,
        )
