from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Iterable, Iterator, List, Optional, Tuple

from stock_market_sim.models import NewsItemRecord


class NewsScope(str, Enum):
    INSTRUMENT = "instrument"
    SECTOR = "sector"
    MARKET = "market"


@dataclass(frozen=True)
class NewsItem:
    headline: str
    scope: NewsScope
    target_ref: Optional[str]
    magnitude: float
    created_at: str
    is_event: bool
    affected_symbols: Tuple[str, ...] = ()

    @property
    def polarity(self) -> str:
        return "positive" if self.magnitude >= 0 else "negative"

    def to_record(self) -> NewsItemRecord:
        return NewsItemRecord(
            headline=self.headline,
            scope=self.scope.value,
            target_ref=self.target_ref,
            magnitude=self.magnitude,
            created_at=self.created_at,
            is_event=self.is_event,
            polarity=self.polarity,
            affected_symbols=list(self.affected_symbols),
        )

    @classmethod
    def from_record(cls, record: NewsItemRecord) -> "NewsItem":
        return cls(
            headline=record.headline,
            scope=NewsScope(record.scope),
            target_ref=record.target_ref,
            magnitude=record.magnitude,
            created_at=record.created_at,
            is_event=record.is_event,
            affected_symbols=tuple(record.affected_symbols),
        )


class NewsHistory:
    """Bounded news feed, most recent first."""

    def __init__(self, limit: int = 50, items: Iterable[NewsItem] = ()):
        self._items: Deque[NewsItem] = deque(items, maxlen=limit)

    @property
    def limit(self) -> int:
        return self._items.maxlen or 0

    def push(self, item: NewsItem) -> None:
        # appendleft on a bounded deque drops from the right, i.e. the oldest
        self._items.appendleft(item)

    def latest(self) -> Optional[NewsItem]:
        return self._items[0] if self._items else None

    def items(self) -> List[NewsItem]:
        return list(self._items)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[NewsItem]:
        return iter(self._items)
