import logging
import time
from typing import Any, Callable, Dict, List, Optional, Union

import numpy as np

from stock_market_sim.data_provider.QuoteProvider import QuoteProvider
from stock_market_sim.errors import ErrorKind
from stock_market_sim.market.EventEngine import EventEngine
from stock_market_sim.market.Instrument import Instrument
from stock_market_sim.market.NewsHistory import NewsHistory, NewsItem
from stock_market_sim.market.PriceModel import PriceModel
from stock_market_sim.market.SentimentStore import SentimentStore
from stock_market_sim.models import AppConfig, InstrumentConfig, Quote, SnapshotRecord, TradeSide
from stock_market_sim.portfolio.Ledger import Ledger, TradeResult, is_valid_price
from stock_market_sim.portfolio.LimitOrderBook import LimitOrderBook
from stock_market_sim.simulation.InstrumentFactory import InstrumentFactory

logger = logging.getLogger(__name__)


class SimulationSession:
    """
    Encapsulates all the state for a single, isolated market simulation.

    The session owns its instruments, sentiment, news feed and ledger; nothing
    is shared with other sessions. Cadence is decided by whoever calls tick(),
    check_for_event() and generate_routine_news(); each call runs to
    completion before returning, so trades always see the last committed price.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        provider: Optional[QuoteProvider] = None,
        clock: Callable[[], float] = time.monotonic,
        user_id: Optional[str] = None,
    ):
        self.config = config or AppConfig()
        self.user_id = user_id or self.config.user_id

        price_seq, event_seq, factory_seq = np.random.SeedSequence(self.config.seed).spawn(3)
        self.price_model = PriceModel(np.random.default_rng(price_seq), self.config.price_model)
        self.sentiment_store = SentimentStore(self.config.sentiment)
        self.news_history = NewsHistory(self.config.events.history_limit)
        self.event_engine = EventEngine(
            self.sentiment_store,
            self.news_history,
            rng=np.random.default_rng(event_seq),
            config=self.config.events,
            clock=clock,
        )
        self.instrument_factory = InstrumentFactory(
            self.price_model, rng=np.random.default_rng(factory_seq), provider=provider
        )
        self.ledger = Ledger(
            starting_cash=self.config.ledger.starting_cash,
            user_id=self.user_id,
            config=self.config.ledger,
        )
        self.limit_orders = LimitOrderBook(self.ledger)
        self.instruments: Dict[str, Instrument] = {}
        self.tick_count = 0

        for instrument_config in self.config.instruments:
            self.create_instrument(instrument_config)

    # Instruments

    def create_instrument(self, source: Union[Quote, InstrumentConfig, str]) -> Instrument:
        instrument = self.instrument_factory.create_instrument(source)
        return self.add_instrument(instrument)

    def add_instrument(self, instrument: Instrument) -> Instrument:
        if instrument.symbol in self.instruments:
            raise ValueError(f"Instrument {instrument.symbol} is already tracked")
        self.instruments[instrument.symbol] = instrument
        return instrument

    def get_instrument(self, symbol: str) -> Optional[Instrument]:
        return self.instruments.get(symbol)

    def prices(self) -> Dict[str, float]:
        return {symbol: i.market_price for symbol, i in self.instruments.items()}

    # Scheduled entry points

    def tick(self) -> Dict[str, float]:
        """Advance every instrument one step, decay sentiment, then work resting limit orders."""
        for instrument in self.instruments.values():
            self.price_model.next_price(instrument)
            self.sentiment_store.decay(instrument)
        self.tick_count += 1

        prices = self.prices()
        for order in self.limit_orders.check(prices):
            logger.info(f"Limit order {order.order_id} {order.status.value}")
        return prices

    def check_for_event(self) -> Optional[NewsItem]:
        return self.event_engine.check_for_event(list(self.instruments.values()))

    def generate_routine_news(self) -> NewsItem:
        return self.event_engine.generate_routine_news(list(self.instruments.values()))

    # Trading

    def _execution_price(self, side: TradeSide, symbol: str, quantity, price_hint) -> Union[float, TradeResult]:
        instrument = self.instruments.get(symbol)
        if instrument is None:
            message = f"Unknown symbol {symbol}"
            logger.warning(f"{side.value} {quantity} {symbol} rejected: {message}")
            return TradeResult(
                success=False, side=side, symbol=symbol, quantity=quantity, price=price_hint,
                cash=self.ledger.cash, error=ErrorKind.UNKNOWN_SYMBOL, message=message,
            )
        if price_hint is not None:
            if not is_valid_price(price_hint):
                return TradeResult(
                    success=False, side=side, symbol=symbol, quantity=quantity, price=price_hint,
                    cash=self.ledger.cash, error=ErrorKind.INVALID_PRICE,
                    message=f"Price hint must be a positive finite number, got {price_hint!r}",
                )
            if price_hint != instrument.market_price:
                logger.debug(f"{symbol} hint {price_hint} differs from market {instrument.market_price}, using market")
        return instrument.market_price

    def buy(self, symbol: str, quantity: int, price_hint: Optional[float] = None) -> TradeResult:
        price = self._execution_price(TradeSide.BUY, symbol, quantity, price_hint)
        if isinstance(price, TradeResult):
            return price
        return self.ledger.buy(symbol, quantity, price)

    def sell(self, symbol: str, quantity: int, price_hint: Optional[float] = None) -> TradeResult:
        price = self._execution_price(TradeSide.SELL, symbol, quantity, price_hint)
        if isinstance(price, TradeResult):
            return price
        return self.ledger.sell(symbol, quantity, price)

    def summary(self) -> Dict[str, Any]:
        prices = self.prices()
        return {
            "cash": self.ledger.cash,
            "portfolio_value": self.ledger.portfolio_value(prices),
            "total_assets": self.ledger.total_assets(prices),
            "profit_loss": self.ledger.profit_loss(prices),
            "percent_change": self.ledger.percent_change(prices),
        }

    def analytics(self) -> Dict[str, Any]:
        """summary() plus the per-holding breakdown and sector allocation at current prices."""
        prices = self.prices()
        sectors = {symbol: i.sector for symbol, i in self.instruments.items()}
        return {
            **self.summary(),
            "holdings": self.ledger.holding_breakdown(prices),
            "sector_allocation": self.ledger.sector_allocation(prices, sectors),
        }

    # Persistence

    def snapshot(self) -> SnapshotRecord:
        return SnapshotRecord(
            instruments=[i.to_record() for i in self.instruments.values()],
            ledger=self.ledger.to_record(),
            news_history=[n.to_record() for n in self.news_history],
            metadata={"tick_count": self.tick_count, "seed": self.config.seed},
        )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: SnapshotRecord,
        config: Optional[AppConfig] = None,
        provider: Optional[QuoteProvider] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> "SimulationSession":
        """Restore a session; configured instruments are ignored in favour of the snapshot's."""
        config = (config or AppConfig()).model_copy(update={"instruments": []})
        session = cls(config=config, provider=provider, clock=clock, user_id=snapshot.ledger.user_id)
        for record in snapshot.instruments:
            session.add_instrument(Instrument.from_record(record, config.price_model.history_limit))
        session.ledger = Ledger.from_record(snapshot.ledger, config=config.ledger)
        session.limit_orders = LimitOrderBook(session.ledger)
        # history is stored newest first; push oldest first to keep that order
        for record in reversed(snapshot.news_history):
            session.news_history.push(NewsItem.from_record(record))
        session.tick_count = int(snapshot.metadata.get("tick_count", 0))
        return session

    def symbols(self) -> List[str]:
        return list(self.instruments)
