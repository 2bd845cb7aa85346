import logging
import time
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from stock_market_sim.market.headlines import EVENT_HEADLINES, NEWS_HEADLINES
from stock_market_sim.market.Instrument import Instrument
from stock_market_sim.market.NewsHistory import NewsHistory, NewsItem, NewsScope
from stock_market_sim.market.SentimentStore import SentimentStore
from stock_market_sim.models import EventEngineConfig, MagnitudeBand, ScopeBands

logger = logging.getLogger(__name__)

SCOPES = [NewsScope.INSTRUMENT, NewsScope.SECTOR, NewsScope.MARKET]


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class EventEngine:
    """
    Generates routine news and rarer market events and applies their impact
    to instrument sentiment.

    Two entry points with independent cadences, both driven from outside:
      - generate_routine_news(): always fires, small magnitudes, never dampened.
      - check_for_event(): fires only once the cooldown has elapsed and a
        probability draw succeeds; larger magnitudes, market scope dampened.

    Every selection (scope, target, polarity, template) is a uniform draw from
    the injected generator.
    """

    def __init__(
        self,
        sentiment_store: SentimentStore,
        news_history: Optional[NewsHistory] = None,
        rng: Optional[np.random.Generator] = None,
        config: Optional[EventEngineConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        timestamp_fn: Callable[[], str] = _utc_timestamp,
    ):
        self.sentiment_store = sentiment_store
        self.config = config or EventEngineConfig()
        self.news_history = news_history if news_history is not None else NewsHistory(self.config.history_limit)
        self._rng = rng if rng is not None else np.random.default_rng()
        self._clock = clock
        self._timestamp_fn = timestamp_fn
        self.events_enabled = self.config.events_enabled
        self.last_event_time = self._clock()

    def toggle_events(self, enabled: bool) -> None:
        self.events_enabled = enabled
        logger.info(f"Market events {'enabled' if enabled else 'disabled'}")

    def cooldown_remaining(self) -> float:
        elapsed = self._clock() - self.last_event_time
        return max(self.config.cooldown_seconds - elapsed, 0.0)

    def check_for_event(self, instruments: Sequence[Instrument]) -> Optional[NewsItem]:
        """Maybe fire a market event; returns the item or None."""
        if not self.events_enabled:
            return None

        now = self._clock()
        if now - self.last_event_time < self.config.cooldown_seconds:
            return None

        if self._rng.random() >= self.config.event_probability:
            return None

        item = self._fire(instruments, self.config.event_bands, is_event=True)
        self.last_event_time = now
        return item

    def generate_routine_news(self, instruments: Sequence[Instrument]) -> NewsItem:
        return self._fire(instruments, self.config.news_bands, is_event=False)

    def _pick(self, options: Sequence):
        return options[int(self._rng.integers(len(options)))]

    def _draw_magnitude(self, band: MagnitudeBand) -> float:
        is_positive = self._rng.random() < 0.5
        magnitude = self._rng.uniform(band.low, band.high)
        return magnitude if is_positive else -magnitude

    def _fire(self, instruments: Sequence[Instrument], bands: ScopeBands, is_event: bool) -> NewsItem:
        scope = self._pick(SCOPES)
        if scope is not NewsScope.MARKET and not instruments:
            logger.debug(f"No tracked instruments for {scope.value} scope, using market scope")
            scope = NewsScope.MARKET

        if scope is NewsScope.INSTRUMENT:
            target = self._pick(instruments)
            magnitude = self._draw_magnitude(bands.instrument)
            affected = [target]
            applied = magnitude
            fields = {"company": target.company_name, "symbol": target.symbol, "sector": target.sector}
            target_ref: Optional[str] = target.symbol
        elif scope is NewsScope.SECTOR:
            sectors = sorted({i.sector for i in instruments})
            sector = self._pick(sectors)
            magnitude = self._draw_magnitude(bands.sector)
            affected = [i for i in instruments if i.sector == sector]
            applied = magnitude
            fields = {"sector": sector}
            target_ref = sector
        else:
            magnitude = self._draw_magnitude(bands.market)
            affected = list(instruments)
            applied = magnitude * self.config.market_dampening if is_event else magnitude
            fields = {}
            target_ref = None

        for instrument in affected:
            self.sentiment_store.apply_delta(instrument, applied)

        headline = self._headline(scope, magnitude, is_event, fields)
        item = NewsItem(
            headline=headline,
            scope=scope,
            target_ref=target_ref,
            magnitude=magnitude,
            created_at=self._timestamp_fn(),
            is_event=is_event,
            affected_symbols=tuple(i.symbol for i in affected),
        )
        self.news_history.push(item)

        kind = "event" if is_event else "news"
        logger.info(
            f"{scope.value.capitalize()} {kind} for {target_ref or 'market'}: "
            f"{magnitude * 100:+.1f}% ({len(affected)} instruments) - {headline}"
        )
        return item

    def _headline(self, scope: NewsScope, magnitude: float, is_event: bool, fields: Dict[str, str]) -> str:
        pool = EVENT_HEADLINES if is_event else NEWS_HEADLINES
        polarity = "positive" if magnitude >= 0 else "negative"
        template = self._pick(pool[(scope.value, polarity)])
        return template.format(**fields)

    def history(self) -> List[NewsItem]:
        return self.news_history.items()

