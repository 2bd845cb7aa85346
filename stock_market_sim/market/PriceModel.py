import logging
from typing import List, Optional

import numpy as np

from stock_market_sim.market.Instrument import Instrument
from stock_market_sim.models import PriceModelConfig

logger = logging.getLogger(__name__)

TRADING_DAYS_PER_YEAR = 252


class PriceModel:
    """
    Per-instrument price process.

    Each step draws u ~ U[-1, 1] and moves the price by
    u * volatility + sentiment * sentiment_weight, floored at `price_floor`.
    The random source is injected so runs are reproducible for a given seed.
    """

    def __init__(self, rng: Optional[np.random.Generator] = None, config: Optional[PriceModelConfig] = None):
        self._rng = rng if rng is not None else np.random.default_rng()
        self.config = config or PriceModelConfig()

    @property
    def price_floor(self) -> float:
        return self.config.price_floor

    def _volatility_of(self, instrument: Instrument) -> float:
        vol = instrument.volatility
        if vol is None or vol < 0:
            return self.config.default_volatility
        return vol

    def next_price(self, instrument: Instrument) -> float:
        """Advance `instrument` by one step and return its new market price."""
        u = self._rng.uniform(-1.0, 1.0)
        combined_effect = u * self._volatility_of(instrument) + instrument.sentiment * self.config.sentiment_weight
        new_price = max(instrument.market_price * (1 + combined_effect), self.price_floor)
        instrument.record_price(new_price)
        logger.debug(f"{instrument.symbol} -> {new_price:.4f} (effect {combined_effect:+.5f})")
        return new_price

    def simulate_history(
        self,
        instrument: Instrument,
        days: Optional[int] = None,
        start_price: Optional[float] = None,
        daily_volatility: Optional[float] = None,
    ) -> List[float]:
        """
        Backfill `instrument.price_history` by walking backwards from a seed price.

        A trend bias is drawn once so the series trends instead of being pure
        noise. The seed price is always the last (most recent) entry and becomes
        the instrument's market price.
        """
        days = days if days is not None else self.config.history_days
        seed = start_price if start_price is not None else instrument.market_price
        if seed is None or seed <= 0:
            logger.warning(f"Invalid seed price for {instrument.symbol}, using default of 100")
            seed = 100.0
        vol = daily_volatility if daily_volatility is not None else self.config.default_volatility

        band = self.config.trend_bias_band
        trend_bias = self._rng.uniform(-band, band)

        backwards: List[float] = []
        price = seed
        for _ in range(1, max(days, 1)):
            # sum of three uniforms approximates a bell-shaped shock centred on zero
            noise = self._rng.uniform(0.0, 1.0, size=3).sum() - 1.5
            divisor = max(1 + trend_bias + vol * noise, 0.01)
            price = max(price / divisor, self.price_floor)
            backwards.append(price)

        history = list(reversed(backwards))
        history.append(seed)
        instrument.replace_history(history)
        instrument.market_price = seed
        return list(instrument.price_history)

    def recompute_volatility(self, instrument: Instrument) -> float:
        """
        Re-estimate volatility as the annualised sample standard deviation of
        simple returns. With fewer than two history points nothing changes.
        """
        prices = np.asarray(instrument.price_history, dtype=float)
        if prices.size < 2:
            logger.debug(f"Insufficient price history to calculate volatility for {instrument.symbol}")
            return instrument.volatility

        returns = np.diff(prices) / prices[:-1]
        ddof = 1 if returns.size > 1 else 0
        instrument.volatility = float(np.std(returns, ddof=ddof) * np.sqrt(TRADING_DAYS_PER_YEAR))
        return instrument.volatility
