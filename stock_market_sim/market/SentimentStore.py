import logging
from typing import Iterable, Optional

from stock_market_sim.market.Instrument import Instrument
from stock_market_sim.models import SentimentConfig

logger = logging.getLogger(__name__)


class SentimentStore:
    """
    Owns the rules for mutating instrument sentiment.

    Every write goes through `_clamp`, so applying deltas and decaying in any
    order keeps sentiment inside [lower, upper].
    """

    def __init__(self, config: Optional[SentimentConfig] = None):
        self.config = config or SentimentConfig()
        if self.config.lower > self.config.upper:
            raise ValueError(f"Invalid sentiment bounds [{self.config.lower}, {self.config.upper}]")

    def _clamp(self, value: float) -> float:
        return max(self.config.lower, min(self.config.upper, value))

    def get(self, instrument: Instrument) -> float:
        return instrument.sentiment

    def set(self, instrument: Instrument, value: float) -> float:
        instrument.sentiment = self._clamp(value)
        return instrument.sentiment

    def apply_delta(self, instrument: Instrument, delta: float) -> float:
        """Add `delta`, saturating at the bounds."""
        before = instrument.sentiment
        instrument.sentiment = self._clamp(before + delta)
        logger.debug(f"{instrument.symbol} sentiment {before:+.3f} -> {instrument.sentiment:+.3f}")
        return instrument.sentiment

    def decay(self, instrument: Instrument, rate: Optional[float] = None) -> float:
        """Pull sentiment toward neutral by the fraction `rate`."""
        rate = self.config.decay_rate if rate is None else rate
        if not 0.0 <= rate <= 1.0:
            raise ValueError(f"Decay rate must be within [0, 1], got {rate}")
        instrument.sentiment = self._clamp(instrument.sentiment * (1.0 - rate))
        return instrument.sentiment

    def decay_all(self, instruments: Iterable[Instrument], rate: Optional[float] = None) -> None:
        for instrument in instruments:
            self.decay(instrument, rate)
