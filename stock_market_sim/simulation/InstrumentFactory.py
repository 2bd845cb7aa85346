import logging
from typing import Optional, Union

import numpy as np

from stock_market_sim.data_provider.QuoteProvider import QuoteProvider
from stock_market_sim.errors import DataSourceUnavailable
from stock_market_sim.market.Instrument import SECTORS, Instrument, bounded_history
from stock_market_sim.market.PriceModel import PriceModel
from stock_market_sim.models import InstrumentConfig, Quote

logger = logging.getLogger(__name__)

SYNTHETIC_PRICE_RANGE = (10.0, 500.0)
SYNTHETIC_VOLATILITY_RANGE = (0.01, 0.03)
SYNTHETIC_VOLUME_RANGE = (100_000, 10_000_000)
SYNTHETIC_SENTIMENT_BOUND = 0.8
PREVIOUS_CLOSE_SPREAD = 0.03


class InstrumentFactory:
    """
    Builds instruments from a seed quote or from synthetic parameters.

    When a quote provider is configured and fails with DataSourceUnavailable,
    the instrument is generated synthetically instead so the simulation keeps
    working offline. Such instruments are flagged `is_synthetic`.
    """

    def __init__(
        self,
        price_model: PriceModel,
        rng: Optional[np.random.Generator] = None,
        provider: Optional[QuoteProvider] = None,
    ):
        self.price_model = price_model
        self.provider = provider
        self._rng = rng if rng is not None else np.random.default_rng()

    @property
    def history_limit(self) -> int:
        return self.price_model.config.history_limit

    def create_instrument(self, source: Union[Quote, InstrumentConfig, str]) -> Instrument:
        if isinstance(source, Quote):
            return self.from_quote(source)
        params = InstrumentConfig(symbol=source) if isinstance(source, str) else source
        if self.provider is None:
            return self.synthetic(params)
        return self.create_from_provider(params)

    def create_from_provider(self, params: InstrumentConfig) -> Instrument:
        if self.provider is None:
            raise ValueError("No quote provider configured")
        try:
            quote = self.provider.fetch_quote(params.symbol)
        except DataSourceUnavailable as e:
            logger.warning(f"{e}. Creating randomized attributes for {params.symbol}...")
            return self.synthetic(params)
        return self.from_quote(quote, overrides=params)

    def from_quote(self, quote: Quote, overrides: Optional[InstrumentConfig] = None) -> Instrument:
        overrides = overrides or InstrumentConfig(symbol=quote.symbol)
        instrument = Instrument(
            symbol=quote.symbol,
            company_name=overrides.company_name or quote.company_name,
            sector=overrides.sector or quote.sector or self._random_sector(),
            market_price=quote.last_price,
            open_price=quote.open_price or quote.last_price,
            previous_close_price=quote.previous_close or quote.last_price,
            volatility=self._volatility(overrides, default=self.price_model.config.default_volatility),
            sentiment=overrides.sentiment if overrides.sentiment is not None else 0.0,
            volume=quote.volume or 0,
            price_history=bounded_history(limit=self.history_limit),
        )
        if quote.history:
            history = list(quote.history)
            if history[-1] != quote.last_price:
                history.append(quote.last_price)
            instrument.replace_history(history[-self.history_limit:])
        else:
            self.price_model.simulate_history(instrument, start_price=quote.last_price)
        logger.info(f"Created {instrument.symbol} from quote at ${instrument.market_price:.2f}")
        return instrument

    def synthetic(self, params: InstrumentConfig) -> Instrument:
        """Generate a plausible instrument; any field set on `params` is used as-is."""
        rng = self._rng
        low, high = SYNTHETIC_PRICE_RANGE
        price = params.price if params.price is not None else round(float(rng.uniform(low, high)), 2)

        prev_close = round(price * (1 + rng.uniform(-PREVIOUS_CLOSE_SPREAD, PREVIOUS_CLOSE_SPREAD)), 2)
        open_weight = rng.random()
        open_price = round(prev_close + (price - prev_close) * open_weight, 2)

        if params.sentiment is not None:
            sentiment = params.sentiment
        else:
            sentiment = round(float(rng.uniform(-SYNTHETIC_SENTIMENT_BOUND, SYNTHETIC_SENTIMENT_BOUND)), 2)

        vol_low, vol_high = SYNTHETIC_VOLATILITY_RANGE
        instrument = Instrument(
            symbol=params.symbol,
            company_name=params.company_name or f"*Simulated* {params.symbol}",
            sector=params.sector or self._random_sector(),
            market_price=price,
            open_price=open_price,
            previous_close_price=prev_close,
            volatility=self._volatility(params, default=float(rng.uniform(vol_low, vol_high))),
            sentiment=sentiment,
            volume=int(rng.integers(*SYNTHETIC_VOLUME_RANGE)),
            is_synthetic=True,
            price_history=bounded_history(limit=self.history_limit),
        )
        self.price_model.simulate_history(instrument, start_price=price)
        logger.info(f"Initialized simulated data for {instrument.symbol} ({instrument.sector}) at ${price:.2f}")
        return instrument

    def _random_sector(self) -> str:
        return SECTORS[int(self._rng.integers(len(SECTORS)))]

    @staticmethod
    def _volatility(params: InstrumentConfig, default: float) -> float:
        return params.volatility if params.volatility is not None else default
