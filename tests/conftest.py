import asyncio
import pytest
import numpy as np
from collections import deque
from typing import Callable, Any

from stock_market_sim.market.Instrument import Instrument
from stock_market_sim.models import AppConfig, InstrumentConfig

# Small helpers and fixtures shared across the suite


class FakeClock:
    """Manually advanced stand-in for time.monotonic."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


async def wait_for(predicate: Callable[..., Any],
                   timeout: float = 2.0,
                   interval: float = 0.01):
    """Wait until predicate returns truthy. Predicate may be sync or async."""
    loop = asyncio.get_event_loop()
    deadline = loop.time() + timeout
    while True:
        result = predicate()
        if asyncio.iscoroutine(result):
            result = await result
        if result:
            return result
        if loop.time() > deadline:
            raise TimeoutError(f"Condition not met within {timeout} seconds")
        await asyncio.sleep(interval)


def make_instrument(symbol: str = "AAPL", price: float = 100.0, sector: str = "Technology",
                    volatility: float = 0.02, sentiment: float = 0.0, history=None) -> Instrument:
    history = list(history) if history is not None else [price]
    return Instrument(
        symbol=symbol,
        company_name=f"{symbol} Corp",
        sector=sector,
        market_price=price,
        open_price=price,
        previous_close_price=price,
        volatility=volatility,
        sentiment=sentiment,
        price_history=deque(history, maxlen=100),
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def instrument():
    return make_instrument()


@pytest.fixture
def app_config():
    """Small deterministic config: three synthetic instruments across two sectors."""
    return AppConfig(
        seed=7,
        instruments=[
            InstrumentConfig(symbol="AAPL", sector="Technology", price=150.0),
            InstrumentConfig(symbol="MSFT", sector="Technology", price=300.0),
            InstrumentConfig(symbol="XOM", sector="Energy", price=100.0),
        ],
    )
