"""
Unit tests for stock_market_sim.market.SentimentStore
"""
import numpy as np
import pytest
from pydantic import ValidationError

from conftest import make_instrument
from stock_market_sim.market.SentimentStore import SentimentStore
from stock_market_sim.models import SentimentConfig


def test_apply_delta_saturates_at_bounds():
    store = SentimentStore()
    instrument = make_instrument(sentiment=0.9)

    assert store.apply_delta(instrument, 0.5) == 1.0
    assert store.apply_delta(instrument, -3.0) == -1.0


def test_set_clamps_value():
    store = SentimentStore()
    instrument = make_instrument()

    assert store.set(instrument, 4.2) == 1.0
    assert store.get(instrument) == 1.0


def test_decay_pulls_toward_zero():
    store = SentimentStore(SentimentConfig(decay_rate=0.1))
    instrument = make_instrument(sentiment=0.5)

    store.decay(instrument)

    assert instrument.sentiment == pytest.approx(0.45)


def test_decay_keeps_sign_and_never_overshoots():
    store = SentimentStore()
    instrument = make_instrument(sentiment=-0.8)

    for _ in range(500):
        store.decay(instrument)
        assert -0.8 <= instrument.sentiment <= 0.0


def test_full_decay_resets_to_neutral():
    store = SentimentStore()
    instrument = make_instrument(sentiment=0.7)

    assert store.decay(instrument, rate=1.0) == 0.0


@pytest.mark.parametrize("rate", [-0.1, 1.5])
def test_decay_rejects_rate_outside_unit_interval(rate):
    store = SentimentStore()
    instrument = make_instrument(sentiment=0.3)

    with pytest.raises(ValueError):
        store.decay(instrument, rate=rate)
    assert instrument.sentiment == 0.3


def test_decay_all_touches_every_instrument():
    store = SentimentStore(SentimentConfig(decay_rate=0.5))
    instruments = [make_instrument("A", sentiment=0.4), make_instrument("B", sentiment=-0.2)]

    store.decay_all(instruments)

    assert [i.sentiment for i in instruments] == pytest.approx([0.2, -0.1])


def test_inverted_bounds_are_rejected():
    with pytest.raises(ValueError):
        SentimentStore(SentimentConfig(lower=1.0, upper=-1.0))


@pytest.mark.parametrize("bounds", [{"lower": -2.0}, {"upper": 1.5}])
def test_bounds_outside_unit_range_are_rejected(bounds):
    with pytest.raises(ValidationError):
        SentimentConfig(**bounds)


def test_interleaved_deltas_and_decay_stay_bounded():
    """Random event deltas mixed with decay, in either order, never leave [-1, 1]"""
    rng = np.random.default_rng(2024)
    store = SentimentStore()
    instrument = make_instrument()

    for step in range(2000):
        if rng.random() < 0.5:
            store.apply_delta(instrument, float(rng.uniform(-0.4, 0.4)))
            store.decay(instrument)
        else:
            store.decay(instrument, rate=float(rng.uniform(0.0, 1.0)))
            store.apply_delta(instrument, float(rng.uniform(-0.4, 0.4)))
        assert -1.0 <= instrument.sentiment <= 1.0, \
            f"Sentiment {instrument.sentiment} out of bounds at step {step}"
