"""
Unit tests for stock_market_sim.simulation.InstrumentFactory
"""
from unittest.mock import MagicMock

import numpy as np
import pytest

from stock_market_sim.data_provider.QuoteProvider import QuoteProvider
from stock_market_sim.errors import DataSourceUnavailable
from stock_market_sim.market.Instrument import SECTORS
from stock_market_sim.market.PriceModel import PriceModel
from stock_market_sim.models import InstrumentConfig, Quote
from stock_market_sim.simulation.InstrumentFactory import InstrumentFactory


def _factory(provider=None, seed=11):
    return InstrumentFactory(
        PriceModel(np.random.default_rng(seed)),
        rng=np.random.default_rng(seed + 1),
        provider=provider,
    )


def test_synthetic_instrument_defaults():
    instrument = _factory().create_instrument("ACME")

    assert instrument.symbol == "ACME"
    assert instrument.is_synthetic
    assert instrument.company_name == "*Simulated* ACME"
    assert instrument.sector in SECTORS
    assert 10.0 <= instrument.market_price <= 500.0
    assert 0.01 <= instrument.volatility <= 0.03
    assert -0.8 <= instrument.sentiment <= 0.8
    assert len(instrument.price_history) == 30
    assert instrument.price_history[-1] == instrument.market_price


def test_synthetic_instrument_uses_explicit_params():
    params = InstrumentConfig(symbol="AAPL", company_name="Apple Inc.", sector="Technology",
                              price=150.0, volatility=0.02, sentiment=0.0)

    instrument = _factory().create_instrument(params)

    assert instrument.company_name == "Apple Inc."
    assert instrument.sector == "Technology"
    assert instrument.market_price == 150.0
    assert instrument.volatility == 0.02
    assert instrument.sentiment == 0.0


def test_same_seed_same_instrument():
    a = _factory(seed=5).create_instrument("ACME")
    b = _factory(seed=5).create_instrument("ACME")

    assert a.to_record() == b.to_record()


def test_from_quote_keeps_provider_history():
    quote = Quote(symbol="AAPL", company_name="Apple Inc.", last_price=152.0,
                  open_price=150.0, previous_close=149.0, volume=1000,
                  sector="Technology", history=[148.0, 149.0, 152.0])

    instrument = _factory().create_instrument(quote)

    assert not instrument.is_synthetic
    assert list(instrument.price_history) == [148.0, 149.0, 152.0]
    assert instrument.open_price == 150.0
    assert instrument.previous_close_price == 149.0
    assert instrument.price_change() == pytest.approx(3.0)


def test_from_quote_appends_last_price_when_history_is_stale():
    quote = Quote(symbol="AAPL", company_name="Apple Inc.", last_price=155.0, history=[150.0, 151.0])

    instrument = _factory().from_quote(quote)

    assert list(instrument.price_history) == [150.0, 151.0, 155.0]


def test_from_quote_without_history_backfills():
    quote = Quote(symbol="AAPL", company_name="Apple Inc.", last_price=155.0)

    instrument = _factory().from_quote(quote)

    assert len(instrument.price_history) == 30
    assert instrument.price_history[-1] == 155.0


def test_provider_quote_is_used():
    provider = MagicMock(spec=QuoteProvider)
    provider.fetch_quote.return_value = Quote(symbol="MSFT", company_name="Microsoft", last_price=300.0,
                                              history=[299.0, 300.0])

    instrument = _factory(provider).create_instrument(InstrumentConfig(symbol="MSFT", sector="Technology"))

    provider.fetch_quote.assert_called_once_with("MSFT")
    assert instrument.company_name == "Microsoft"
    assert instrument.sector == "Technology"
    assert instrument.market_price == 300.0
    assert not instrument.is_synthetic


def test_unavailable_provider_falls_back_to_synthetic():
    provider = MagicMock(spec=QuoteProvider)
    provider.fetch_quote.side_effect = DataSourceUnavailable("ZZZZ", "no price data returned")

    instrument = _factory(provider).create_instrument("ZZZZ")

    assert instrument.is_synthetic
    assert instrument.symbol == "ZZZZ"
    assert instrument.company_name == "*Simulated* ZZZZ"


def test_create_from_provider_requires_provider():
    with pytest.raises(ValueError):
        _factory().create_from_provider(InstrumentConfig(symbol="AAPL"))
