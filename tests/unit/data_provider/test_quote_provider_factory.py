import pytest

from stock_market_sim.data_provider.QuoteProviderFactory import QuoteProviderFactory
from stock_market_sim.data_provider.YahooFinanceQuoteProvider import YahooFinanceQuoteProvider


def test_synthetic_needs_no_provider():
    assert QuoteProviderFactory().create("synthetic") is None


def test_yahoo_provider():
    assert isinstance(QuoteProviderFactory().create("yahoo"), YahooFinanceQuoteProvider)


def test_unknown_source_raises():
    with pytest.raises(ValueError, match="Unsupported data source"):
        QuoteProviderFactory().create("bloomberg")
