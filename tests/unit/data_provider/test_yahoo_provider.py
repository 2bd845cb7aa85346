import pandas as pd
import pytest
from pathlib import Path
from unittest.mock import MagicMock, PropertyMock, patch

from stock_market_sim.data_provider.YahooFinanceQuoteProvider import YahooFinanceQuoteProvider
from stock_market_sim.errors import DataSourceUnavailable, ErrorKind

TICKER_PATH = "stock_market_sim.data_provider.YahooFinanceQuoteProvider.yf.Ticker"


def _fake_ticker(history: pd.DataFrame, info=None):
    ticker = MagicMock()
    ticker.history.return_value = history
    ticker.info = info if info is not None else {"shortName": "Apple Inc.", "sector": "Technology"}
    return ticker


def test_fetch_quote_builds_quote_from_history():
    # Arrange: three days of data, last close is the seed price
    data = pd.DataFrame({
        "Open": [148.0, 150.0, 151.0],
        "Close": [149.0, 151.5, 152.25],
        "Volume": [1000, 2000, 3000],
    })
    with patch(TICKER_PATH, return_value=_fake_ticker(data)) as ticker_cls:
        provider = YahooFinanceQuoteProvider(period="1mo")

        # Act
        quote = provider.fetch_quote("AAPL")

    # Assert
    ticker_cls.assert_called_once_with("AAPL")
    assert quote.symbol == "AAPL"
    assert quote.company_name == "Apple Inc."
    assert quote.sector == "Technology"
    assert quote.last_price == pytest.approx(152.25)
    assert quote.previous_close == pytest.approx(151.5)
    assert quote.open_price == pytest.approx(151.0)
    assert quote.volume == 3000
    assert quote.history == [149.0, 151.5, 152.25]


def test_history_is_trimmed_to_limit():
    data = pd.DataFrame({"Close": [float(i) for i in range(1, 11)]})
    with patch(TICKER_PATH, return_value=_fake_ticker(data)):
        quote = YahooFinanceQuoteProvider(history_limit=4).fetch_quote("AAPL")

    assert quote.history == [7.0, 8.0, 9.0, 10.0]


def test_empty_history_raises_data_source_unavailable():
    with patch(TICKER_PATH, return_value=_fake_ticker(pd.DataFrame())):
        with pytest.raises(DataSourceUnavailable) as excinfo:
            YahooFinanceQuoteProvider().fetch_quote("NOPE")

    assert excinfo.value.symbol == "NOPE"
    assert excinfo.value.kind == ErrorKind.DATA_SOURCE_UNAVAILABLE


def test_network_error_is_wrapped():
    ticker = MagicMock()
    ticker.history.side_effect = ConnectionError("offline")
    with patch(TICKER_PATH, return_value=ticker):
        with pytest.raises(DataSourceUnavailable, match="offline"):
            YahooFinanceQuoteProvider().fetch_quote("AAPL")


def test_non_positive_close_is_rejected():
    data = pd.DataFrame({"Close": [10.0, 0.0]})
    with patch(TICKER_PATH, return_value=_fake_ticker(data)):
        with pytest.raises(DataSourceUnavailable):
            YahooFinanceQuoteProvider().fetch_quote("AAPL")


def test_missing_info_falls_back_to_symbol():
    data = pd.DataFrame({"Close": [10.0]})
    ticker = MagicMock()
    ticker.history.return_value = data
    type(ticker).info = PropertyMock(side_effect=RuntimeError("rate limited"))
    with patch(TICKER_PATH, return_value=ticker):
        quote = YahooFinanceQuoteProvider().fetch_quote("IBM")

    assert quote.company_name == "IBM"
    assert quote.sector is None
    assert quote.previous_close is None


def test_custom_cache_location(tmp_path: Path):
    cache_dir = tmp_path / "tz"
    with patch("stock_market_sim.data_provider.YahooFinanceQuoteProvider.yf.set_tz_cache_location") as set_cache:
        YahooFinanceQuoteProvider(tz_custom_cache_location=str(cache_dir))

    assert cache_dir.is_dir()
    set_cache.assert_called_once_with(str(cache_dir))
