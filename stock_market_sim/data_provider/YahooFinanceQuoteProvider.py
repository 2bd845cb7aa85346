import logging
from pathlib import Path
from typing import Optional

import pandas as pd
import yfinance as yf
from pydantic import ValidationError

from stock_market_sim.data_provider.QuoteProvider import QuoteProvider
from stock_market_sim.errors import DataSourceUnavailable
from stock_market_sim.models import Quote

logger = logging.getLogger(__name__)


def set_cache_location(custom_location: str) -> Path:
    """Point yfinance's timezone cache at `custom_location`, creating it if needed."""
    cache_dir = Path(custom_location)
    cache_dir.mkdir(parents=True, exist_ok=True)
    yf.set_tz_cache_location(str(cache_dir))
    logger.info(f"Cache location set to: {cache_dir}")
    return cache_dir


class YahooFinanceQuoteProvider(QuoteProvider):
    def __init__(self, period: str = "3mo", history_limit: int = 100, tz_custom_cache_location: Optional[str] = None):
        """
        Seed quotes from Yahoo Finance.

        Args:
            period: lookback passed to `Ticker.history`, e.g. "1mo", "3mo"
            history_limit: maximum number of closes kept as seed history
            tz_custom_cache_location: optional directory for the yfinance tz cache
        """
        self.period = period
        self.history_limit = history_limit
        if tz_custom_cache_location:
            set_cache_location(tz_custom_cache_location)

    def fetch_quote(self, symbol: str) -> Quote:
        logger.info(f"Fetching quote for {symbol} from Yahoo Finance...")
        try:
            ticker = yf.Ticker(symbol)
            data = ticker.history(period=self.period)
        except Exception as e:
            logger.error(f"Error downloading data for {symbol}: {e}")
            raise DataSourceUnavailable(symbol, str(e)) from e

        if data is None or data.empty or "Close" not in data:
            raise DataSourceUnavailable(symbol, "no price data returned")

        closes = data["Close"].dropna()
        if closes.empty:
            raise DataSourceUnavailable(symbol, "no closing prices returned")

        company_name, sector = self._describe(ticker, symbol)
        try:
            quote = Quote(
                symbol=symbol,
                company_name=company_name,
                last_price=float(closes.iloc[-1]),
                open_price=self._last_value(data, "Open"),
                previous_close=float(closes.iloc[-2]) if len(closes) > 1 else None,
                volume=self._last_volume(data),
                sector=sector,
                history=[float(p) for p in closes.tail(self.history_limit)],
            )
        except ValidationError as e:
            raise DataSourceUnavailable(symbol, f"malformed quote: {e}") from e
        logger.info(f"Fetched data for {symbol}: ${quote.last_price:.2f}")
        return quote

    @staticmethod
    def _describe(ticker: "yf.Ticker", symbol: str):
        try:
            info = ticker.info or {}
        except Exception as e:
            logger.warning(f"Company info unavailable for {symbol}: {e}")
            return symbol, None
        name = info.get("shortName") or info.get("longName") or symbol
        return name, info.get("sector")

    @staticmethod
    def _last_value(data: pd.DataFrame, column: str) -> Optional[float]:
        if column not in data:
            return None
        series = data[column].dropna()
        return float(series.iloc[-1]) if not series.empty else None

    @staticmethod
    def _last_volume(data: pd.DataFrame) -> Optional[int]:
        value = YahooFinanceQuoteProvider._last_value(data, "Volume")
        return int(value) if value is not None else None
