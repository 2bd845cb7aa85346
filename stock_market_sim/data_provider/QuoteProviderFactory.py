import logging
from typing import Optional

from stock_market_sim.data_provider.QuoteProvider import QuoteProvider
from stock_market_sim.data_provider.YahooFinanceQuoteProvider import YahooFinanceQuoteProvider


class QuoteProviderFactory:
    def create(self, data_source: str) -> Optional[QuoteProvider]:
        """
        Factory method to create a QuoteProvider for the configured data source.
        "synthetic" needs no provider and returns None.
        """
        logger = logging.getLogger(__name__)

        if data_source == "synthetic":
            logger.info("Using synthetic instruments, no quote provider.")
            return None
        elif data_source == "yahoo":
            logger.info("Initializing YahooFinanceQuoteProvider.")
            return YahooFinanceQuoteProvider()
        else:
            error_msg = f"Unsupported data source: {data_source}"
            logger.error(error_msg)
            raise ValueError(error_msg)
