from abc import ABC, abstractmethod

from stock_market_sim.models import Quote


class QuoteProvider(ABC):
    @abstractmethod
    def fetch_quote(self, symbol: str) -> Quote:
        """
        Fetch a seed quote for `symbol`.

        Raises:
            DataSourceUnavailable: if the quote cannot be obtained.
        """
        pass
