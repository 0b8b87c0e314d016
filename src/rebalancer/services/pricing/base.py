"""Price lookup interface."""

from abc import ABC, abstractmethod
from typing import Dict, Iterable

from .models import PriceQuote


class PriceLookup(ABC):
    """Batched access to the latest daily closes."""

    source: str = "unknown"

    @abstractmethod
    def get_latest_prices(self, tickers: Iterable[str]) -> Dict[str, PriceQuote]:
        """
        Get quotes for a set of tickers.

        Tickers without price data are left out of the result; that is not an
        error. Failures of the price source itself raise PriceLookupError or
        propagate, failing the caller's run.
        """
        raise NotImplementedError
