"""Price lookup backed by Yahoo Finance."""

from decimal import Decimal
from typing import Dict, Iterable

import yfinance as yf

from ...config.logging import get_logger
from ...exceptions import PriceLookupError
from .base import PriceLookup
from .models import PriceQuote

logger = get_logger(__name__)


class YFinancePriceLookup(PriceLookup):
    """Reads daily closes from Yahoo Finance, one ticker at a time."""

    source = "yfinance"

    def __init__(self, period: str = "5d"):
        self.logger = logger.bind(component="yfinance_price_lookup")
        self.period = period

    def get_latest_prices(self, tickers: Iterable[str]) -> Dict[str, PriceQuote]:
        quotes: Dict[str, PriceQuote] = {}

        for ticker in dict.fromkeys(tickers):
            try:
                history = yf.Ticker(ticker).history(period=self.period)
            except Exception as e:
                self.logger.error(
                    "Failed to fetch price history", ticker=ticker, error=str(e)
                )
                raise PriceLookupError(self.source, f"{ticker}: {e}") from e

            if history.empty or "Close" not in history:
                self.logger.debug("No price history", ticker=ticker)
                continue

            closes = history["Close"].dropna()
            if closes.empty:
                continue

            quotes[ticker] = PriceQuote(
                ticker=ticker,
                latest_close=Decimal(str(closes.iloc[-1])),
                previous_close=(
                    Decimal(str(closes.iloc[-2])) if len(closes) > 1 else None
                ),
            )

        return quotes
