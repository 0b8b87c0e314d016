"""Price lookup backed by the EOD price table."""

from typing import Dict, Iterable, Optional

from sqlalchemy.orm import sessionmaker

from ...config.logging import get_logger
from ...ormdb.database import get_eod_session_factory, session_scope
from ...ormdb.repositories import EodPriceRepository
from .base import PriceLookup
from .models import PriceQuote

logger = get_logger(__name__)


class DatabasePriceLookup(PriceLookup):
    """Reads the two most recent EOD bars per ticker in a single query."""

    source = "database"

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.logger = logger.bind(component="database_price_lookup")
        self._session_factory = session_factory

    def get_latest_prices(self, tickers: Iterable[str]) -> Dict[str, PriceQuote]:
        tickers = list(dict.fromkeys(tickers))
        if not tickers:
            return {}

        quotes: Dict[str, PriceQuote] = {}
        factory = self._session_factory or get_eod_session_factory()
        with session_scope(factory) as session:
            bars = EodPriceRepository(session).get_latest_bars(tickers, depth=2)

            for symbol, symbol_bars in bars.items():
                latest = symbol_bars[0]
                if latest.close is None:
                    continue

                previous = symbol_bars[1] if len(symbol_bars) > 1 else None
                quotes[symbol] = PriceQuote(
                    ticker=symbol,
                    latest_close=latest.close,
                    previous_close=previous.close if previous is not None else None,
                )

        self.logger.debug(
            "Fetched latest prices",
            requested=len(tickers),
            found=len(quotes),
            missing=[t for t in tickers if t not in quotes],
        )
        return quotes
