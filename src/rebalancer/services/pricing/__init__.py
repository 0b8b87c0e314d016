"""Price lookup adapters."""

from typing import Optional

from ...config.settings import Settings, get_settings
from .base import PriceLookup
from .database import DatabasePriceLookup
from .models import PriceQuote
from .yahoo import YFinancePriceLookup


def get_price_lookup(settings: Optional[Settings] = None) -> PriceLookup:
    """Build the price lookup selected by the PRICE_SOURCE setting."""
    settings = settings or get_settings()

    if settings.price_source == "yfinance":
        return YFinancePriceLookup()
    return DatabasePriceLookup()


__all__ = [
    "DatabasePriceLookup",
    "PriceLookup",
    "PriceQuote",
    "YFinancePriceLookup",
    "get_price_lookup",
]
