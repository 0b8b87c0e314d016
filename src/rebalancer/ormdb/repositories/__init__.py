"""Repository classes for database operations using SQLAlchemy ORM."""

from .base import BaseRepository
from .eod_price import EodPriceRepository
from .portfolio import PortfolioRepository
from .signal import SignalRepository
from .snapshot import SnapshotRepository
from .trade import TradeRepository

__all__ = [
    "BaseRepository",
    "EodPriceRepository",
    "PortfolioRepository",
    "SignalRepository",
    "SnapshotRepository",
    "TradeRepository",
]
