"""Database module for SQLAlchemy ORM integration."""

from .database import (
    Base,
    check_database_health,
    create_tables,
    get_engine,
    get_eod_session_factory,
    get_session_factory,
    session_scope,
)
from .models import (
    EodPrice,
    Holding,
    Portfolio,
    PortfolioSnapshot,
    Signal,
    SignalStatus,
    SignalType,
    Trade,
    TradeType,
)
from .repositories import (
    EodPriceRepository,
    PortfolioRepository,
    SignalRepository,
    SnapshotRepository,
    TradeRepository,
)

__all__ = [
    # Database components
    "Base",
    "check_database_health",
    "create_tables",
    "get_engine",
    "get_eod_session_factory",
    "get_session_factory",
    "session_scope",
    # Models
    "EodPrice",
    "Holding",
    "Portfolio",
    "PortfolioSnapshot",
    "Signal",
    "SignalStatus",
    "SignalType",
    "Trade",
    "TradeType",
    # Repositories
    "EodPriceRepository",
    "PortfolioRepository",
    "SignalRepository",
    "SnapshotRepository",
    "TradeRepository",
]
