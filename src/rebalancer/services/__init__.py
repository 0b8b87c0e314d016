"""Service layer for business logic encapsulation."""

from .portfolio_service import PortfolioService
from .rebalance import RebalanceService
from .signal_service import SignalService

__all__ = [
    "PortfolioService",
    "RebalanceService",
    "SignalService",
]
