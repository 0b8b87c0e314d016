"""API routers for the rebalancer."""

from .cron import router as cron_router
from .health import router as health_router
from .portfolio import router as portfolio_router
from .signals import router as signals_router

__all__ = ["cron_router", "health_router", "portfolio_router", "signals_router"]
