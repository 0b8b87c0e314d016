"""Portfolio rebalancing service module."""

from .engine import MISSING_BUY_PRICE, RebalanceEngine
from .models import (
    RebalanceOutcome,
    RebalanceReport,
    SellOrder,
    SellReason,
    SignalBatch,
    TickerError,
)
from .service import (
    NO_PENDING_SIGNALS,
    REBALANCE_SUCCEEDED,
    RebalanceService,
    collect_signal_tickers,
    run_scheduled_rebalance,
)

__all__ = [
    "MISSING_BUY_PRICE",
    "NO_PENDING_SIGNALS",
    "REBALANCE_SUCCEEDED",
    "RebalanceEngine",
    "RebalanceOutcome",
    "RebalanceReport",
    "RebalanceService",
    "SellOrder",
    "SellReason",
    "SignalBatch",
    "TickerError",
    "collect_signal_tickers",
    "run_scheduled_rebalance",
]
