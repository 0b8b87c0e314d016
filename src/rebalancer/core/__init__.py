"""Core portfolio rules."""

from .stop_loss import (
    STOP_LOSS_TIERS,
    StopLossTier,
    dynamic_stop_loss_price,
    is_stop_loss_triggered,
    lock_in_target,
    profit_percent,
)

__all__ = [
    "STOP_LOSS_TIERS",
    "StopLossTier",
    "dynamic_stop_loss_price",
    "is_stop_loss_triggered",
    "lock_in_target",
    "profit_percent",
]
