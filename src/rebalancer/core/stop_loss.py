"""Dynamic, profit-tiered stop-loss rule."""

from decimal import Decimal
from typing import NamedTuple, Union

Number = Union[Decimal, int, str]


class StopLossTier(NamedTuple):
    """Profit threshold (percent) and the share of purchase price it locks in."""

    profit_threshold: Decimal
    lock_in_target: Decimal


# Sorted by descending threshold; the first tier reached wins.
STOP_LOSS_TIERS = (
    StopLossTier(Decimal("25"), Decimal("0.25")),
    StopLossTier(Decimal("20"), Decimal("0.20")),
    StopLossTier(Decimal("15"), Decimal("0.12")),
    StopLossTier(Decimal("10"), Decimal("0.08")),
    StopLossTier(Decimal("5"), Decimal("0.05")),
)

# From this profit on the stop trails the price 10 points below current profit.
TRAILING_THRESHOLD = Decimal("30")
TRAILING_GAP = Decimal("10")


def profit_percent(purchase_price: Number, current_price: Number) -> Decimal:
    """Return the unrealized profit of a position in percent of its purchase price."""
    purchase_price = Decimal(purchase_price)
    if purchase_price <= 0:
        raise ValueError("Purchase price must be greater than zero")

    return (Decimal(current_price) - purchase_price) / purchase_price * 100


def lock_in_target(profit: Decimal) -> Decimal:
    """Return the fraction of the purchase price protected at the given profit."""
    if profit >= TRAILING_THRESHOLD:
        return (profit - TRAILING_GAP) / 100

    for tier in STOP_LOSS_TIERS:
        if profit >= tier.profit_threshold:
            return tier.lock_in_target

    # Below the first tier the stop sits at breakeven
    return Decimal("0")


def dynamic_stop_loss_price(purchase_price: Number, current_price: Number) -> Decimal:
    """
    Calculate the dynamic stop-loss price of a position.

    Args:
        purchase_price: Price paid per share, must be positive
        current_price: Latest market price per share

    Returns:
        Price below which the position should be sold. Never below the
        purchase price.

    Raises:
        ValueError: If purchase_price is not positive
    """
    purchase_price = Decimal(purchase_price)
    profit = profit_percent(purchase_price, current_price)
    return purchase_price * (1 + lock_in_target(profit))


def is_stop_loss_triggered(purchase_price: Number, current_price: Number) -> bool:
    """Check whether the current price has fallen below the dynamic stop."""
    return Decimal(current_price) < dynamic_stop_loss_price(purchase_price, current_price)
