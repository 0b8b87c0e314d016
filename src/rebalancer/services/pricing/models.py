"""Price data models."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

# Matches the scale of the price columns
PRICE_QUANTUM = Decimal("0.0001")


def to_price(value) -> Decimal:
    """Round a raw close to the precision prices are stored with."""
    return Decimal(str(value)).quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceQuote:
    """Latest and previous daily close of a ticker."""

    ticker: str
    latest_close: Decimal
    previous_close: Optional[Decimal] = None

    def __post_init__(self):
        object.__setattr__(self, "latest_close", to_price(self.latest_close))
        if self.previous_close is not None:
            object.__setattr__(self, "previous_close", to_price(self.previous_close))

    @property
    def day_change_pct(self) -> Decimal:
        """Percent change from the previous close, 0 when there is none."""
        if not self.previous_close:
            return Decimal("0")
        return (self.latest_close - self.previous_close) / self.previous_close * 100
