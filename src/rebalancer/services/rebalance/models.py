"""Data models for rebalance runs."""

from dataclasses import asdict, dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from ...ormdb.models import Holding


class SellReason(str, Enum):
    """Why a holding was marked for sale."""

    STOP_LOSS = "STOP-LOSS"
    SIGNAL = "SIGNAL"


@dataclass
class SellOrder:
    """A holding marked for full liquidation at the given price."""

    holding: Holding
    price: Decimal
    reason: SellReason
    stop_loss_price: Optional[Decimal] = None


@dataclass
class TickerError:
    """Per-ticker problem that did not abort the run."""

    ticker: str
    message: str


@dataclass
class RebalanceReport:
    """What a rebalance run sold, bought and could not do."""

    sold_by_stop_loss: List[str] = field(default_factory=list)
    sold_by_signal: List[str] = field(default_factory=list)
    bought: List[str] = field(default_factory=list)
    errors: List[TickerError] = field(default_factory=list)

    def record_sale(self, ticker: str, reason: SellReason) -> None:
        if reason == SellReason.STOP_LOSS:
            self.sold_by_stop_loss.append(ticker)
        else:
            self.sold_by_signal.append(ticker)

    def add_error(self, ticker: str, message: str) -> None:
        self.errors.append(TickerError(ticker=ticker, message=message))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SignalBatch:
    """Tickers flattened from pending signals, in signal order, duplicates kept."""

    buy_tickers: List[str] = field(default_factory=list)
    sell_tickers: List[str] = field(default_factory=list)
    signal_ids: List[int] = field(default_factory=list)


@dataclass
class RebalanceOutcome:
    """Result handed back to the trigger caller."""

    message: str
    report: Optional[RebalanceReport] = None
    signal_ids: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"message": self.message}
        if self.report is not None:
            data["report"] = self.report.to_dict()
        data["processed_signals"] = len(self.signal_ids)
        return data
