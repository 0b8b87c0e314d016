"""Read-only portfolio views: summary, trade log and valuation history."""

from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import sessionmaker

from ..config.logging import get_logger
from ..config.settings import get_settings
from ..ormdb.database import session_scope
from ..ormdb.repositories import (
    PortfolioRepository,
    SnapshotRepository,
    TradeRepository,
)

logger = get_logger(__name__)


@dataclass
class HoldingSummary:
    """Summary of an individual holding."""

    ticker: str
    name: str
    sector: str
    quantity: int
    purchase_price: Decimal
    cost_basis: Decimal
    purchase_date: datetime


@dataclass
class PortfolioSummary:
    """Portfolio aggregates together with its holdings."""

    name: str
    total_investment: Decimal
    current_value: Decimal
    unrealized_pl: Decimal
    realized_pl: Decimal
    total_trades: int
    winning_trades: int
    win_rate: float
    last_rebalanced: Optional[datetime]
    holdings: List[HoldingSummary]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TradeRecord:
    date: datetime
    type: str
    ticker: str
    quantity: int
    price: Decimal
    realized_pl: Optional[Decimal]


@dataclass
class SnapshotPoint:
    date: datetime
    value: Decimal


class PortfolioService:
    """Service for portfolio reporting."""

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.logger = logger.bind(service="portfolio_service")
        self.session_factory = session_factory

    def get_summary(self) -> PortfolioSummary:
        """
        Get the portfolio aggregates and holdings.

        The portfolio is created empty if no rebalance has run yet.
        """
        with session_scope(self.session_factory) as session:
            portfolio = PortfolioRepository(session).get_or_create_portfolio(
                get_settings().portfolio_name
            )

            holdings = [
                HoldingSummary(
                    ticker=h.ticker,
                    name=h.name,
                    sector=h.sector,
                    quantity=h.quantity,
                    purchase_price=h.purchase_price,
                    cost_basis=h.cost_basis,
                    purchase_date=h.purchase_date,
                )
                for h in portfolio.holdings
            ]

            win_rate = (
                portfolio.winning_trades / portfolio.total_trades
                if portfolio.total_trades
                else 0.0
            )

            summary = PortfolioSummary(
                name=portfolio.name,
                total_investment=portfolio.total_investment,
                current_value=portfolio.current_value,
                unrealized_pl=portfolio.current_value - portfolio.total_investment,
                realized_pl=portfolio.realized_pl,
                total_trades=portfolio.total_trades,
                winning_trades=portfolio.winning_trades,
                win_rate=win_rate,
                last_rebalanced=portfolio.last_rebalanced,
                holdings=holdings,
            )

        self.logger.debug("Portfolio summary built", holdings=len(holdings))
        return summary

    def get_trades(self, limit: int = 50) -> List[TradeRecord]:
        """Get the most recent trades, newest first."""
        with session_scope(self.session_factory) as session:
            return [
                TradeRecord(
                    date=t.date,
                    type=t.type,
                    ticker=t.ticker,
                    quantity=t.quantity,
                    price=t.price,
                    realized_pl=t.realized_pl,
                )
                for t in TradeRepository(session).get_recent_trades(limit)
            ]

    def get_snapshots(self, limit: int = 365) -> List[SnapshotPoint]:
        """Get the valuation history, oldest first."""
        with session_scope(self.session_factory) as session:
            return [
                SnapshotPoint(date=s.date, value=s.value)
                for s in SnapshotRepository(session).get_snapshots(limit)
            ]
