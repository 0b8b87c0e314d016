"""Repository for the trade log."""

import datetime
from decimal import Decimal
from typing import List

from sqlalchemy import desc

from ..models import Trade, TradeType
from .base import BaseRepository


class TradeRepository(BaseRepository):
    """Append-only access to executed trades."""

    def record_buy(
        self,
        ticker: str,
        quantity: int,
        price: Decimal,
        date: datetime.datetime,
    ) -> Trade:
        """Append a BUY trade."""
        return self._append(TradeType.BUY, ticker, quantity, price, date, None)

    def record_sell(
        self,
        ticker: str,
        quantity: int,
        price: Decimal,
        realized_pl: Decimal,
        date: datetime.datetime,
    ) -> Trade:
        """Append a SELL trade with the profit or loss it booked."""
        return self._append(TradeType.SELL, ticker, quantity, price, date, realized_pl)

    def _append(self, trade_type, ticker, quantity, price, date, realized_pl) -> Trade:
        trade = Trade(
            date=date,
            type=trade_type.value,
            ticker=ticker,
            quantity=quantity,
            price=price,
            realized_pl=realized_pl,
        )
        self.session.add(trade)
        self.session.flush()
        return trade

    def get_recent_trades(self, limit: int = 50) -> List[Trade]:
        """Get the most recent trades, newest first."""
        return (
            self.session.query(Trade)
            .order_by(desc(Trade.date), desc(Trade.id))
            .limit(limit)
            .all()
        )

    def get_trades_for_ticker(self, ticker: str) -> List[Trade]:
        return (
            self.session.query(Trade)
            .filter(Trade.ticker == ticker)
            .order_by(Trade.date, Trade.id)
            .all()
        )
