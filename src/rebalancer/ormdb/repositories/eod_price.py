"""Repository for end-of-day price history."""

import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import desc, func, select

from ..models import EodPrice
from .base import BaseRepository


class EodPriceRepository(BaseRepository):
    """Repository for EOD bars."""

    def get_latest_bars(
        self, symbols: Iterable[str], depth: int = 2
    ) -> Dict[str, List[EodPrice]]:
        """
        Get the most recent bars for each symbol in one query.

        Args:
            symbols: Symbols to look up
            depth: Number of bars per symbol, newest first

        Returns:
            Mapping of symbol to its bars; symbols without data are omitted
        """
        symbols = list(dict.fromkeys(symbols))
        if not symbols:
            return {}

        row_number = (
            func.row_number()
            .over(partition_by=EodPrice.symbol, order_by=desc(EodPrice.date))
            .label("row_number")
        )
        ranked = (
            select(EodPrice.id.label("id"), row_number)
            .where(EodPrice.symbol.in_(symbols))
            .subquery()
        )

        rows = (
            self.session.query(EodPrice)
            .join(ranked, EodPrice.id == ranked.c.id)
            .filter(ranked.c.row_number <= depth)
            .order_by(EodPrice.symbol, desc(EodPrice.date))
            .all()
        )

        bars: Dict[str, List[EodPrice]] = {}
        for row in rows:
            bars.setdefault(row.symbol, []).append(row)
        return bars

    def upsert_bar(
        self,
        symbol: str,
        date: datetime.date,
        close: Optional[Decimal],
        **fields,
    ) -> EodPrice:
        """Insert a bar or overwrite the existing one for the same day."""
        bar = (
            self.session.query(EodPrice)
            .filter(EodPrice.symbol == symbol, EodPrice.date == date)
            .first()
        )
        if bar is None:
            bar = EodPrice(symbol=symbol, date=date)
            self.session.add(bar)

        bar.close = close
        for key, value in fields.items():
            setattr(bar, key, value)

        self.session.flush()
        return bar
