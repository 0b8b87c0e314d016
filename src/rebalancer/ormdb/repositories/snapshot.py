"""Repository for portfolio valuation snapshots."""

import datetime
from decimal import Decimal
from typing import List

from sqlalchemy import desc

from ..models import PortfolioSnapshot
from .base import BaseRepository


class SnapshotRepository(BaseRepository):
    """Repository for the valuation history."""

    def add_snapshot(self, date: datetime.datetime, value: Decimal) -> PortfolioSnapshot:
        snapshot = PortfolioSnapshot(date=date, value=value)
        self.session.add(snapshot)
        self.session.flush()
        return snapshot

    def get_snapshots(self, limit: int = 365) -> List[PortfolioSnapshot]:
        """Get the latest snapshots in chronological order."""
        latest = (
            self.session.query(PortfolioSnapshot)
            .order_by(desc(PortfolioSnapshot.date), desc(PortfolioSnapshot.id))
            .limit(limit)
            .all()
        )
        return list(reversed(latest))

    def count(self) -> int:
        return self.session.query(PortfolioSnapshot).count()
