"""Repository for the signal queue."""

import datetime
from typing import Any, List, Sequence

from ..models import Signal, SignalStatus, SignalType
from .base import BaseRepository


class SignalRepository(BaseRepository):
    """Repository for pending and processed signals."""

    def add_signal(self, signal_type: SignalType, tickers: Any) -> Signal:
        """Queue a new signal in PENDING status."""
        signal = Signal(
            type=SignalType(signal_type).value,
            tickers=tickers,
            status=SignalStatus.PENDING.value,
        )
        self.session.add(signal)
        self.session.flush()
        return signal

    def get_pending_signals(self) -> List[Signal]:
        """Get all pending signals in the order they were created."""
        return (
            self.session.query(Signal)
            .filter(Signal.status == SignalStatus.PENDING.value)
            .order_by(Signal.created_at, Signal.id)
            .all()
        )

    def mark_processed(
        self, signal_ids: Sequence[int], processed_at: datetime.datetime
    ) -> int:
        """Mark the given signals PROCESSED and return how many were updated."""
        if not signal_ids:
            return 0

        updated = (
            self.session.query(Signal)
            .filter(Signal.id.in_(list(signal_ids)))
            .update(
                {
                    Signal.status: SignalStatus.PROCESSED.value,
                    Signal.processed_at: processed_at,
                    Signal.updated_at: processed_at,
                },
                synchronize_session="fetch",
            )
        )
        self.session.flush()
        return updated
