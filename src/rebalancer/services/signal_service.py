"""Signal queue operations."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional, Sequence

from sqlalchemy.orm import sessionmaker

from ..config.logging import get_logger
from ..exceptions import ValidationException
from ..ormdb.database import session_scope
from ..ormdb.models import SignalType
from ..ormdb.repositories import SignalRepository

logger = get_logger(__name__)


@dataclass
class SignalInfo:
    id: int
    type: str
    tickers: Any
    status: str
    created_at: datetime
    processed_at: Optional[datetime]


def normalize_tickers(tickers: Sequence[str]) -> List[str]:
    """Strip and upper-case tickers, dropping blanks. Order and duplicates are kept."""
    return [t.strip().upper() for t in tickers if t and t.strip()]


class SignalService:
    """Service for queueing and inspecting signals."""

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.logger = logger.bind(service="signal_service")
        self.session_factory = session_factory

    def submit_signal(self, signal_type: str, tickers: Sequence[str]) -> SignalInfo:
        """
        Queue a BUY or SELL signal for the next rebalance.

        Raises:
            ValidationException: If the type is unknown or no ticker remains
        """
        try:
            parsed_type = SignalType(signal_type.upper())
        except ValueError:
            raise ValidationException(
                "Invalid signal type",
                field_errors={"type": "must be BUY or SELL"},
            )

        cleaned = normalize_tickers(tickers)
        if not cleaned:
            raise ValidationException(
                "Signal needs at least one ticker",
                field_errors={"tickers": "must contain at least one ticker"},
            )

        with session_scope(self.session_factory) as session:
            signal = SignalRepository(session).add_signal(parsed_type, cleaned)
            info = self._to_info(signal)

        self.logger.info(
            "Signal queued", signal_id=info.id, type=info.type, tickers=cleaned
        )
        return info

    def get_pending_signals(self) -> List[SignalInfo]:
        with session_scope(self.session_factory) as session:
            return [
                self._to_info(s) for s in SignalRepository(session).get_pending_signals()
            ]

    @staticmethod
    def _to_info(signal) -> SignalInfo:
        return SignalInfo(
            id=signal.id,
            type=signal.type,
            tickers=signal.tickers,
            status=signal.status,
            created_at=signal.created_at,
            processed_at=signal.processed_at,
        )
