"""Rebalance service: consumes pending signals and runs the engine in one transaction."""

import datetime
import threading
import time
from typing import Callable, Iterable, Optional

from sqlalchemy.orm import sessionmaker

from ...config.logging import get_logger, log_audit_event, log_performance
from ...config.settings import Settings, get_settings
from ...exceptions import RebalanceFailedError, RebalanceInProgressError
from ...ormdb.database import session_scope
from ...ormdb.models import Signal, SignalType, utcnow
from ...ormdb.repositories import SignalRepository
from ..pricing import DatabasePriceLookup, PriceLookup, get_price_lookup
from .engine import RebalanceEngine
from .models import RebalanceOutcome, SignalBatch

logger = get_logger(__name__)

NO_PENDING_SIGNALS = "No pending signals to process."
REBALANCE_SUCCEEDED = "Cron job executed successfully."

# Guards against interleaved runs within this process
rebalance_lock = threading.Lock()


def _is_ticker_list(tickers) -> bool:
    return isinstance(tickers, list) and all(
        isinstance(t, str) and t.strip() for t in tickers
    )


def collect_signal_tickers(signals: Iterable[Signal]) -> SignalBatch:
    """
    Flatten pending signals into BUY and SELL ticker lists.

    Tickers are concatenated in signal order without deduplication. A signal
    whose tickers are not a list of non-empty strings contributes nothing but
    is still consumed.
    """
    batch = SignalBatch()

    for signal in signals:
        if _is_ticker_list(signal.tickers):
            if signal.type == SignalType.BUY.value:
                batch.buy_tickers.extend(signal.tickers)
            elif signal.type == SignalType.SELL.value:
                batch.sell_tickers.extend(signal.tickers)
            else:
                logger.warning(
                    "Found signal with unknown type",
                    signal_id=signal.id,
                    signal_type=signal.type,
                )
        else:
            logger.warning(
                "Found signal with malformed tickers",
                signal_id=signal.id,
                tickers=repr(signal.tickers),
            )

        batch.signal_ids.append(signal.id)

    return batch


class RebalanceService:
    """Runs rebalances triggered by the API, the scheduler or the CLI."""

    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        price_lookup: Optional[PriceLookup] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime.datetime]] = None,
    ):
        self.logger = logger.bind(service="rebalance_service")
        self.settings = settings or get_settings()
        self.session_factory = session_factory
        self.clock = clock or utcnow
        if price_lookup is None:
            price_lookup = self._default_price_lookup()
        self.engine = RebalanceEngine(
            price_lookup=price_lookup,
            buy_budget=self.settings.buy_budget,
            portfolio_name=self.settings.portfolio_name,
            clock=self.clock,
        )

    def _default_price_lookup(self) -> PriceLookup:
        # EOD bars live in the application database unless configured apart
        if (
            self.session_factory is not None
            and self.settings.price_source == "database"
            and not self.settings.has_separate_eod_database()
        ):
            return DatabasePriceLookup(self.session_factory)
        return get_price_lookup(self.settings)

    def trigger_rebalance(self, actor: str = "api") -> RebalanceOutcome:
        """
        Consume all pending signals and rebalance the portfolio.

        Args:
            actor: Who triggered the run, for the audit log

        Returns:
            RebalanceOutcome with the report, or only a message when there was
            nothing to do

        Raises:
            RebalanceInProgressError: If another run holds the lock
            RebalanceFailedError: If the run failed; nothing was committed
        """
        if not rebalance_lock.acquire(blocking=False):
            self.logger.warning("Rebalance already in progress", actor=actor)
            raise RebalanceInProgressError()

        log_audit_event("rebalance_triggered", actor=actor)
        started = time.perf_counter()

        try:
            outcome = self._run()
        except Exception as e:
            self.logger.error("Rebalance failed", error=str(e), exc_info=True)
            raise RebalanceFailedError(str(e)) from e
        finally:
            rebalance_lock.release()

        log_performance(
            "rebalance",
            (time.perf_counter() - started) * 1000,
            actor=actor,
            processed_signals=len(outcome.signal_ids),
        )
        return outcome

    def _run(self) -> RebalanceOutcome:
        with session_scope(self.session_factory) as session:
            signals = SignalRepository(session)
            pending = signals.get_pending_signals()

            if not pending and not self.settings.rebalance_without_signals:
                self.logger.info("No pending signals to process")
                return RebalanceOutcome(message=NO_PENDING_SIGNALS)

            self.logger.info("Found pending signals", count=len(pending))
            batch = collect_signal_tickers(pending)
            self.logger.info(
                "Signals to process",
                buy_tickers=batch.buy_tickers,
                sell_tickers=batch.sell_tickers,
            )

            report = self.engine.execute_rebalance(
                session, batch.buy_tickers, batch.sell_tickers
            )

            updated = signals.mark_processed(batch.signal_ids, self.clock())
            self.logger.info("Signals marked processed", count=updated)

        return RebalanceOutcome(
            message=REBALANCE_SUCCEEDED, report=report, signal_ids=batch.signal_ids
        )


def run_scheduled_rebalance() -> None:
    """Scheduler entry point."""
    try:
        outcome = RebalanceService().trigger_rebalance(actor="scheduler")
    except RebalanceInProgressError:
        logger.warning("Scheduled rebalance skipped, another run is in progress")
        return

    logger.info("Scheduled rebalance finished", **outcome.to_dict())
