"""Tests for the ORM repositories."""

import datetime
import sys
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

sys.path.append("src")
from conftest import FIXED_NOW

from rebalancer.ormdb.database import check_database_health, session_scope
from rebalancer.ormdb.models import (
    PORTFOLIO_ID,
    EodPrice,
    Holding,
    Portfolio,
    Signal,
    SignalStatus,
    SignalType,
)
from rebalancer.ormdb.repositories import (
    EodPriceRepository,
    PortfolioRepository,
    SignalRepository,
    SnapshotRepository,
    TradeRepository,
)


class TestPortfolioRepository:
    def test_get_or_create_is_a_singleton(self, db_session):
        repo = PortfolioRepository(db_session)

        first = repo.get_or_create_portfolio("Model Portfolio")
        second = repo.get_or_create_portfolio("Other Name")
        db_session.commit()

        assert first is second
        assert first.id == PORTFOLIO_ID
        assert first.name == "Model Portfolio"
        assert db_session.query(Portfolio).count() == 1

    def test_get_portfolio_before_creation(self, db_session):
        assert PortfolioRepository(db_session).get_portfolio() is None

    def test_add_and_remove_holding(self, db_session):
        repo = PortfolioRepository(db_session)
        portfolio = repo.get_or_create_portfolio()

        holding = repo.add_holding(portfolio, "AAPL", 5, Decimal("150"), FIXED_NOW)
        assert holding.name == "AAPL"
        assert holding.cost_basis == Decimal("750")
        assert repo.get_holdings() == [holding]

        repo.remove_holding(portfolio, holding)
        db_session.commit()

        assert repo.get_holding("AAPL") is None
        assert db_session.query(Holding).count() == 0

    def test_ticker_is_unique(self, db_session):
        repo = PortfolioRepository(db_session)
        portfolio = repo.get_or_create_portfolio()
        repo.add_holding(portfolio, "AAPL", 5, Decimal("150"), FIXED_NOW)

        with pytest.raises(IntegrityError):
            repo.add_holding(portfolio, "AAPL", 1, Decimal("151"), FIXED_NOW)

        db_session.rollback()


class TestTradeRepository:
    def test_trades_for_ticker_in_order(self, db_session):
        trades = TradeRepository(db_session)
        trades.record_buy("AAPL", 5, Decimal("150"), FIXED_NOW)
        trades.record_buy("MSFT", 2, Decimal("300"), FIXED_NOW)
        trades.record_sell(
            "AAPL",
            5,
            Decimal("140"),
            Decimal("-50"),
            FIXED_NOW + datetime.timedelta(hours=1),
        )

        history = trades.get_trades_for_ticker("AAPL")

        assert [t.type for t in history] == ["BUY", "SELL"]
        assert history[1].realized_pl == Decimal("-50")


class TestSignalRepository:
    def test_pending_and_mark_processed(self, db_session):
        signals = SignalRepository(db_session)
        buy = signals.add_signal(SignalType.BUY, ["AAPL"])
        sell = signals.add_signal(SignalType.SELL, ["MSFT"])

        assert [s.id for s in signals.get_pending_signals()] == [buy.id, sell.id]

        updated = signals.mark_processed([buy.id], FIXED_NOW)

        assert updated == 1
        assert buy.status == SignalStatus.PROCESSED.value
        assert [s.id for s in signals.get_pending_signals()] == [sell.id]

    def test_mark_processed_with_no_ids(self, db_session):
        assert SignalRepository(db_session).mark_processed([], FIXED_NOW) == 0

    def test_accepts_string_type(self, db_session):
        signal = SignalRepository(db_session).add_signal("SELL", ["TSLA"])
        assert signal.type == "SELL"


class TestSnapshotRepository:
    def test_latest_snapshots_in_chronological_order(self, db_session):
        snapshots = SnapshotRepository(db_session)
        for n in range(4):
            snapshots.add_snapshot(FIXED_NOW + datetime.timedelta(days=n), Decimal(n))

        assert [s.value for s in snapshots.get_snapshots(limit=2)] == [
            Decimal("2"),
            Decimal("3"),
        ]
        assert snapshots.count() == 4


class TestEodPriceRepository:
    def test_upsert_overwrites_same_day(self, db_session):
        repo = EodPriceRepository(db_session)
        day = datetime.date(2024, 3, 1)

        repo.upsert_bar("AAPL", day, Decimal("10"), volume=100)
        repo.upsert_bar("AAPL", day, Decimal("11"), high=Decimal("12"))

        [bar] = db_session.query(EodPrice).all()
        assert bar.close == Decimal("11")
        assert bar.high == Decimal("12")
        assert bar.volume == 100

    def test_latest_bars_depth(self, db_session):
        repo = EodPriceRepository(db_session)
        for n in range(5):
            repo.upsert_bar(
                "AAPL", datetime.date(2024, 3, 1 + n), Decimal(str(100 + n))
            )

        bars = repo.get_latest_bars(["AAPL"], depth=3)

        assert [b.close for b in bars["AAPL"]] == [
            Decimal("104"),
            Decimal("103"),
            Decimal("102"),
        ]
        assert repo.get_latest_bars([]) == {}


class TestSessionScope:
    def test_commits_on_success(self, session_factory):
        with session_scope(session_factory) as session:
            SignalRepository(session).add_signal(SignalType.BUY, ["AAPL"])

        with session_scope(session_factory) as session:
            assert session.query(Signal).count() == 1

    def test_rolls_back_on_error(self, session_factory):
        with pytest.raises(RuntimeError):
            with session_scope(session_factory) as session:
                SignalRepository(session).add_signal(SignalType.BUY, ["AAPL"])
                raise RuntimeError("abort")

        with session_scope(session_factory) as session:
            assert session.query(Signal).count() == 0

    def test_repository_owns_session_when_none_given(self, isolated_db):
        with SignalRepository() as signals:
            signals.add_signal(SignalType.SELL, ["TSLA"])

        with session_scope() as session:
            assert session.query(Signal).count() == 1

    def test_database_health(self, isolated_db):
        health = check_database_health()

        assert health["status"] == "healthy"
        assert health["connectivity"] is True
