"""Tests for the rebalance decision engine."""

import sys
from decimal import Decimal

import pytest

sys.path.append("src")
from conftest import FIXED_NOW, FakePriceLookup

from rebalancer.ormdb.database import session_scope
from rebalancer.ormdb.models import Holding, PortfolioSnapshot, Trade, TradeType
from rebalancer.ormdb.repositories import PortfolioRepository
from rebalancer.services.rebalance import (
    MISSING_BUY_PRICE,
    RebalanceEngine,
    TickerError,
)


@pytest.fixture
def engine(price_lookup, fixed_clock):
    return RebalanceEngine(
        price_lookup=price_lookup,
        buy_budget=Decimal("100000"),
        portfolio_name="Test Portfolio",
        clock=fixed_clock,
    )


@pytest.fixture
def portfolios(db_session):
    return PortfolioRepository(db_session)


def seed_holding(db_session, ticker, quantity, purchase_price):
    """Put a holding into the portfolio the way a previous buy would have."""
    repo = PortfolioRepository(db_session)
    portfolio = repo.get_or_create_portfolio("Test Portfolio")
    purchase_price = Decimal(str(purchase_price))
    repo.add_holding(portfolio, ticker, quantity, purchase_price, FIXED_NOW)
    portfolio.total_investment += quantity * purchase_price
    db_session.commit()
    return portfolio


def trades_of(db_session, trade_type=None):
    query = db_session.query(Trade)
    if trade_type is not None:
        query = query.filter(Trade.type == trade_type.value)
    return query.order_by(Trade.id).all()


class TestSignalSell:
    def test_sell_signal_books_profit(self, engine, db_session, price_lookup):
        portfolio = seed_holding(db_session, "X", 100, 100)
        price_lookup.set_price("X", 105)

        report = engine.execute_rebalance(db_session, [], ["X"])

        assert report.sold_by_signal == ["X"]
        assert report.sold_by_stop_loss == []
        assert portfolio.realized_pl == Decimal("500")
        assert portfolio.total_trades == 1
        assert portfolio.winning_trades == 1
        assert portfolio.total_investment == Decimal("0")
        assert portfolio.holdings == []

        [sell] = trades_of(db_session, TradeType.SELL)
        assert sell.ticker == "X"
        assert sell.quantity == 100
        assert sell.price == Decimal("105")
        assert sell.realized_pl == Decimal("500")

    def test_sell_signal_for_unheld_ticker_is_ignored(
        self, engine, db_session, price_lookup
    ):
        price_lookup.set_price("NOPE", 50)

        report = engine.execute_rebalance(db_session, [], ["NOPE"])

        assert report.sold_by_signal == []
        assert trades_of(db_session) == []

    def test_sell_signal_without_price_leaves_holding(
        self, engine, db_session, portfolios
    ):
        seed_holding(db_session, "X", 10, 100)

        report = engine.execute_rebalance(db_session, [], ["X"])

        assert report.sold_by_signal == []
        assert portfolios.get_holding("X") is not None

    def test_losing_sale_is_not_a_win(self, engine, db_session, price_lookup):
        portfolio = seed_holding(db_session, "X", 10, 100)
        # 100 is breakeven, so the stop does not fire and the signal sells it
        price_lookup.set_price("X", 100)

        engine.execute_rebalance(db_session, [], ["X"])

        assert portfolio.total_trades == 1
        assert portfolio.winning_trades == 0
        assert portfolio.realized_pl == Decimal("0")


class TestStopLoss:
    def test_price_below_stop_sells_holding(
        self, engine, db_session, price_lookup, portfolios
    ):
        portfolio = seed_holding(db_session, "X", 100, 100)
        price_lookup.set_price("X", 90)

        report = engine.execute_rebalance(db_session, [], [])

        assert report.sold_by_stop_loss == ["X"]
        assert portfolio.realized_pl == Decimal("-1000")
        assert portfolio.total_trades == 1
        assert portfolio.winning_trades == 0
        assert portfolios.get_holding("X") is None

    def test_stop_loss_wins_over_sell_signal(self, engine, db_session, price_lookup):
        seed_holding(db_session, "X", 100, 100)
        price_lookup.set_price("X", 90)

        report = engine.execute_rebalance(db_session, [], ["X", "X"])

        assert report.sold_by_stop_loss == ["X"]
        assert report.sold_by_signal == []
        assert len(trades_of(db_session, TradeType.SELL)) == 1

    def test_profitable_holding_is_kept(self, engine, db_session, price_lookup):
        portfolio = seed_holding(db_session, "X", 100, 100)
        price_lookup.set_price("X", 114)

        report = engine.execute_rebalance(db_session, [], [])

        assert report.sold_by_stop_loss == []
        assert len(portfolio.holdings) == 1

    def test_holding_without_price_is_not_force_sold(
        self, engine, db_session, portfolios
    ):
        seed_holding(db_session, "X", 100, 100)

        report = engine.execute_rebalance(db_session, [], [])

        assert report.sold_by_stop_loss == []
        assert portfolios.get_holding("X") is not None


class TestBuy:
    def test_buy_spends_fixed_budget(self, engine, db_session, price_lookup):
        price_lookup.set_price("Y", 500)

        report = engine.execute_rebalance(db_session, ["Y"], [])

        assert report.bought == ["Y"]
        portfolio = PortfolioRepository(db_session).get_portfolio()
        [holding] = portfolio.holdings
        assert holding.ticker == "Y"
        assert holding.quantity == 200
        assert holding.purchase_price == Decimal("500")
        assert holding.purchase_date == FIXED_NOW
        assert portfolio.total_investment == Decimal("100000")

        [buy] = trades_of(db_session, TradeType.BUY)
        assert (buy.ticker, buy.quantity, buy.price) == ("Y", 200, Decimal("500"))
        assert buy.realized_pl is None

    def test_missing_price_is_reported(self, engine, db_session):
        report = engine.execute_rebalance(db_session, ["Z"], [])

        assert report.errors == [TickerError(ticker="Z", message=MISSING_BUY_PRICE)]
        assert report.bought == []
        assert db_session.query(Holding).count() == 0
        assert trades_of(db_session) == []

    def test_price_above_budget_is_skipped_silently(
        self, engine, db_session, price_lookup
    ):
        price_lookup.set_price("BRK", 250000)

        report = engine.execute_rebalance(db_session, ["BRK"], [])

        assert report.bought == []
        assert report.errors == []
        assert db_session.query(Holding).count() == 0

    def test_held_ticker_is_not_bought_again(self, engine, db_session, price_lookup):
        portfolio = seed_holding(db_session, "X", 100, 100)
        price_lookup.set_price("X", 110)

        report = engine.execute_rebalance(db_session, ["X"], [])

        assert report.bought == []
        assert trades_of(db_session) == []
        assert portfolio.total_investment == Decimal("10000")

    def test_duplicate_buy_tickers_buy_once(self, engine, db_session, price_lookup):
        price_lookup.set_price("Y", 500)

        report = engine.execute_rebalance(db_session, ["Y", "Y"], [])

        assert report.bought == ["Y"]
        assert db_session.query(Holding).count() == 1
        assert len(trades_of(db_session, TradeType.BUY)) == 1

    def test_ticker_sold_this_run_can_be_bought_back(
        self, engine, db_session, price_lookup, portfolios
    ):
        portfolio = seed_holding(db_session, "X", 100, 100)
        price_lookup.set_price("X", 90)

        report = engine.execute_rebalance(db_session, ["X"], [])

        assert report.sold_by_stop_loss == ["X"]
        assert report.bought == ["X"]
        holding = portfolios.get_holding("X")
        assert holding.quantity == 1111
        assert holding.purchase_price == Decimal("90")
        assert portfolio.total_investment == Decimal("99990")
        assert [t.type for t in trades_of(db_session)] == ["SELL", "BUY"]

    def test_buys_follow_signal_order(self, engine, db_session, price_lookup):
        for ticker in ("B", "A", "C"):
            price_lookup.set_price(ticker, 1000)

        report = engine.execute_rebalance(db_session, ["B", "A", "C"], [])

        assert report.bought == ["B", "A", "C"]


class TestRevaluation:
    def test_noop_run_only_touches_value_and_snapshot(
        self, engine, db_session, price_lookup
    ):
        portfolio = seed_holding(db_session, "X", 100, 100)
        price_lookup.set_price("X", 110)

        report = engine.execute_rebalance(db_session, [], [])

        assert report.to_dict() == {
            "sold_by_stop_loss": [],
            "sold_by_signal": [],
            "bought": [],
            "errors": [],
        }
        assert portfolio.total_investment == Decimal("10000")
        assert portfolio.realized_pl == Decimal("0")
        assert portfolio.total_trades == 0
        assert portfolio.winning_trades == 0
        assert len(portfolio.holdings) == 1
        assert portfolio.current_value == Decimal("11000")
        assert portfolio.last_rebalanced == FIXED_NOW
        assert trades_of(db_session) == []

        [snapshot] = db_session.query(PortfolioSnapshot).all()
        assert snapshot.value == Decimal("11000")

    def test_missing_price_falls_back_to_purchase_price(
        self, engine, db_session, price_lookup
    ):
        portfolio = seed_holding(db_session, "X", 100, 100)
        seed_holding(db_session, "W", 10, 50)
        price_lookup.set_price("W", 60)

        engine.execute_rebalance(db_session, [], [])

        assert portfolio.current_value == Decimal("10600")

    def test_revaluation_uses_a_second_lookup(self, engine, db_session, price_lookup):
        seed_holding(db_session, "X", 100, 100)
        price_lookup.set_price("X", 110)
        price_lookup.set_price("Y", 500)

        engine.execute_rebalance(db_session, ["Y", "Y"], ["X"])

        assert len(price_lookup.calls) == 2
        # First lookup is the deduplicated union: holdings, buys, sells
        assert price_lookup.calls[0] == ["X", "Y"]
        assert price_lookup.calls[1] == ["Y"]

    def test_empty_portfolio_is_created(self, engine, db_session):
        report = engine.execute_rebalance(db_session, [], [])

        portfolio = PortfolioRepository(db_session).get_portfolio()
        assert portfolio is not None
        assert portfolio.name == "Test Portfolio"
        assert portfolio.current_value == Decimal("0")
        assert report.bought == []
        assert db_session.query(PortfolioSnapshot).count() == 1

    def test_investment_matches_holdings_after_mixed_run(
        self, engine, db_session, price_lookup
    ):
        portfolio = seed_holding(db_session, "X", 100, 100)
        seed_holding(db_session, "S", 40, 25)
        price_lookup.set_price("X", 95)
        price_lookup.set_price("S", 30)
        price_lookup.set_price("Y", 400)

        engine.execute_rebalance(db_session, ["Y", "Z"], ["S"])

        cost = sum(h.quantity * h.purchase_price for h in portfolio.holdings)
        assert portfolio.total_investment == cost
        assert {h.ticker for h in portfolio.holdings} == {"Y"}
        assert portfolio.total_trades == 2
        assert portfolio.winning_trades == 1
        assert portfolio.realized_pl == Decimal("-500") + Decimal("200")


class TestPricePrecision:
    def test_unrounded_close_keeps_investment_consistent(
        self, engine, session_factory, price_lookup
    ):
        price_lookup.set_price("Y", "187.44000244140625")
        with session_scope(session_factory) as session:
            engine.execute_rebalance(session, ["Y"], [])

        price_lookup.set_price("Y", "190.12345678")
        with session_scope(session_factory) as session:
            report = engine.execute_rebalance(session, [], ["Y"])
            portfolio = PortfolioRepository(session).get_portfolio()

            assert report.sold_by_signal == ["Y"]
            assert portfolio.holdings == []
            assert portfolio.total_investment == Decimal("0")
            assert portfolio.realized_pl == 533 * (
                Decimal("190.1235") - Decimal("187.4400")
            )

            buy, sell = trades_of(session)
            assert buy.price == Decimal("187.4400")
            assert sell.price == Decimal("190.1235")
            assert sell.realized_pl == portfolio.realized_pl


class TestEngineDefaults:
    def test_default_budget(self):
        engine = RebalanceEngine(price_lookup=FakePriceLookup())
        assert engine.buy_budget == Decimal("100000")
