"""Rebalance decision engine: stop-loss sells, signal sells, signal buys, revaluation."""

import datetime
from decimal import Decimal
from typing import Callable, Dict, Mapping, Optional, Sequence

from sqlalchemy.orm import Session

from ...config.logging import get_logger
from ...core.stop_loss import dynamic_stop_loss_price
from ...ormdb.models import Holding, Portfolio, utcnow
from ...ormdb.repositories import (
    PortfolioRepository,
    SnapshotRepository,
    TradeRepository,
)
from ..pricing import PriceLookup, PriceQuote
from .models import RebalanceReport, SellOrder, SellReason

logger = get_logger(__name__)

DEFAULT_BUY_BUDGET = Decimal("100000")
MISSING_BUY_PRICE = "Could not fetch price for buy order."


def _price_of(quotes: Mapping[str, PriceQuote], ticker: str) -> Optional[Decimal]:
    quote = quotes.get(ticker)
    if quote is None or not quote.latest_close or quote.latest_close <= 0:
        return None
    return quote.latest_close


class RebalanceEngine:
    """Decides what to sell and buy, and keeps the portfolio statistics in step."""

    def __init__(
        self,
        price_lookup: PriceLookup,
        buy_budget: Decimal = DEFAULT_BUY_BUDGET,
        portfolio_name: Optional[str] = None,
        clock: Optional[Callable[[], datetime.datetime]] = None,
    ):
        self.logger = logger.bind(component="rebalance_engine")
        self.price_lookup = price_lookup
        self.buy_budget = Decimal(buy_budget)
        self.portfolio_name = portfolio_name
        self.clock = clock or utcnow

    def execute_rebalance(
        self,
        session: Session,
        buy_tickers: Sequence[str],
        sell_tickers: Sequence[str],
    ) -> RebalanceReport:
        """
        Run one rebalance against the portfolio stored in the session.

        Args:
            session: Session the whole run is written through; the caller commits
            buy_tickers: BUY signal tickers, in signal order
            sell_tickers: SELL signal tickers, in signal order

        Returns:
            RebalanceReport listing sales by reason, buys and per-ticker errors
        """
        report = RebalanceReport()
        now = self.clock()

        portfolios = PortfolioRepository(session)
        trades = TradeRepository(session)
        portfolio = portfolios.get_or_create_portfolio(self.portfolio_name)
        holdings: Dict[str, Holding] = {h.ticker: h for h in portfolio.holdings}

        tickers = list(dict.fromkeys([*holdings, *buy_tickers, *sell_tickers]))
        quotes = self.price_lookup.get_latest_prices(tickers)

        self.logger.info(
            "Starting rebalance",
            holdings=len(holdings),
            buy_signals=len(buy_tickers),
            sell_signals=len(sell_tickers),
            priced=len(quotes),
        )

        sell_orders = self._plan_sales(holdings, sell_tickers, quotes)
        for ticker, order in sell_orders.items():
            self._execute_sale(portfolios, trades, portfolio, order, now)
            del holdings[ticker]
            report.record_sale(ticker, order.reason)

        for ticker in buy_tickers:
            if ticker in holdings:
                continue

            price = _price_of(quotes, ticker)
            if price is None:
                report.add_error(ticker, MISSING_BUY_PRICE)
                continue

            holding = self._execute_buy(portfolios, trades, portfolio, ticker, price, now)
            if holding is not None:
                holdings[ticker] = holding
                report.bought.append(ticker)

        portfolios.save_portfolio(portfolio)

        final_value = self._revalue(portfolio)
        portfolio.current_value = final_value
        portfolio.last_rebalanced = now
        portfolios.save_portfolio(portfolio)
        SnapshotRepository(session).add_snapshot(now, final_value)

        self.logger.info(
            "Rebalancing complete", final_value=str(final_value), **report.to_dict()
        )
        return report

    def _plan_sales(
        self,
        holdings: Mapping[str, Holding],
        sell_tickers: Sequence[str],
        quotes: Mapping[str, PriceQuote],
    ) -> Dict[str, SellOrder]:
        """Mark holdings for sale; stop-loss marks are made first and are never replaced."""
        orders: Dict[str, SellOrder] = {}

        for ticker, holding in holdings.items():
            price = _price_of(quotes, ticker)
            if price is None:
                self.logger.warning("No price for holding, skipping stop-loss", ticker=ticker)
                continue

            stop_loss = dynamic_stop_loss_price(holding.purchase_price, price)
            if price < stop_loss:
                orders[ticker] = SellOrder(holding, price, SellReason.STOP_LOSS, stop_loss)

        for ticker in sell_tickers:
            if ticker in orders:
                continue

            holding = holdings.get(ticker)
            price = _price_of(quotes, ticker)
            if holding is not None and price is not None:
                orders[ticker] = SellOrder(holding, price, SellReason.SIGNAL)

        return orders

    def _execute_sale(
        self,
        portfolios: PortfolioRepository,
        trades: TradeRepository,
        portfolio: Portfolio,
        order: SellOrder,
        now: datetime.datetime,
    ) -> Decimal:
        holding = order.holding
        sale_value = holding.quantity * order.price
        purchase_value = holding.quantity * holding.purchase_price
        trade_pl = sale_value - purchase_value

        portfolio.realized_pl += trade_pl
        portfolio.total_investment -= purchase_value
        portfolio.total_trades += 1
        if trade_pl > 0:
            portfolio.winning_trades += 1

        trades.record_sell(holding.ticker, holding.quantity, order.price, trade_pl, now)
        portfolios.remove_holding(portfolio, holding)

        self.logger.info(
            "Sold holding",
            ticker=holding.ticker,
            reason=order.reason.value,
            quantity=holding.quantity,
            price=str(order.price),
            stop_loss_price=str(order.stop_loss_price) if order.stop_loss_price else None,
            realized_pl=str(trade_pl),
        )
        return trade_pl

    def _execute_buy(
        self,
        portfolios: PortfolioRepository,
        trades: TradeRepository,
        portfolio: Portfolio,
        ticker: str,
        price: Decimal,
        now: datetime.datetime,
    ) -> Optional[Holding]:
        quantity = int(self.buy_budget // price)
        if quantity <= 0:
            # Not reported as an error, unlike a missing price
            self.logger.info(
                "Skipping buy, price exceeds budget",
                ticker=ticker,
                price=str(price),
                budget=str(self.buy_budget),
            )
            return None

        holding = portfolios.add_holding(portfolio, ticker, quantity, price, now)
        trades.record_buy(ticker, quantity, price, now)
        portfolio.total_investment += quantity * price

        self.logger.info("Bought holding", ticker=ticker, quantity=quantity, price=str(price))
        return holding

    def _revalue(self, portfolio: Portfolio) -> Decimal:
        """Value the holdings at fresh prices, falling back to purchase price."""
        holdings = list(portfolio.holdings)
        quotes = self.price_lookup.get_latest_prices([h.ticker for h in holdings])

        total = Decimal("0")
        for holding in holdings:
            price = _price_of(quotes, holding.ticker) or holding.purchase_price
            total += price * holding.quantity
        return total
