"""Repository for the portfolio aggregate and its holdings."""

import datetime
from decimal import Decimal
from typing import List, Optional

from ..models import PORTFOLIO_ID, Holding, Portfolio
from .base import BaseRepository


class PortfolioRepository(BaseRepository):
    """Repository for portfolio and holding operations."""

    def get_portfolio(self) -> Optional[Portfolio]:
        """Get the portfolio if it has been created."""
        return self.session.get(Portfolio, PORTFOLIO_ID)

    def get_or_create_portfolio(self, name: Optional[str] = None) -> Portfolio:
        """Get the single portfolio, creating an empty one on first access."""
        portfolio = self.get_portfolio()
        if portfolio is not None:
            return portfolio

        portfolio = Portfolio(
            id=PORTFOLIO_ID,
            name=name or "ML Model Portfolio",
            total_investment=Decimal("0"),
            current_value=Decimal("0"),
            realized_pl=Decimal("0"),
            total_trades=0,
            winning_trades=0,
        )
        self.session.add(portfolio)
        self.session.flush()
        return portfolio

    def get_holding(self, ticker: str) -> Optional[Holding]:
        """Get a holding by ticker."""
        return self.session.query(Holding).filter(Holding.ticker == ticker).first()

    def get_holdings(self) -> List[Holding]:
        """Get all holdings in purchase order."""
        return self.session.query(Holding).order_by(Holding.id).all()

    def add_holding(
        self,
        portfolio: Portfolio,
        ticker: str,
        quantity: int,
        purchase_price: Decimal,
        purchase_date: datetime.datetime,
    ) -> Holding:
        """Open a new position in the portfolio."""
        holding = Holding(
            ticker=ticker,
            name=ticker,  # metadata jobs may rename it later
            purchase_price=purchase_price,
            quantity=quantity,
            purchase_date=purchase_date,
        )
        portfolio.holdings.append(holding)
        self.session.flush()
        return holding

    def remove_holding(self, portfolio: Portfolio, holding: Holding) -> None:
        """Liquidate a position; the row is deleted as an orphan."""
        portfolio.holdings.remove(holding)
        self.session.flush()

    def save_portfolio(self, portfolio: Portfolio) -> Portfolio:
        """Write pending portfolio changes to the database."""
        self.session.add(portfolio)
        self.session.flush()
        return portfolio
