"""SQLAlchemy ORM models for the rebalancer."""

import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    BigInteger,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.types import JSON

from .database import Base

PORTFOLIO_ID = 1


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class TradeType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class SignalType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class SignalStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSED = "PROCESSED"
    FAILED = "FAILED"


class Portfolio(Base):
    """The single managed portfolio and its running statistics."""

    __tablename__ = "portfolios"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False, default="ML Model Portfolio")
    total_investment = Column(Numeric(20, 4), nullable=False, default=Decimal("0"))
    current_value = Column(Numeric(20, 4), nullable=False, default=Decimal("0"))
    realized_pl = Column(Numeric(20, 4), nullable=False, default=Decimal("0"))
    total_trades = Column(Integer, nullable=False, default=0)
    winning_trades = Column(Integer, nullable=False, default=0)
    last_rebalanced = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    holdings = relationship(
        "Holding",
        back_populates="portfolio",
        cascade="all, delete-orphan",
        order_by="Holding.id",
    )

    def __repr__(self):
        return f"<Portfolio(id={self.id}, holdings={len(self.holdings)}, value={self.current_value})>"


class Holding(Base):
    """A currently owned position, fully liquidated on sale."""

    __tablename__ = "holdings"

    id = Column(Integer, primary_key=True, index=True)
    portfolio_id = Column(
        Integer, ForeignKey("portfolios.id"), nullable=False, index=True
    )
    ticker = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    sector = Column(String, nullable=False, default="Unclassified")
    purchase_price = Column(Numeric(18, 4), nullable=False)
    quantity = Column(Integer, nullable=False)
    purchase_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    portfolio = relationship("Portfolio", back_populates="holdings")

    @property
    def cost_basis(self) -> Decimal:
        return self.quantity * self.purchase_price

    def __repr__(self):
        return f"<Holding(ticker='{self.ticker}', quantity={self.quantity}, purchase_price={self.purchase_price})>"


class Trade(Base):
    """Append-only log of executed trades."""

    __tablename__ = "trades"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    type = Column(String, nullable=False)  # TradeType value
    ticker = Column(String, nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(18, 4), nullable=False)
    realized_pl = Column(Numeric(20, 4), nullable=True)  # SELL only

    def __repr__(self):
        return f"<Trade(type='{self.type}', ticker='{self.ticker}', quantity={self.quantity}, price={self.price})>"


class Signal(Base):
    """Externally produced batch of BUY or SELL tickers awaiting a rebalance."""

    __tablename__ = "signals"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String, nullable=False)  # SignalType value
    tickers = Column(JSON, nullable=True)
    status = Column(
        String, nullable=False, default=SignalStatus.PENDING.value, index=True
    )
    processed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    def __repr__(self):
        return f"<Signal(id={self.id}, type='{self.type}', status='{self.status}')>"


class PortfolioSnapshot(Base):
    """Portfolio valuation recorded once per rebalance run."""

    __tablename__ = "portfolio_snapshots"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(DateTime(timezone=True), nullable=False, index=True)
    value = Column(Numeric(20, 4), nullable=False)

    def __repr__(self):
        return f"<PortfolioSnapshot(date={self.date}, value={self.value})>"


class EodPrice(Base):
    """One end-of-day bar for a symbol."""

    __tablename__ = "eod_prices"
    __table_args__ = (UniqueConstraint("symbol", "date", name="uq_eod_symbol_date"),)

    id = Column(Integer, primary_key=True, index=True)
    symbol = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    open = Column(Numeric(18, 4), nullable=True)
    high = Column(Numeric(18, 4), nullable=True)
    low = Column(Numeric(18, 4), nullable=True)
    close = Column(Numeric(18, 4), nullable=True)
    adj_close = Column(Numeric(18, 4), nullable=True)
    volume = Column(BigInteger, nullable=True)

    def __repr__(self):
        return f"<EodPrice(symbol='{self.symbol}', date={self.date}, close={self.close})>"
