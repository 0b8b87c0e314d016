"""Shared test configuration and fixtures."""

import datetime
import os
import sys
from decimal import Decimal
from typing import Dict, Iterable, List
from unittest.mock import patch

import pytest
from sqlalchemy.orm import sessionmaker

sys.path.append("src")

from rebalancer.config.settings import get_settings
from rebalancer.ormdb import database
from rebalancer.ormdb import models  # noqa: F401  registers the tables
from rebalancer.services.pricing import PriceLookup, PriceQuote

FIXED_NOW = datetime.datetime(2024, 3, 15, 16, 30, tzinfo=datetime.timezone.utc)
CRON_SECRET = "test-cron-secret"


class FakePriceLookup(PriceLookup):
    """In-memory price source recording every lookup."""

    source = "fake"

    def __init__(self, prices=None):
        self.prices: Dict[str, Decimal] = {}
        self.calls: List[List[str]] = []
        for ticker, price in (prices or {}).items():
            self.set_price(ticker, price)

    def set_price(self, ticker: str, price) -> None:
        self.prices[ticker] = Decimal(str(price))

    def remove_price(self, ticker: str) -> None:
        self.prices.pop(ticker, None)

    def get_latest_prices(self, tickers: Iterable[str]) -> Dict[str, PriceQuote]:
        tickers = list(tickers)
        self.calls.append(tickers)
        return {
            t: PriceQuote(ticker=t, latest_close=self.prices[t])
            for t in tickers
            if t in self.prices
        }


@pytest.fixture(autouse=True)
def test_env_vars(tmp_path):
    """Point settings at a throwaway environment for every test."""
    test_vars = {
        "ENVIRONMENT": "testing",
        "CRON_SECRET_KEY": CRON_SECRET,
        "DATABASE_URL": f"sqlite:///{tmp_path / 'app.db'}",
        "DATA_DIRECTORY": str(tmp_path),
        "LOG_FILE_ENABLED": "false",
        "PRICE_SOURCE": "database",
        "SCHEDULER_ENABLED": "false",
    }

    with patch.dict(os.environ, test_vars):
        os.environ.pop("EOD_DATABASE_URL", None)
        get_settings.cache_clear()
        yield test_vars

    get_settings.cache_clear()


@pytest.fixture
def isolated_db(tmp_path, monkeypatch):
    """Create an isolated SQLite database and install it as the application database."""
    db_path = tmp_path / "test.db"
    db_url = f"sqlite:///{db_path}"

    engine = database.build_engine(db_url)
    SessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
    )
    database.Base.metadata.create_all(bind=engine)

    monkeypatch.setattr(database, "_engine", engine)
    monkeypatch.setattr(database, "_SessionLocal", SessionLocal)
    monkeypatch.setattr(database, "_eod_engine", None)
    monkeypatch.setattr(database, "_EodSessionLocal", None)

    try:
        yield {
            "engine": engine,
            "session_factory": SessionLocal,
            "db_url": db_url,
            "db_path": db_path,
        }
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(isolated_db) -> sessionmaker:
    return isolated_db["session_factory"]


@pytest.fixture
def db_session(session_factory):
    """A session on the isolated database, closed after the test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def price_lookup() -> FakePriceLookup:
    return FakePriceLookup()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {CRON_SECRET}"}
