from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base
from app.models import focus_stock, journal_entry  # noqa: F401

TODAY = date(2024, 6, 30)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def closed_trade():
    return _closed_trade


def _closed_trade(**overrides):
    payload = {
        "symbol": "AAPL",
        "entry_price": 150,
        "entry_date": "2024-01-15",
        "current_price": 155,
        "status": "closed",
        "exit_price": 160,
        "exit_date": "2024-01-20",
        "quantity": 10,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def open_trade():
    return _open_trade


def _open_trade(**overrides):
    payload = {
        "symbol": "msft",
        "entry_price": 300,
        "entry_date": "2024-03-04",
        "current_price": 330,
        "status": "open",
        "quantity": 2,
    }
    payload.update(overrides)
    return payload
