"""Shared test fixtures for the royalty ledger tests.

Uses a SQLite database file so tests run without PostgreSQL.
"""

from __future__ import annotations

import os
from decimal import Decimal

# Override DATABASE_URL before importing anything from royalty_ledger; the
# Settings model reads .env eagerly via pydantic-settings, and the
# module-level ``engine`` in royalty_ledger.core.database would try to
# connect to PostgreSQL.
os.environ["DATABASE_URL"] = "sqlite:///./test.db"

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from royalty_ledger.core.config import Settings
from royalty_ledger.core.database import Base, get_db
from royalty_ledger.main import app
from royalty_ledger.services.ledger.service import LedgerService

# Use SQLite file-based database for tests (no PostgreSQL needed)
TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)


# Enable foreign keys for SQLite
@event.listens_for(engine, "connect")
def _set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON;")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def make_settings(**overrides) -> Settings:
    """Build a Settings instance with deterministic ledger defaults."""
    defaults = {
        "database_url": TEST_DATABASE_URL,
        "default_currency": "USD",
        "default_payout_threshold": Decimal("50.00"),
        "payout_hold_days": 15,
        "sandbox_payout_limit": Decimal("1000.00"),
    }
    defaults.update(overrides)
    return Settings(**defaults)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def ledger_settings() -> Settings:
    return make_settings()


@pytest.fixture
def session_factory(db_session):
    """Factory for extra sessions on the test database, e.g. racing writers."""
    return TestingSessionLocal


@pytest.fixture
def service(db_session, ledger_settings) -> LedgerService:
    return LedgerService(db=db_session, config=ledger_settings)


@pytest.fixture
def funded_record(service):
    """A record with 100.00 available and a 50.00 payout threshold."""
    record = service.ingest(
        user_id="artist-1",
        song_id="song-1",
        period="2024-03",
        platform_name="spotify",
        plays_delta=2000,
        revenue_delta=Decimal("100.00"),
    )
    return service.release_earnings(record.id)


@pytest.fixture(scope="function")
def client(db_session):
    """FastAPI test client with overridden DB dependency."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
