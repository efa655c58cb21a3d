"""
Pytest configuration and shared fixtures.

The ledger runs on an in-memory SQLite database unless DATABASE_URL is
already set. Environment defaults must be in place before msgledger is
imported, since settings are read at import time.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import pytest

from msgledger import models  # noqa: F401,E402
from msgledger.host import SqlLedgerHost  # noqa: E402
from msgledger.storage import Base, SessionLocal, engine  # noqa: E402


@pytest.fixture(scope="function")
def host():
    """Ledger host on fresh state and history tables for each test."""
    Base.metadata.create_all(bind=engine)

    yield SqlLedgerHost(SessionLocal)

    Base.metadata.drop_all(bind=engine)
