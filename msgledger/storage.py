import logging

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from msgledger.config import settings

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    """SQLite connections are shared across threads; in-memory ones use a single connection."""
    options = {"echo": False}
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url:
            options["poolclass"] = StaticPool
    return options


engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

LEDGER_TABLES = ("ledger_state", "ledger_history")


def init_db() -> None:
    """
    Create the ledger state and history tables.
    Called during application startup.
    """
    logger.debug(f"Initializing ledger storage with URL: {settings.DATABASE_URL}")
    try:
        # Register the ORM tables with Base.metadata
        from msgledger import models  # noqa: F401

        Base.metadata.create_all(bind=engine)
        logger.info("Ledger storage initialized")
    except Exception as e:
        logger.error(f"Failed to initialize ledger storage: {e}")
        raise


def check_db_health() -> bool:
    """
    Check that the ledger database answers and both ledger tables exist.

    Returns:
        True if the host is usable, False otherwise.
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            tables = set(inspect(conn).get_table_names())
        missing = [name for name in LEDGER_TABLES if name not in tables]
        if missing:
            logger.error(f"Ledger schema not applied, missing tables: {missing}")
            return False
        return True
    except Exception as e:
        logger.error(f"Ledger health check failed: {e}")
        return False


def get_host():
    """
    Dependency returning the ledger host backed by the configured database.
    """
    from msgledger.host import SqlLedgerHost

    return SqlLedgerHost(SessionLocal)
