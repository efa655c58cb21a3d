"""
SQLAlchemy ORM tables backing the reference ledger host.

ledger_state holds the current value of every live key. ledger_history is
append-only and records every put and delete with its transaction id.
For the pydantic record models, see schemas.py.
"""

from sqlalchemy import Boolean, Column, Integer, LargeBinary, String

from msgledger.storage import Base


class LedgerState(Base):
    """
    Current world state.

    Table: ledger_state
    Primary Key: key (ordered lexically for range scans)
    """
    __tablename__ = "ledger_state"

    key = Column(String, primary_key=True)
    value = Column(LargeBinary, nullable=False)


class LedgerHistory(Base):
    """
    One row per mutation of a key, oldest first by seq.

    Table: ledger_history
    value is NULL for deletions.
    """
    __tablename__ = "ledger_history"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String, nullable=False, index=True)
    tx_id = Column(String, nullable=False, unique=True)
    value = Column(LargeBinary, nullable=True)
    is_delete = Column(Boolean, nullable=False, default=False)
    timestamp = Column(String, nullable=False)  # ISO-8601 UTC
