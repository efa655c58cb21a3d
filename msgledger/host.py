"""
Ledger host contract and its SQLAlchemy implementation.

The access layer only talks to the ledger through the five primitives of
LedgerHost: get, put, delete, range_scan and history_scan. Anything that
implements them can stand in for the SQL-backed host defined here.

Host semantics:
- get() returns b"" for a key that is not present; it never raises for an
  unknown key. Any other failure raises HostError.
- put() and delete() commit on their own and record a history entry under a
  fresh transaction id.
- range_scan() yields (key, value) pairs with start_key <= key < end_key in
  lexical order. An empty end_key leaves the range open.
- history_scan() yields (tx_id, value) pairs oldest first. Deletions yield b"".
- Both iterators hold a session and cursor open until close() is called; use
  them as context managers.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from msgledger.errors import HostError
from msgledger.models import LedgerHistory, LedgerState

logger = logging.getLogger(__name__)


# =============================================================================
# Query Iterators
# =============================================================================

class _QueryIterator:
    """Forward-only cursor over a query result, owning its session."""

    def __init__(self, session: Session, result, description: str):
        self._session = session
        self._result = result
        self._description = description
        self._pending = None
        self._exhausted = False
        self._closed = False

    def has_next(self) -> bool:
        if self._closed or self._exhausted:
            return False
        if self._pending is None:
            try:
                self._pending = self._result.fetchone()
            except SQLAlchemyError as e:
                raise HostError(f"Failed to iterate {self._description}", cause=e) from e
            if self._pending is None:
                self._exhausted = True
        return self._pending is not None

    def next(self) -> Tuple[str, bytes]:
        if not self.has_next():
            raise StopIteration
        row, self._pending = self._pending, None
        return self._convert(row)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._result.close()
        finally:
            self._session.close()
        logger.debug(f"Closed iterator over {self._description}")

    def _convert(self, row) -> Tuple[str, bytes]:
        raise NotImplementedError

    def __iter__(self):
        return self

    def __next__(self) -> Tuple[str, bytes]:
        return self.next()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class StateQueryIterator(_QueryIterator):
    """Yields (key, value) pairs of a range scan."""

    def _convert(self, row) -> Tuple[str, bytes]:
        return row.key, bytes(row.value)


class HistoryQueryIterator(_QueryIterator):
    """Yields (tx_id, value) pairs of a key's history; deletions carry b""."""

    def _convert(self, row) -> Tuple[str, bytes]:
        return row.tx_id, bytes(row.value) if row.value is not None else b""


# =============================================================================
# Host Contract
# =============================================================================

class LedgerHost(Protocol):
    """Primitives the access layer needs from a ledger."""

    def get(self, key: str) -> bytes: ...

    def put(self, key: str, value: bytes) -> str: ...

    def delete(self, key: str) -> str: ...

    def range_scan(self, start_key: str, end_key: str) -> StateQueryIterator: ...

    def history_scan(self, key: str) -> HistoryQueryIterator: ...


# =============================================================================
# SQL Host
# =============================================================================

class SqlLedgerHost:
    """
    Ledger host storing state and history in two SQL tables.

    Args:
        session_factory: Callable returning a new SQLAlchemy session,
            typically storage.SessionLocal.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def get(self, key: str) -> bytes:
        try:
            with self._session_factory() as db:
                row = db.get(LedgerState, key)
                return bytes(row.value) if row is not None else b""
        except SQLAlchemyError as e:
            logger.error(f"Failed to get state for {key}: {e}")
            raise HostError(f"Failed to get state for {key}", cause=e) from e

    def put(self, key: str, value: bytes) -> str:
        return self._commit(key, value)

    def delete(self, key: str) -> str:
        return self._commit(key, None)

    def range_scan(self, start_key: str, end_key: str) -> StateQueryIterator:
        stmt = select(LedgerState.key, LedgerState.value).where(LedgerState.key >= start_key)
        if end_key:
            stmt = stmt.where(LedgerState.key < end_key)
        stmt = stmt.order_by(LedgerState.key.asc())
        description = f"range [{start_key}, {end_key})"
        db, result = self._open(stmt, description)
        return StateQueryIterator(db, result, description)

    def history_scan(self, key: str) -> HistoryQueryIterator:
        stmt = (
            select(LedgerHistory.tx_id, LedgerHistory.value)
            .where(LedgerHistory.key == key)
            .order_by(LedgerHistory.seq.asc())
        )
        description = f"history of {key}"
        db, result = self._open(stmt, description)
        return HistoryQueryIterator(db, result, description)

    def _open(self, stmt, description: str):
        db = self._session_factory()
        try:
            return db, db.execute(stmt)
        except SQLAlchemyError as e:
            db.close()
            logger.error(f"Failed to open {description}: {e}")
            raise HostError(f"Failed to open {description}", cause=e) from e

    def _commit(self, key: str, value: Optional[bytes]) -> str:
        """Apply one put (value given) or delete (value None) and log it to history."""
        tx_id = uuid.uuid4().hex
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
        action = "delete" if value is None else "put"

        with self._session_factory() as db:
            try:
                if value is None:
                    db.query(LedgerState).filter(LedgerState.key == key).delete()
                else:
                    db.merge(LedgerState(key=key, value=value))
                db.add(LedgerHistory(
                    key=key,
                    tx_id=tx_id,
                    value=value,
                    is_delete=value is None,
                    timestamp=timestamp,
                ))
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Failed to {action} state for {key}: {e}")
                raise HostError(f"Failed to {action} state for {key}", cause=e) from e

        logger.debug(f"Committed {action} of {key} in tx {tx_id}")
        return tx_id
