"""Key-value persistence: SQL-backed store with an in-memory fallback"""

import logging
from typing import Callable, Dict, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from leisure_ledger.infrastructure.database.models import AppState
from leisure_ledger.infrastructure.observability.metrics import storage_fallback_counter


class KeyValueStore(Protocol):
    """get/set/remove of string values by key"""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    """Non-persistent store, used for tests and as the fallback copy"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class SqlKeyValueStore:
    """Store rows in the app_state table, one short transaction per call"""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        with self.session_factory() as db:
            row = db.get(AppState, key)
            return row.value if row else None

    def set(self, key: str, value: str) -> None:
        with self.session_factory() as db:
            row = db.get(AppState, key)
            if row is None:
                db.add(AppState(key=key, value=value))
            else:
                row.value = value
            db.commit()

    def remove(self, key: str) -> None:
        with self.session_factory() as db:
            row = db.get(AppState, key)
            if row is not None:
                db.delete(row)
                db.commit()


class FallbackKeyValueStore:
    """
    Wrap a primary store so persistence failures never reach the caller.

    Every write is mirrored in memory. When the primary raises, a warning is
    logged and the write is kept as pending (a removal as a tombstone).
    Pending keys are served from memory and replayed, oldest first, as soon
    as the primary accepts writes again, so an outage never resurrects a
    removed key or an overwritten value.
    """

    def __init__(self, primary: KeyValueStore):
        self.primary = primary
        self.memory = InMemoryKeyValueStore()
        self.pending: Dict[str, Optional[str]] = {}
        self.degraded = False

    def get(self, key: str) -> Optional[str]:
        self._replay()
        if key in self.pending:
            return self.memory.get(key)
        try:
            value = self.primary.get(key)
        except (SQLAlchemyError, OSError) as e:
            self._degrade("get", key, e)
            return self.memory.get(key)
        if value is None:
            self.memory.remove(key)
        else:
            self.memory.set(key, value)
        return value

    def set(self, key: str, value: str) -> None:
        self.memory.set(key, value)
        self._write(key, value)

    def remove(self, key: str) -> None:
        self.memory.remove(key)
        self._write(key, None)

    def _write(self, key: str, value: Optional[str]) -> None:
        self._replay()
        if self.pending:
            # keep the write order while older writes are still queued
            self._queue(key, value)
            return
        try:
            self._apply(key, value)
        except (SQLAlchemyError, OSError) as e:
            self._degrade("remove" if value is None else "set", key, e)
            self._queue(key, value)

    def _queue(self, key: str, value: Optional[str]) -> None:
        self.pending.pop(key, None)
        self.pending[key] = value

    def _apply(self, key: str, value: Optional[str]) -> None:
        if value is None:
            self.primary.remove(key)
        else:
            self.primary.set(key, value)

    def _replay(self) -> None:
        """Push pending writes to the primary; stop at the first failure"""
        if not self.pending:
            return
        while self.pending:
            key, value = next(iter(self.pending.items()))
            try:
                self._apply(key, value)
            except (SQLAlchemyError, OSError):
                return
            del self.pending[key]

        self.degraded = False
        logging.info("Storage recovered, pending writes replayed", extra={"step": "storage_recovered"})

    def _degrade(self, operation: str, key: str, error: Exception) -> None:
        self.degraded = True
        storage_fallback_counter.labels(operation=operation).inc()
        logging.warning(
            f"Storage unavailable, using in-memory state: {error}",
            extra={"step": "storage_fallback", "operation": operation, "key": key},
        )
