"""Unit tests for key-value stores"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from leisure_ledger.domain.models import SessionMode, SessionSnapshot
from leisure_ledger.infrastructure.database.models import Base
from leisure_ledger.infrastructure.database.repositories import SessionSnapshotRepository
from leisure_ledger.infrastructure.database.store import (
    FallbackKeyValueStore,
    InMemoryKeyValueStore,
    SqlKeyValueStore,
)


@pytest.fixture
def sql_store() -> SqlKeyValueStore:
    """SQL store on a private in-memory SQLite database"""
    engine = create_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    return SqlKeyValueStore(sessionmaker(bind=engine))


class BrokenStore:
    """Primary store whose database is unreachable"""

    def get(self, key):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    def set(self, key, value):
        raise OperationalError("UPDATE", {}, Exception("database is locked"))

    def remove(self, key):
        raise OSError("disk gone")


class FlakyStore(InMemoryKeyValueStore):
    """In-memory primary that can be switched offline"""

    def __init__(self):
        super().__init__()
        self.offline = False

    def _check(self, statement):
        if self.offline:
            raise OperationalError(statement, {}, Exception("database is locked"))

    def get(self, key):
        self._check("SELECT")
        return super().get(key)

    def set(self, key, value):
        self._check("UPDATE")
        super().set(key, value)

    def remove(self, key):
        self._check("DELETE")
        super().remove(key)


def test_sql_store_set_get_remove(sql_store):
    assert sql_store.get("k") is None

    sql_store.set("k", "v1")
    sql_store.set("k", "v2")
    assert sql_store.get("k") == "v2"

    sql_store.remove("k")
    assert sql_store.get("k") is None


def test_sql_store_remove_missing_key_is_noop(sql_store):
    sql_store.remove("missing")


def test_fallback_store_passes_through(sql_store):
    store = FallbackKeyValueStore(sql_store)

    store.set("k", "v")

    assert sql_store.get("k") == "v"
    assert store.get("k") == "v"
    assert store.degraded is False


def test_fallback_store_degrades_to_memory():
    """Test storage failures never reach the caller"""
    store = FallbackKeyValueStore(BrokenStore())

    store.set("k", "v")
    assert store.get("k") == "v"
    store.remove("k")
    assert store.get("k") is None

    assert store.degraded is True


def test_fallback_store_logs_warning(caplog):
    store = FallbackKeyValueStore(BrokenStore())

    store.set("k", "v")

    assert "Storage unavailable" in caplog.text


def test_remove_during_outage_survives_recovery():
    """Test a key removed while the database is down stays removed afterwards"""
    primary = FlakyStore()
    store = FallbackKeyValueStore(primary)
    snapshots = SessionSnapshotRepository(store, "s")
    snapshots.save(SessionSnapshot(SessionMode.LEISURE, 100.0, 10.0, 100.0))

    primary.offline = True
    snapshots.clear()
    assert snapshots.load() is None

    primary.offline = False
    assert snapshots.load() is None
    assert "s" not in primary.data
    assert store.pending == {}
    assert store.degraded is False


def test_writes_during_outage_replayed_in_order():
    primary = FlakyStore()
    primary.set("a", "old")
    store = FallbackKeyValueStore(primary)

    primary.offline = True
    store.set("a", "new")
    store.set("b", "1")
    store.remove("b")
    assert store.get("a") == "new"
    assert store.degraded is True

    primary.offline = False
    store.set("c", "2")

    assert primary.data == {"a": "new", "c": "2"}
    assert store.get("a") == "new"
    assert store.get("b") is None


def test_read_failure_serves_last_known_value():
    primary = FlakyStore()
    store = FallbackKeyValueStore(primary)
    store.set("k", "v")

    primary.offline = True

    assert store.get("k") == "v"
    assert store.pending == {}


def test_in_memory_store_copies_initial_data():
    initial = {"a": "1"}
    store = InMemoryKeyValueStore(initial)
    store.set("b", "2")

    assert initial == {"a": "1"}
    assert store.data == {"a": "1", "b": "2"}
