"""Pytest fixtures for testing"""

import pytest
from typing import Callable
from fastapi.testclient import TestClient
from leisure_ledger.api.main import create_app
from leisure_ledger.domain.models import Balance
from leisure_ledger.infrastructure.clients.alarm import SilentAlarmPlayer
from leisure_ledger.infrastructure.database.repositories import SessionSnapshotRepository, StateRepository
from leisure_ledger.infrastructure.database.store import InMemoryKeyValueStore
from leisure_ledger.services.tracker import TrackerService

STATE_KEY = "test.state"
SESSION_KEY = "test.session"


class FakeClock:
    """Manually advanced wall clock (epoch seconds)"""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def state_repo(store: InMemoryKeyValueStore) -> StateRepository:
    return StateRepository(store, STATE_KEY)


@pytest.fixture
def snapshot_repo(store: InMemoryKeyValueStore) -> SessionSnapshotRepository:
    return SessionSnapshotRepository(store, SESSION_KEY)


@pytest.fixture
def alarm(clock: FakeClock) -> SilentAlarmPlayer:
    return SilentAlarmPlayer(clock)


@pytest.fixture
def tracker(state_repo, snapshot_repo, clock, alarm) -> TrackerService:
    """Tracker on in-memory storage with a fake clock and a 300 s alarm"""
    return TrackerService(
        state_repo=state_repo,
        snapshot_repo=snapshot_repo,
        clock=clock,
        alarm=alarm,
        alarm_auto_stop_seconds=300,
    )


@pytest.fixture
def set_balance(state_repo: StateRepository) -> Callable[..., None]:
    """Overwrite the persisted balance"""

    def _set(leisure_available: float = 0.0, debt_minutes: float = 0.0, loaned_leisure: float = 0.0) -> None:
        state = state_repo.load()
        state.balance = Balance(leisure_available, debt_minutes, loaned_leisure)
        state_repo.save(state)

    return _set


@pytest.fixture
def run_seconds(tracker: TrackerService, clock: FakeClock) -> Callable[[int], list]:
    """Advance the clock and tick the tracker one second at a time"""

    def _run(seconds: int) -> list:
        events = []
        for _ in range(seconds):
            clock.advance(1)
            events.extend(tracker.tick())
        return events

    return _run


@pytest.fixture
def client(tracker: TrackerService) -> TestClient:
    """Create FastAPI test client around the in-memory tracker, without the background ticker"""
    app = create_app(tracker=tracker, run_ticker=False)
    return TestClient(app)
