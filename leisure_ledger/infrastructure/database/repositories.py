"""Data access layer: JSON blobs for tracker state and the active session"""

import json
import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from leisure_ledger.domain.exceptions import CorruptSnapshotError, InvalidConfigError
from leisure_ledger.domain.models import (
    Balance,
    EntryType,
    HistoryEntry,
    SessionMode,
    SessionSnapshot,
    TrackerConfig,
    TrackerState,
)
from leisure_ledger.domain.validation import validate_config
from leisure_ledger.infrastructure.database.store import KeyValueStore

MAX_HISTORY_ENTRIES = 50


def history_entry_to_dict(entry: HistoryEntry) -> Dict[str, Any]:
    data = asdict(entry)
    data["type"] = entry.type.value
    return data


def history_entry_from_dict(data: Dict[str, Any]) -> HistoryEntry:
    return HistoryEntry(
        id=str(data["id"]),
        date=str(data["date"]),
        type=EntryType(data["type"]),
        net_balance_before=float(data["net_balance_before"]),
        net_balance_after=float(data["net_balance_after"]),
        duration_minutes=data.get("duration_minutes"),
        loan_minutes=data.get("loan_minutes"),
        leisure_earned=data.get("leisure_earned"),
        leisure_used=data.get("leisure_used"),
        repayment_due=data.get("repayment_due"),
        debt_reduced=data.get("debt_reduced"),
        leisure_factor=data.get("leisure_factor"),
        loan_interest_rate=data.get("loan_interest_rate"),
        recovered=bool(data.get("recovered", False)),
    )


class StateRepository:
    """Load and save config, balance and history as one JSON document"""

    def __init__(self, store: KeyValueStore, key: str):
        self.store = store
        self.key = key

    def load(self) -> TrackerState:
        """
        Read the persisted state, filling gaps with defaults.

        Corrupt JSON, an out-of-range config or unreadable entries are
        replaced by defaults instead of propagating.
        """
        raw = self.store.get(self.key)
        if raw is None:
            return TrackerState()

        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("state is not an object")
        except ValueError as e:
            logging.warning(f"Invalid state in storage, using defaults: {e}", extra={"step": "load_state"})
            return TrackerState()

        return TrackerState(
            config=self._load_config(data.get("config")),
            balance=self._load_balance(data.get("balance")),
            history=self._load_history(data.get("history")),
        )

    def save(self, state: TrackerState) -> None:
        payload = {
            "config": asdict(state.config),
            "balance": asdict(state.balance),
            "history": [history_entry_to_dict(e) for e in state.history[:MAX_HISTORY_ENTRIES]],
        }
        self.store.set(self.key, json.dumps(payload))

    def clear(self) -> None:
        self.store.remove(self.key)

    def _load_config(self, data: Any) -> TrackerConfig:
        defaults = asdict(TrackerConfig())
        if not isinstance(data, dict):
            return TrackerConfig()
        try:
            merged = {name: float(data.get(name, default)) for name, default in defaults.items()}
            return validate_config(TrackerConfig(**merged))
        except (TypeError, ValueError, InvalidConfigError) as e:
            logging.warning(f"Invalid config in storage, using defaults: {e}", extra={"step": "load_config"})
            return TrackerConfig()

    def _load_balance(self, data: Any) -> Balance:
        if not isinstance(data, dict):
            return Balance()
        try:
            return Balance(
                leisure_available=max(0.0, float(data.get("leisure_available", 0.0))),
                debt_minutes=max(0.0, float(data.get("debt_minutes", 0.0))),
                loaned_leisure=max(0.0, float(data.get("loaned_leisure", 0.0))),
            )
        except (TypeError, ValueError) as e:
            logging.warning(f"Invalid balance in storage, using defaults: {e}", extra={"step": "load_balance"})
            return Balance()

    def _load_history(self, data: Any) -> List[HistoryEntry]:
        if not isinstance(data, list):
            return []
        entries = []
        for item in data:
            try:
                entries.append(history_entry_from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                logging.warning(f"Dropping unreadable history entry: {e}", extra={"step": "load_history"})
        return entries[:MAX_HISTORY_ENTRIES]


class SessionSnapshotRepository:
    """Durable record of the running session, used for crash recovery"""

    def __init__(self, store: KeyValueStore, key: str):
        self.store = store
        self.key = key

    def save(self, snapshot: SessionSnapshot) -> None:
        payload = asdict(snapshot)
        payload["mode"] = snapshot.mode.value
        self.store.set(self.key, json.dumps(payload))

    def clear(self) -> None:
        self.store.remove(self.key)

    def load(self) -> Optional[SessionSnapshot]:
        """
        Return the stored snapshot, or None.

        A snapshot that cannot be parsed or lacks required fields is removed
        and treated as no active session.
        """
        raw = self.store.get(self.key)
        if raw is None:
            return None
        try:
            return self.parse(raw)
        except CorruptSnapshotError as e:
            logging.warning(f"Discarding invalid session snapshot: {e}", extra={"step": "load_snapshot"})
            self.clear()
            return None

    @staticmethod
    def parse(raw: str) -> SessionSnapshot:
        try:
            data = json.loads(raw)
            mode = SessionMode(data["mode"])
            start_timestamp = float(data["start_timestamp"])
            leisure_start_minutes = float(data.get("leisure_start_minutes") or 0.0)
            saved_at = float(data.get("saved_at") or start_timestamp)
            minutes_settled = data.get("minutes_settled")
            if minutes_settled is None:
                # written at each minute boundary, after that minute was deducted
                minutes_settled = (saved_at - start_timestamp) // 60
            minutes_settled = max(0, int(minutes_settled))
        except (ValueError, KeyError, TypeError) as e:
            raise CorruptSnapshotError(f"malformed snapshot: {e}") from e

        if mode == SessionMode.IDLE:
            raise CorruptSnapshotError("snapshot has no running mode")
        if start_timestamp <= 0:
            raise CorruptSnapshotError("snapshot has no start timestamp")
        if mode == SessionMode.LEISURE and leisure_start_minutes <= 0:
            raise CorruptSnapshotError("leisure snapshot has no starting minutes")

        return SessionSnapshot(
            mode=mode,
            start_timestamp=start_timestamp,
            leisure_start_minutes=leisure_start_minutes,
            saved_at=saved_at,
            minutes_settled=minutes_settled,
        )
