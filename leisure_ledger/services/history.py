"""Append-only, capped transaction history"""

import time
import uuid
from datetime import datetime, timezone
from typing import Callable, List

from leisure_ledger.domain.exceptions import HistoryLockedError
from leisure_ledger.domain.models import EntryType, HistoryEntry
from leisure_ledger.infrastructure.database.repositories import MAX_HISTORY_ENTRIES, StateRepository


class HistoryLog:
    """Newest-first log of settled transactions, at most MAX_HISTORY_ENTRIES long"""

    def __init__(self, state_repo: StateRepository, clock: Callable[[], float] = time.time):
        self.state_repo = state_repo
        self.clock = clock

    def new_entry(self, entry_type: EntryType, net_balance_before: float, net_balance_after: float, **fields) -> HistoryEntry:
        """Build an entry stamped with a fresh id and the current time"""
        return HistoryEntry(
            id=uuid.uuid4().hex,
            date=datetime.fromtimestamp(self.clock(), tz=timezone.utc).isoformat(),
            type=entry_type,
            net_balance_before=net_balance_before,
            net_balance_after=net_balance_after,
            **fields,
        )

    def add(self, entry: HistoryEntry) -> HistoryEntry:
        state = self.state_repo.load()
        state.history.insert(0, entry)
        del state.history[MAX_HISTORY_ENTRIES:]
        self.state_repo.save(state)
        return entry

    def entries(self) -> List[HistoryEntry]:
        return self.state_repo.load().history

    def clear(self) -> None:
        """
        Drop every entry.

        Raises:
            HistoryLockedError: while the net balance is negative
        """
        state = self.state_repo.load()
        if state.balance.net_balance < 0:
            raise HistoryLockedError("Cannot clear history while study time is owed")
        state.history = []
        self.state_repo.save(state)
