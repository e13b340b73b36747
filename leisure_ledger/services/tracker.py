"""Tracker service - drives the session machine and settles its effects.

Orchestrates:
- SessionMachine state and its timer events
- Balance ledger settlement (real-time minutes, stop, completion, recovery)
- Session snapshot persistence for crash recovery
- History entries and the completion alarm
"""

import logging
import math
import time
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Tuple

from leisure_ledger.config import settings
from leisure_ledger.domain.exceptions import (
    InvalidLeisureRequestError,
    InvalidSessionTransitionError,
    LoanRejectedError,
    SessionActiveError,
)
from leisure_ledger.domain.loans import quote_loan, validate_loan_request
from leisure_ledger.domain.models import (
    Balance,
    EntryType,
    HistoryEntry,
    LoanQuote,
    SessionMode,
    SessionSnapshot,
    TrackerConfig,
)
from leisure_ledger.domain.recovery import RecoveryAction, RecoveryPlan, plan_recovery
from leisure_ledger.domain.session import (
    MIN_LEISURE_MINUTES,
    SECONDS_PER_MINUTE,
    Completed,
    MinuteElapsed,
    SessionMachine,
    SessionState,
    TimerEvent,
)
from leisure_ledger.infrastructure.clients.alarm import AlarmPlayer, SilentAlarmPlayer
from leisure_ledger.infrastructure.database.repositories import (
    SessionSnapshotRepository,
    StateRepository,
)
from leisure_ledger.infrastructure.observability.logging import log_recovery, log_settlement
from leisure_ledger.infrastructure.observability.metrics import (
    loan_rejection_counter,
    record_settlement,
    recovery_counter,
)
from leisure_ledger.services.history import HistoryLog
from leisure_ledger.services.ledger import BalanceLedger
from leisure_ledger.services.tracker_config import ConfigStore


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a user action or automatic settlement, as a message key for the UI"""

    message_key: str
    message_args: Tuple = ()
    entry: Optional[HistoryEntry] = None
    balance: Optional[Balance] = None


class TrackerService:
    def __init__(
        self,
        state_repo: StateRepository,
        snapshot_repo: SessionSnapshotRepository,
        clock: Callable[[], float] = time.time,
        alarm: Optional[AlarmPlayer] = None,
        machine: Optional[SessionMachine] = None,
        alarm_auto_stop_seconds: Optional[float] = None,
    ):
        self.clock = clock
        self.machine = machine or SessionMachine(clock)
        self.ledger = BalanceLedger(state_repo)
        self.history = HistoryLog(state_repo, clock)
        self.config = ConfigStore(state_repo)
        self.snapshots = snapshot_repo
        self.alarm = alarm or SilentAlarmPlayer(clock)
        self.alarm_auto_stop_seconds = (
            alarm_auto_stop_seconds if alarm_auto_stop_seconds is not None else settings.alarm_auto_stop_seconds
        )

        self.last_result: Optional[ActionResult] = None  # latest automatic settlement
        self._snapshot: Optional[SessionSnapshot] = None

    # ----- Queries -----
    def balance(self) -> Balance:
        return self.ledger.balance()

    def session_state(self) -> SessionState:
        return self.machine.current_state()

    # ----- Sessions -----
    def start_study(self) -> ActionResult:
        state = self.machine.start_study()
        self._begin_snapshot(state)
        logging.info("Study session started", extra={"step": "session_start", "mode": "study"})
        return ActionResult("study_started", balance=self.balance())

    def start_leisure(self, minutes: Optional[float] = None, use_all: bool = False) -> ActionResult:
        """
        Start a leisure countdown.

        Spendable time is earned leisure (when the net balance is positive)
        plus loaned leisure. use_all spends all of it.
        """
        if self.machine.is_active:
            raise SessionActiveError(f"A {self.machine.mode.value} session is already running")

        available = self.balance().total_available
        if available < MIN_LEISURE_MINUTES:
            raise InvalidLeisureRequestError(
                "not_enough_leisure", f"Not enough leisure time ({available:.1f} min available)"
            )
        if use_all:
            minutes = available
        if minutes is None or not math.isfinite(minutes) or minutes < MIN_LEISURE_MINUTES:
            raise InvalidLeisureRequestError("custom_time_minimum", "Minimum leisure session is 1 minute")
        if minutes > available:
            raise InvalidLeisureRequestError(
                "custom_time_exceeds", f"Requested time exceeds the {available:.1f} min available"
            )

        state = self.machine.start_leisure(minutes)
        self._begin_snapshot(state)
        logging.info(
            "Leisure session started",
            extra={"step": "session_start", "mode": "leisure", "minutes": round(minutes, 2)},
        )
        return ActionResult("leisure_started", (minutes,), balance=self.balance())

    def stop(self) -> ActionResult:
        """Stop the running session and settle what was not settled in real time"""
        result = self.machine.stop()
        self._end_snapshot()

        if result.mode == SessionMode.STUDY:
            return self._settle_study(result.seconds // SECONDS_PER_MINUTE, recovered=False)

        used = result.leisure_start_minutes - result.seconds / SECONDS_PER_MINUTE
        if used <= 0:
            return ActionResult("leisure_stopped", balance=self.balance())
        return self._settle_leisure(
            used, used - result.minutes_elapsed, recovered=False, message_key="used_leisure"
        )

    # ----- Ticking -----
    def tick(self) -> List[TimerEvent]:
        """Advance the session by one second and apply its events; called by the ticker"""
        events = self.machine.tick()
        self.handle_events(events)
        self._expire_alarm()
        return events

    def handle_events(self, events: List[TimerEvent]) -> None:
        """Apply timer events strictly in the order they occurred"""
        for event in events:
            if isinstance(event, MinuteElapsed):
                if event.mode == SessionMode.LEISURE:
                    self.ledger.deduct_minute()
                self._save_snapshot(event.minutes_elapsed if event.mode == SessionMode.LEISURE else 0)
            elif isinstance(event, Completed):
                self._end_snapshot()
                self.last_result = self._settle_leisure(
                    event.leisure_start_minutes,
                    event.leisure_start_minutes - event.minutes_elapsed,
                    recovered=False,
                    message_key="leisure_completed",
                )
                self.alarm.play_alarm()

    def stop_alarm(self) -> None:
        self.alarm.stop_alarm()

    # ----- Recovery -----
    def recover(self) -> Optional[ActionResult]:
        """
        Rebuild or settle a session interrupted by a restart.

        Idempotent: the snapshot is consumed, so a second call finds nothing.
        """
        if self.machine.is_active:
            return None

        snapshot = self.snapshots.load()
        plan = plan_recovery(snapshot, self.clock())
        if plan.action == RecoveryAction.NONE:
            return None

        recovery_counter.labels(action=plan.action.value).inc()
        log_recovery(plan.action.value, plan.snapshot.mode.value, plan.elapsed_seconds, plan.remaining_seconds)

        if plan.action == RecoveryAction.RESUME_STUDY:
            state = self.machine.start_study(resume_from=plan.snapshot.start_timestamp)
            self._snapshot = plan.snapshot
            self._save_snapshot(0)
            result = ActionResult("resumed_study", (state.seconds // SECONDS_PER_MINUTE,), balance=self.balance())
        elif plan.action == RecoveryAction.RESUME_LEISURE:
            result = self._resume_leisure(plan.snapshot)
        else:
            result = self._settle_recovered_leisure(plan)

        self.last_result = result
        return result

    def shutdown(self) -> Optional[ActionResult]:
        """
        Settle the running session before the process exits.

        Sessions with nothing to settle keep their snapshot and resume on the
        next start-up.
        """
        if not self.machine.is_active:
            return None

        state = self.machine.current_state()
        if state.mode == SessionMode.STUDY:
            if state.seconds // SECONDS_PER_MINUTE < 1:
                self._save_snapshot(0)
                return None
            result = self.machine.stop()
            self._end_snapshot()
            return self._settle_study(result.seconds // SECONDS_PER_MINUTE, recovered=True)

        used = state.leisure_start_minutes - state.seconds / SECONDS_PER_MINUTE
        if used <= 0:
            self._save_snapshot(state.minutes_elapsed)
            return None
        result = self.machine.stop()
        self._end_snapshot()
        return self._settle_leisure(
            used, used - result.minutes_elapsed, recovered=True, message_key="used_leisure"
        )

    # ----- Loans -----
    def quote_loan(self, loan_minutes: float) -> LoanQuote:
        return quote_loan(self.balance(), self.config.get(), loan_minutes)

    def request_loan(self, loan_minutes: float) -> ActionResult:
        config = self.config.get()
        before = self.balance()
        try:
            quote = validate_loan_request(before, config, loan_minutes)
        except LoanRejectedError as e:
            loan_rejection_counter.labels(reason=e.reason).inc()
            raise

        settlement = self.ledger.apply_loan(loan_minutes, quote.repayment_due)
        after = self.balance()
        entry = self.history.add(
            self.history.new_entry(
                EntryType.LOAN,
                before.net_balance,
                after.net_balance,
                loan_minutes=settlement.loan_minutes,
                repayment_due=settlement.repayment_due,
                leisure_factor=config.leisure_factor,
                loan_interest_rate=config.loan_interest_rate,
            )
        )
        record_settlement(EntryType.LOAN.value, loan_minutes)
        log_settlement(EntryType.LOAN.value, loan_minutes, before.net_balance, after.net_balance)
        return ActionResult("borrowed", (loan_minutes, settlement.repayment_due), entry, after)

    # ----- History & config -----
    def clear_history(self) -> ActionResult:
        self.history.clear()
        return ActionResult("history_cleared", balance=self.balance())

    def reset_balance(self) -> ActionResult:
        """Zero leisure, debt and loans; history and config are kept"""
        if self.machine.is_active:
            raise SessionActiveError(f"A {self.machine.mode.value} session is already running")
        balance = self.ledger.reset()
        logging.warning("Balance reset", extra={"step": "reset"})
        return ActionResult("balance_reset", balance=balance)

    def update_config(self, **changes: float) -> TrackerConfig:
        return self.config.update(**changes)

    def reset_config(self) -> TrackerConfig:
        return self.config.reset()

    # ----- Settlement internals -----
    def _settle_study(self, study_minutes: int, recovered: bool) -> ActionResult:
        if study_minutes < 1:
            return ActionResult("session_too_short", balance=self.balance())

        config = self.config.get()
        before = self.balance()
        settlement = self.ledger.settle_study(study_minutes, config.leisure_factor)
        after = self.balance()
        entry = self.history.add(
            self.history.new_entry(
                EntryType.STUDY,
                before.net_balance,
                after.net_balance,
                duration_minutes=study_minutes,
                leisure_earned=settlement.leisure_earned,
                debt_reduced=settlement.debt_reduced,
                leisure_factor=config.leisure_factor,
                recovered=recovered,
            )
        )
        record_settlement(EntryType.STUDY.value, study_minutes)
        log_settlement(EntryType.STUDY.value, study_minutes, before.net_balance, after.net_balance, recovered)

        if recovered:
            key = "recovered_study"
        elif settlement.debt_reduced > 0:
            key = "earned_leisure_debt_paid"
        else:
            key = "earned_leisure"
        return ActionResult(key, (settlement.leisure_earned, settlement.debt_reduced), entry, after)

    def _settle_leisure(self, used: float, unsettled: float, recovered: bool, message_key: str) -> ActionResult:
        """
        Record a leisure session of used minutes.

        Whole minutes were already deducted in real time; only the unsettled
        part goes through the ledger here.
        """
        before = self.balance()
        if unsettled > 0:
            self.ledger.settle_leisure(unsettled)
        after = self.balance()

        entry = self.history.add(
            self.history.new_entry(
                EntryType.LEISURE,
                before.net_balance,
                after.net_balance,
                duration_minutes=used,
                leisure_used=used,
                recovered=recovered,
            )
        )
        record_settlement(EntryType.LEISURE.value, used)
        log_settlement(EntryType.LEISURE.value, used, before.net_balance, after.net_balance, recovered)
        return ActionResult(message_key, (used,), entry, after)

    def _resume_leisure(self, snapshot: SessionSnapshot) -> ActionResult:
        try:
            state = self.machine.start_leisure(
                snapshot.leisure_start_minutes,
                resume_from=snapshot.start_timestamp,
                minutes_settled=snapshot.minutes_settled,
            )
        except InvalidLeisureRequestError as e:
            logging.warning(f"Discarding unrecoverable leisure snapshot: {e}", extra={"step": "recovery"})
            self.snapshots.clear()
            return ActionResult("leisure_stopped", balance=self.balance())
        except InvalidSessionTransitionError:
            # ran out between planning and resuming
            return self._settle_recovered_leisure(plan_recovery(snapshot, self.clock()))

        self._snapshot = snapshot
        # minutes that passed while the process was down go through the normal per-minute path
        self.handle_events(self.machine.catch_up())
        self._save_snapshot(self.machine.current_state().minutes_elapsed)
        return ActionResult("resumed_leisure", (state.seconds,), balance=self.balance())

    def _settle_recovered_leisure(self, plan: RecoveryPlan) -> ActionResult:
        """Book a leisure session that ran out while the process was down"""
        self.snapshots.clear()
        result = self._settle_leisure(
            plan.snapshot.leisure_start_minutes,
            plan.unsettled_minutes,
            recovered=True,
            message_key="recovered_leisure",
        )
        self.alarm.play_alarm()
        return result

    def _expire_alarm(self) -> None:
        started_at = self.alarm.started_at
        if started_at is not None and self.clock() - started_at >= self.alarm_auto_stop_seconds:
            self.alarm.stop_alarm()

    # ----- Snapshot internals -----
    def _begin_snapshot(self, state: SessionState) -> None:
        now = self.clock()
        self._snapshot = SessionSnapshot(
            mode=state.mode,
            start_timestamp=state.start_timestamp,
            leisure_start_minutes=state.leisure_start_minutes,
            saved_at=now,
            minutes_settled=state.minutes_elapsed if state.mode == SessionMode.LEISURE else 0,
        )
        self.snapshots.save(self._snapshot)

    def _save_snapshot(self, minutes_settled: int) -> None:
        if self._snapshot is None:
            return
        self._snapshot = replace(self._snapshot, saved_at=self.clock(), minutes_settled=minutes_settled)
        self.snapshots.save(self._snapshot)

    def _end_snapshot(self) -> None:
        self._snapshot = None
        self.snapshots.clear()
