"""Session state machine - study count-up and leisure countdown.

No I/O. Time is read from an injected clock and advanced one second per
tick(), so the whole machine runs deterministically under test.
"""

import math
import time
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Union

from leisure_ledger.domain.exceptions import (
    InvalidLeisureRequestError,
    InvalidSessionTransitionError,
    NoActiveSessionError,
    SessionActiveError,
)
from leisure_ledger.domain.models import SessionMode

MIN_LEISURE_MINUTES = 1
SECONDS_PER_MINUTE = 60


@dataclass(frozen=True)
class Tick:
    mode: SessionMode
    seconds: int  # elapsed for study, remaining for leisure


@dataclass(frozen=True)
class MinuteElapsed:
    mode: SessionMode
    minutes_elapsed: int


@dataclass(frozen=True)
class Completed:
    start_timestamp: float
    leisure_start_minutes: float
    minutes_elapsed: int


TimerEvent = Union[Tick, MinuteElapsed, Completed]


@dataclass(frozen=True)
class SessionState:
    mode: SessionMode
    seconds: int
    is_running: bool
    start_timestamp: Optional[float]
    leisure_start_minutes: float
    minutes_elapsed: int


@dataclass(frozen=True)
class StopResult:
    """Final timer reading captured atomically with the stop"""

    mode: SessionMode
    seconds: int
    start_timestamp: Optional[float]
    leisure_start_minutes: float
    minutes_elapsed: int


class SessionMachine:
    """
    Owns the single in-progress session.

    Idle → Study → Idle (count-up, stopped manually) and
    Idle → Leisure → Idle (countdown, auto-completes at zero).
    Starting while a session runs is refused; callers stop() first.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._reset()

    def _reset(self) -> None:
        self._mode = SessionMode.IDLE
        self._seconds = 0
        self._total_seconds = 0
        self._start_timestamp: Optional[float] = None
        self._leisure_start_minutes = 0.0
        self._minutes_elapsed = 0

    # ---- Read-only views ----

    @property
    def mode(self) -> SessionMode:
        return self._mode

    @property
    def is_active(self) -> bool:
        return self._mode != SessionMode.IDLE

    def current_state(self) -> SessionState:
        return SessionState(
            mode=self._mode,
            seconds=self._seconds,
            is_running=self.is_active,
            start_timestamp=self._start_timestamp,
            leisure_start_minutes=self._leisure_start_minutes,
            minutes_elapsed=self._minutes_elapsed,
        )

    # ---- Transitions ----

    def start_study(self, resume_from: Optional[float] = None) -> SessionState:
        """Start counting up; resume_from keeps the original start so offline time counts"""
        self._require_idle()

        now = self._clock()
        self._mode = SessionMode.STUDY
        self._start_timestamp = resume_from if resume_from is not None else now
        self._seconds = max(0, math.floor(now - resume_from)) if resume_from is not None else 0
        self._minutes_elapsed = self._seconds // SECONDS_PER_MINUTE
        return self.current_state()

    def start_leisure(
        self,
        minutes: float,
        resume_from: Optional[float] = None,
        minutes_settled: Optional[int] = None,
    ) -> SessionState:
        """
        Start counting down from minutes of leisure.

        The caller has already checked minutes against the available balance.
        When resuming, minutes is the original session length and
        minutes_settled the whole minutes already deducted; catch_up()
        reports the rest.
        """
        self._require_idle()
        if minutes < MIN_LEISURE_MINUTES:
            raise InvalidLeisureRequestError(
                "custom_time_minimum", f"Leisure sessions need at least {MIN_LEISURE_MINUTES} minute"
            )

        now = self._clock()
        total_seconds = math.floor(minutes * SECONDS_PER_MINUTE)
        elapsed = max(0, math.floor(now - resume_from)) if resume_from is not None else 0
        remaining = max(0, total_seconds - elapsed)
        if remaining <= 0:
            raise InvalidSessionTransitionError("Leisure session already fully elapsed")

        if minutes_settled is None:
            minutes_settled = elapsed // SECONDS_PER_MINUTE

        self._mode = SessionMode.LEISURE
        self._start_timestamp = resume_from if resume_from is not None else now
        self._leisure_start_minutes = minutes
        self._total_seconds = total_seconds
        self._seconds = remaining
        self._minutes_elapsed = min(minutes_settled, elapsed // SECONDS_PER_MINUTE)
        return self.current_state()

    def stop(self) -> StopResult:
        """Cancel the running session and return its final reading"""
        if not self.is_active:
            raise NoActiveSessionError("No session is running")

        result = StopResult(
            mode=self._mode,
            seconds=self._seconds,
            start_timestamp=self._start_timestamp,
            leisure_start_minutes=self._leisure_start_minutes,
            minutes_elapsed=self._minutes_elapsed,
        )
        self._reset()
        return result

    # ---- Ticking ----

    def tick(self) -> List[TimerEvent]:
        """
        Advance the running session by one second.

        Returns this second's events in order: Tick, any MinuteElapsed,
        and Completed when a leisure countdown reaches zero.
        """
        if self._mode == SessionMode.STUDY:
            self._seconds += 1
            events: List[TimerEvent] = [Tick(self._mode, self._seconds)]
            events.extend(self.catch_up())
            return events

        if self._mode == SessionMode.LEISURE:
            self._seconds = max(0, self._seconds - 1)
            events = [Tick(self._mode, self._seconds)]
            events.extend(self.catch_up())
            if self._seconds <= 0:
                events.append(
                    Completed(
                        start_timestamp=self._start_timestamp,
                        leisure_start_minutes=self._leisure_start_minutes,
                        minutes_elapsed=self._minutes_elapsed,
                    )
                )
                self._reset()
            return events

        return []

    def catch_up(self) -> List[TimerEvent]:
        """Report whole elapsed minutes not yet announced through MinuteElapsed"""
        if not self.is_active:
            return []

        whole_minutes = self._elapsed_seconds() // SECONDS_PER_MINUTE
        events: List[TimerEvent] = []
        while self._minutes_elapsed < whole_minutes:
            self._minutes_elapsed += 1
            events.append(MinuteElapsed(self._mode, self._minutes_elapsed))
        return events

    def run(self, sleep: Callable[[float], None] = time.sleep, interval: float = 1.0) -> Iterator[TimerEvent]:
        """Lazily yield timer events, one tick per interval, until the session ends"""
        while self.is_active:
            sleep(interval)
            yield from self.tick()

    # ---- Internal ----

    def _elapsed_seconds(self) -> int:
        if self._mode == SessionMode.LEISURE:
            return self._total_seconds - self._seconds
        return self._seconds

    def _require_idle(self) -> None:
        if self.is_active:
            raise SessionActiveError(f"A {self._mode.value} session is already running")
