"""Unit tests for the session state machine"""

import pytest
from leisure_ledger.domain.exceptions import (
    InvalidLeisureRequestError,
    InvalidSessionTransitionError,
    NoActiveSessionError,
    SessionActiveError,
)
from leisure_ledger.domain.models import SessionMode
from leisure_ledger.domain.session import Completed, MinuteElapsed, SessionMachine, Tick


def minute_events(events):
    return [e for e in events if isinstance(e, MinuteElapsed)]


def tick_n(machine: SessionMachine, n: int) -> list:
    events = []
    for _ in range(n):
        events.extend(machine.tick())
    return events


def test_new_machine_is_idle(clock):
    state = SessionMachine(clock).current_state()

    assert state.mode == SessionMode.IDLE
    assert state.is_running is False
    assert state.seconds == 0


def test_idle_tick_emits_nothing(clock):
    assert SessionMachine(clock).tick() == []


def test_study_counts_up_and_reports_minutes(clock):
    """Test study emits one Tick per second and MinuteElapsed every 60 seconds"""
    machine = SessionMachine(clock)
    state = machine.start_study()
    assert state.start_timestamp == clock.now

    events = tick_n(machine, 125)

    assert [e.seconds for e in events if isinstance(e, Tick)][-1] == 125
    assert minute_events(events) == [
        MinuteElapsed(SessionMode.STUDY, 1),
        MinuteElapsed(SessionMode.STUDY, 2),
    ]
    assert machine.current_state().seconds == 125


def test_study_never_completes(clock):
    machine = SessionMachine(clock)
    machine.start_study()

    events = tick_n(machine, 3600)

    assert not any(isinstance(e, Completed) for e in events)
    assert machine.is_active


def test_leisure_counts_down_to_completion(clock):
    """Test a 2 minute session deducts at each elapsed minute then completes"""
    machine = SessionMachine(clock)
    machine.start_leisure(2)
    assert machine.current_state().seconds == 120

    first_minute = tick_n(machine, 60)
    assert minute_events(first_minute) == [MinuteElapsed(SessionMode.LEISURE, 1)]
    assert machine.current_state().seconds == 60

    rest = tick_n(machine, 60)
    assert rest[-3:] == [
        Tick(SessionMode.LEISURE, 0),
        MinuteElapsed(SessionMode.LEISURE, 2),
        Completed(start_timestamp=clock.now, leisure_start_minutes=2, minutes_elapsed=2),
    ]
    assert machine.mode == SessionMode.IDLE


def test_fractional_leisure_completes_with_partial_minute(clock):
    """Test 1.5 minutes completes after 90 seconds with one whole minute reported"""
    machine = SessionMachine(clock)
    machine.start_leisure(1.5)

    events = tick_n(machine, 90)

    assert len(minute_events(events)) == 1
    completed = events[-1]
    assert isinstance(completed, Completed)
    assert completed.leisure_start_minutes == 1.5
    assert completed.minutes_elapsed == 1


def test_start_while_active_is_refused(clock):
    """Test a running session is never silently replaced"""
    machine = SessionMachine(clock)
    machine.start_study()
    tick_n(machine, 30)

    with pytest.raises(SessionActiveError):
        machine.start_leisure(5)
    with pytest.raises(SessionActiveError):
        machine.start_study()

    assert machine.current_state().seconds == 30


def test_stop_when_idle_raises(clock):
    with pytest.raises(NoActiveSessionError):
        SessionMachine(clock).stop()


def test_stop_returns_final_reading_and_resets(clock):
    machine = SessionMachine(clock)
    machine.start_leisure(5)
    tick_n(machine, 75)

    result = machine.stop()

    assert result.mode == SessionMode.LEISURE
    assert result.seconds == 225
    assert result.leisure_start_minutes == 5
    assert result.minutes_elapsed == 1
    assert machine.mode == SessionMode.IDLE
    assert machine.tick() == []


def test_leisure_below_minimum_rejected(clock):
    with pytest.raises(InvalidLeisureRequestError) as exc_info:
        SessionMachine(clock).start_leisure(0.5)

    assert exc_info.value.reason == "custom_time_minimum"


def test_resume_study_counts_offline_time(clock):
    machine = SessionMachine(clock)
    state = machine.start_study(resume_from=clock.now - 125)

    assert state.seconds == 125
    assert state.minutes_elapsed == 2
    assert state.start_timestamp == clock.now - 125
    assert minute_events(tick_n(machine, 54)) == []
    assert minute_events(tick_n(machine, 1)) == [MinuteElapsed(SessionMode.STUDY, 3)]


def test_resume_leisure_reports_unsettled_offline_minutes(clock):
    """Test catch_up announces minutes that passed while the process was down"""
    machine = SessionMachine(clock)
    state = machine.start_leisure(10, resume_from=clock.now - 150, minutes_settled=1)

    assert state.seconds == 450
    assert state.minutes_elapsed == 1
    assert machine.catch_up() == [MinuteElapsed(SessionMode.LEISURE, 2)]
    assert machine.catch_up() == []


def test_resume_leisure_with_nothing_left_rejected(clock):
    with pytest.raises(InvalidSessionTransitionError):
        SessionMachine(clock).start_leisure(10, resume_from=clock.now - 720)


def test_run_yields_events_until_completion(clock):
    """Test the lazy event stream with an injected sleep"""
    sleeps = []
    machine = SessionMachine(clock)
    machine.start_leisure(1)

    events = list(machine.run(sleep=sleeps.append, interval=1.0))

    assert len(sleeps) == 60
    assert len([e for e in events if isinstance(e, Tick)]) == 60
    assert minute_events(events) == [MinuteElapsed(SessionMode.LEISURE, 1)]
    assert isinstance(events[-1], Completed)
    assert machine.is_active is False


def test_machines_are_independent(clock):
    first = SessionMachine(clock)
    second = SessionMachine(clock)
    first.start_study()

    assert second.mode == SessionMode.IDLE
