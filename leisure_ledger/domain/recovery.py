"""Recovery planning for a session interrupted by a restart"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from leisure_ledger.domain.models import SessionMode, SessionSnapshot


class RecoveryAction(str, Enum):
    NONE = "none"
    RESUME_STUDY = "resume_study"
    RESUME_LEISURE = "resume_leisure"
    SETTLE_LEISURE = "settle_leisure"


@dataclass(frozen=True)
class RecoveryPlan:
    action: RecoveryAction
    elapsed_seconds: int = 0
    remaining_seconds: int = 0
    unsettled_minutes: float = 0.0  # leisure still to deduct when settling outright
    snapshot: Optional[SessionSnapshot] = None


def plan_recovery(snapshot: Optional[SessionSnapshot], now: float) -> RecoveryPlan:
    """
    Decide what to do with a persisted snapshot at start-up.

    - Study: resume from the original start, offline time counts
    - Leisure with time left: resume the countdown from what remains
    - Leisure fully consumed while offline: settle it outright, minus the
      whole minutes that were already deducted before the interruption
    """
    if snapshot is None:
        return RecoveryPlan(action=RecoveryAction.NONE)

    elapsed = max(0, math.floor(now - snapshot.start_timestamp))

    if snapshot.mode == SessionMode.STUDY:
        return RecoveryPlan(
            action=RecoveryAction.RESUME_STUDY,
            elapsed_seconds=elapsed,
            snapshot=snapshot,
        )

    if snapshot.mode == SessionMode.LEISURE:
        remaining = max(0, math.floor(snapshot.leisure_start_minutes * 60) - elapsed)
        if remaining <= 0:
            return RecoveryPlan(
                action=RecoveryAction.SETTLE_LEISURE,
                elapsed_seconds=elapsed,
                unsettled_minutes=max(0.0, snapshot.leisure_start_minutes - snapshot.minutes_settled),
                snapshot=snapshot,
            )
        return RecoveryPlan(
            action=RecoveryAction.RESUME_LEISURE,
            elapsed_seconds=elapsed,
            remaining_seconds=remaining,
            snapshot=snapshot,
        )

    return RecoveryPlan(action=RecoveryAction.NONE)
