"""Domain models - pure Python dataclasses representing the time economy"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class SessionMode(str, Enum):
    IDLE = "idle"
    STUDY = "study"
    LEISURE = "leisure"


class EntryType(str, Enum):
    STUDY = "study"
    LEISURE = "leisure"
    LOAN = "loan"


@dataclass(frozen=True)
class Balance:
    """Leisure, debt and loaned principal, all in minutes"""

    leisure_available: float = 0.0
    debt_minutes: float = 0.0
    loaned_leisure: float = 0.0

    @property
    def net_balance(self) -> float:
        # loaned principal is spendable but never part of the headline number
        return self.leisure_available - self.debt_minutes

    @property
    def total_available(self) -> float:
        """Minutes a leisure session may spend"""
        return max(0.0, self.net_balance) + self.loaned_leisure


@dataclass(frozen=True)
class TrackerConfig:
    """User-tunable economy parameters"""

    leisure_factor: float = 0.5  # 1 min study = factor min leisure
    loan_interest_rate: float = 0.1
    max_debt_limit: float = 60.0  # study minutes


@dataclass(frozen=True)
class StudySettlement:
    leisure_earned: float
    debt_reduced: float


@dataclass(frozen=True)
class LeisureSettlement:
    leisure_used: float


@dataclass(frozen=True)
class LoanSettlement:
    loan_minutes: float
    repayment_due: float


@dataclass(frozen=True)
class LoanQuote:
    """Repayment preview for a loan request"""

    loan_minutes: float
    repayment_due: float
    new_total_debt: float
    allowed: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class HistoryEntry:
    """Immutable record of one settled transaction"""

    id: str
    date: str  # ISO-8601, UTC
    type: EntryType
    net_balance_before: float
    net_balance_after: float
    duration_minutes: Optional[float] = None
    loan_minutes: Optional[float] = None
    leisure_earned: Optional[float] = None
    leisure_used: Optional[float] = None
    repayment_due: Optional[float] = None
    debt_reduced: Optional[float] = None
    leisure_factor: Optional[float] = None
    loan_interest_rate: Optional[float] = None
    recovered: bool = False


@dataclass
class TrackerState:
    """Everything persisted under the state key"""

    config: TrackerConfig = field(default_factory=TrackerConfig)
    balance: Balance = field(default_factory=Balance)
    history: List[HistoryEntry] = field(default_factory=list)  # newest first


@dataclass(frozen=True)
class SessionSnapshot:
    """Durable recovery record for the running session"""

    mode: SessionMode
    start_timestamp: float  # epoch seconds
    leisure_start_minutes: float
    saved_at: float
    minutes_settled: int = 0  # whole leisure minutes already deducted
