"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field, model_validator
from typing import List, Optional

from leisure_ledger.api.i18n import translate
from leisure_ledger.domain.models import Balance, HistoryEntry, TrackerConfig
from leisure_ledger.domain.session import SessionState
from leisure_ledger.services.tracker import ActionResult


class BalanceResponse(BaseModel):
    """Response for GET /v1/balance"""

    leisure_available: float
    debt_minutes: float
    loaned_leisure: float
    net_balance: float
    total_available: float

    @classmethod
    def from_balance(cls, balance: Balance) -> "BalanceResponse":
        return cls(
            leisure_available=balance.leisure_available,
            debt_minutes=balance.debt_minutes,
            loaned_leisure=balance.loaned_leisure,
            net_balance=balance.net_balance,
            total_available=balance.total_available,
        )


class HistoryItem(BaseModel):
    """Single settled transaction"""

    id: str
    date: str
    type: str
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

    @classmethod
    def from_entry(cls, entry: HistoryEntry) -> "HistoryItem":
        return cls(
            id=entry.id,
            date=entry.date,
            type=entry.type.value,
            net_balance_before=entry.net_balance_before,
            net_balance_after=entry.net_balance_after,
            duration_minutes=entry.duration_minutes,
            loan_minutes=entry.loan_minutes,
            leisure_earned=entry.leisure_earned,
            leisure_used=entry.leisure_used,
            repayment_due=entry.repayment_due,
            debt_reduced=entry.debt_reduced,
            leisure_factor=entry.leisure_factor,
            loan_interest_rate=entry.loan_interest_rate,
            recovered=entry.recovered,
        )


class HistoryResponse(BaseModel):
    """Response for GET /v1/history"""

    entries: List[HistoryItem]


class ActionResponse(BaseModel):
    """Localised outcome of a state-changing request"""

    message_key: str
    message: str
    entry: Optional[HistoryItem] = None
    balance: Optional[BalanceResponse] = None

    @classmethod
    def from_result(cls, result: ActionResult, lang: str) -> "ActionResponse":
        return cls(
            message_key=result.message_key,
            message=translate(result.message_key, *result.message_args, lang=lang),
            entry=HistoryItem.from_entry(result.entry) if result.entry else None,
            balance=BalanceResponse.from_balance(result.balance) if result.balance else None,
        )


class SessionResponse(BaseModel):
    """Response for GET /v1/session"""

    mode: str
    seconds: int
    is_running: bool
    start_timestamp: Optional[float] = None
    leisure_start_minutes: float
    minutes_elapsed: int
    alarm_playing: bool
    last_message: Optional[str] = None

    @classmethod
    def from_state(cls, state: SessionState, alarm_playing: bool, last_message: Optional[str] = None) -> "SessionResponse":
        return cls(
            mode=state.mode.value,
            seconds=state.seconds,
            is_running=state.is_running,
            start_timestamp=state.start_timestamp,
            leisure_start_minutes=state.leisure_start_minutes,
            minutes_elapsed=state.minutes_elapsed,
            alarm_playing=alarm_playing,
            last_message=last_message,
        )


class LeisureRequest(BaseModel):
    """Request body for POST /v1/session/leisure"""

    minutes: Optional[float] = Field(None, allow_inf_nan=False, description="Session length in minutes")
    use_all: bool = Field(False, description="Spend everything available")

    @model_validator(mode="after")
    def require_minutes_or_use_all(self) -> "LeisureRequest":
        if self.minutes is None and not self.use_all:
            raise ValueError("either minutes or use_all is required")
        return self


class LoanRequest(BaseModel):
    """Request body for POST /v1/loan and /v1/loan/quote"""

    loan_minutes: float = Field(..., allow_inf_nan=False, description="Leisure minutes to borrow")


class LoanQuoteResponse(BaseModel):
    """Response for POST /v1/loan/quote"""

    loan_minutes: float
    repayment_due: float
    new_total_debt: float
    allowed: bool
    reason: Optional[str] = None
    message: Optional[str] = None


class ConfigSchema(BaseModel):
    """Economy parameters"""

    leisure_factor: float
    loan_interest_rate: float
    max_debt_limit: float

    @classmethod
    def from_config(cls, config: TrackerConfig) -> "ConfigSchema":
        return cls(
            leisure_factor=config.leisure_factor,
            loan_interest_rate=config.loan_interest_rate,
            max_debt_limit=config.max_debt_limit,
        )


class ConfigUpdateRequest(BaseModel):
    """Request body for PUT /v1/config; omitted fields are left unchanged"""

    leisure_factor: Optional[float] = None
    loan_interest_rate: Optional[float] = None
    max_debt_limit: Optional[float] = None


class ConfigResponse(BaseModel):
    """Response for config reads and writes"""

    config: ConfigSchema
    message: Optional[str] = None
