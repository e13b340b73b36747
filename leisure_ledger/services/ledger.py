"""Balance ledger - each operation is one load → apply → persist unit"""

from leisure_ledger.domain import ledger as arithmetic
from leisure_ledger.domain.models import (
    Balance,
    LeisureSettlement,
    LoanSettlement,
    StudySettlement,
)
from leisure_ledger.infrastructure.database.repositories import StateRepository
from leisure_ledger.infrastructure.observability.metrics import realtime_deduction_counter


class BalanceLedger:
    """
    The only writer of the balance.

    No call awaits or yields between loading and saving, so with a single
    event loop no update can be lost.
    """

    def __init__(self, state_repo: StateRepository):
        self.state_repo = state_repo

    def balance(self) -> Balance:
        return self.state_repo.load().balance

    def settle_study(self, study_minutes: float, leisure_factor: float) -> StudySettlement:
        state = self.state_repo.load()
        state.balance, result = arithmetic.apply_study(state.balance, study_minutes, leisure_factor)
        self.state_repo.save(state)
        return result

    def settle_leisure(self, minutes_used: float) -> LeisureSettlement:
        state = self.state_repo.load()
        state.balance, result = arithmetic.apply_leisure(state.balance, minutes_used)
        self.state_repo.save(state)
        return result

    def apply_loan(self, loan_minutes: float, repayment_due: float) -> LoanSettlement:
        state = self.state_repo.load()
        state.balance, result = arithmetic.apply_loan(state.balance, loan_minutes, repayment_due)
        self.state_repo.save(state)
        return result

    def deduct_minute(self) -> Balance:
        """Real-time deduction of one whole leisure minute, loaned first"""
        state = self.state_repo.load()
        state.balance, _ = arithmetic.apply_leisure(state.balance, 1.0)
        self.state_repo.save(state)
        realtime_deduction_counter.inc()
        return state.balance

    def reset(self) -> Balance:
        state = self.state_repo.load()
        state.balance = Balance()
        self.state_repo.save(state)
        return state.balance
