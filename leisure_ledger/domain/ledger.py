"""Balance arithmetic - pure transformations of a Balance"""

from dataclasses import replace
from typing import Tuple

from leisure_ledger.domain.models import (
    Balance,
    LeisureSettlement,
    LoanSettlement,
    StudySettlement,
)


def apply_study(balance: Balance, study_minutes: float, leisure_factor: float) -> Tuple[Balance, StudySettlement]:
    """
    Convert study minutes into debt repayment and earned leisure.

    Requirements:
    - Outstanding debt is repaid first, minute for minute
    - Only the remainder earns leisure, at leisure_factor
    - A study minute either pays debt or earns leisure, never both
    """
    debt_reduced = 0.0
    remainder = study_minutes

    if balance.debt_minutes > 0:
        debt_reduced = min(study_minutes, balance.debt_minutes)
        remainder = study_minutes - debt_reduced

    leisure_earned = remainder * leisure_factor if remainder > 0 else 0.0

    updated = replace(
        balance,
        debt_minutes=max(0.0, balance.debt_minutes - debt_reduced),
        leisure_available=balance.leisure_available + leisure_earned,
    )
    return updated, StudySettlement(leisure_earned=leisure_earned, debt_reduced=debt_reduced)


def apply_leisure(balance: Balance, minutes_used: float) -> Tuple[Balance, LeisureSettlement]:
    """
    Spend leisure minutes, loaned principal before earned leisure.

    Earned leisure is floored at zero; any shortfall beyond it is dropped.
    """
    from_loan = min(minutes_used, balance.loaned_leisure)
    shortfall = minutes_used - from_loan

    updated = replace(
        balance,
        loaned_leisure=balance.loaned_leisure - from_loan,
        leisure_available=max(0.0, balance.leisure_available - shortfall),
    )
    return updated, LeisureSettlement(leisure_used=minutes_used)


def apply_loan(balance: Balance, loan_minutes: float, repayment_due: float) -> Tuple[Balance, LoanSettlement]:
    """Book loan principal and the study minutes owed for it (no limit checks)"""
    updated = replace(
        balance,
        loaned_leisure=balance.loaned_leisure + loan_minutes,
        debt_minutes=balance.debt_minutes + repayment_due,
    )
    return updated, LoanSettlement(loan_minutes=loan_minutes, repayment_due=repayment_due)
