"""Loan repayment calculation and loan policy"""

import math

from leisure_ledger.domain.exceptions import LoanRejectedError
from leisure_ledger.domain.models import Balance, LoanQuote, TrackerConfig

MIN_LOAN_MINUTES = 1


def calculate_loan_repayment(loan_minutes: float, leisure_factor: float, interest_rate: float) -> float:
    """
    Study minutes owed for borrowing loan_minutes of leisure.

    Borrowed leisure is converted back to study minutes through the inverse
    leisure factor, then inflated by the interest rate.

    Example:
        10 min at factor 0.5, 10% interest → 10 * 2 * 1.1 = 22.0
    """
    if leisure_factor <= 0:
        raise ValueError("leisure_factor must be positive")

    study_multiplier = 1 / leisure_factor
    return loan_minutes * study_multiplier * (1 + interest_rate)


def quote_loan(balance: Balance, config: TrackerConfig, loan_minutes: float) -> LoanQuote:
    """
    Preview a loan against the current balance without changing anything.

    Rules, checked in order:
    - no borrowing while the net balance is positive
    - new total debt must stay within max_debt_limit
    - at least MIN_LOAN_MINUTES must be requested (NaN and infinity never are)
    """
    repayment_due = calculate_loan_repayment(
        loan_minutes, config.leisure_factor, config.loan_interest_rate
    )
    new_total_debt = balance.debt_minutes + repayment_due

    reason = None
    if balance.net_balance > 0:
        reason = "positive_balance"
    elif not math.isfinite(loan_minutes):
        reason = "minimum_loan"
    elif new_total_debt > config.max_debt_limit:
        reason = "exceeds_debt_limit"
    elif loan_minutes < MIN_LOAN_MINUTES:
        reason = "minimum_loan"

    return LoanQuote(
        loan_minutes=loan_minutes,
        repayment_due=repayment_due,
        new_total_debt=new_total_debt,
        allowed=reason is None,
        reason=reason,
    )


_REJECTION_MESSAGES = {
    "positive_balance": "Cannot borrow while the net balance is positive",
    "exceeds_debt_limit": "Exceeds debt limit (max {limit:g} min)",
    "minimum_loan": "Minimum loan is 1 minute",
}


def validate_loan_request(balance: Balance, config: TrackerConfig, loan_minutes: float) -> LoanQuote:
    """
    Quote a loan and refuse it when it breaks the loan policy.

    Raises:
        LoanRejectedError: with the failing rule as reason
    """
    quote = quote_loan(balance, config, loan_minutes)
    if not quote.allowed:
        message = _REJECTION_MESSAGES[quote.reason].format(limit=config.max_debt_limit)
        raise LoanRejectedError(quote.reason, message)
    return quote
