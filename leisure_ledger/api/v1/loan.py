"""Loan endpoints - repayment preview and borrowing"""

import logging
from fastapi import APIRouter, Depends, Request

from leisure_ledger.api.dependencies import get_language, get_request_id, get_tracker
from leisure_ledger.api.i18n import translate
from leisure_ledger.api.v1.errors import to_http_error
from leisure_ledger.api.v1.schemas import ActionResponse, LoanQuoteResponse, LoanRequest
from leisure_ledger.domain.exceptions import LoanRejectedError
from leisure_ledger.services.tracker import TrackerService

router = APIRouter()


@router.post("/loan/quote", response_model=LoanQuoteResponse)
async def quote_loan(
    request_body: LoanRequest,
    tracker: TrackerService = Depends(get_tracker),
    lang: str = Depends(get_language),
):
    """
    Preview a loan without taking it.

    Always 200; a refused loan has allowed=false and a localised reason.
    """
    quote = tracker.quote_loan(request_body.loan_minutes)
    message = None
    if quote.reason:
        message = translate(quote.reason, tracker.config.get().max_debt_limit, lang=lang)

    return LoanQuoteResponse(
        loan_minutes=quote.loan_minutes,
        repayment_due=quote.repayment_due,
        new_total_debt=quote.new_total_debt,
        allowed=quote.allowed,
        reason=quote.reason,
        message=message,
    )


@router.post("/loan", response_model=ActionResponse)
async def take_loan(
    request_body: LoanRequest,
    request: Request,
    tracker: TrackerService = Depends(get_tracker),
    lang: str = Depends(get_language),
):
    """
    Borrow leisure minutes against future study.

    Flow:
    1. Refuse while the net balance is positive
    2. Check the debt limit and the one-minute minimum
    3. Credit loaned leisure, add repayment to debt
    4. Record a loan history entry
    """
    try:
        result = tracker.request_loan(request_body.loan_minutes)
    except LoanRejectedError as e:
        raise to_http_error(e, lang, tracker.config.get().max_debt_limit)

    logging.info(
        "Loan granted",
        extra={"request_id": get_request_id(request), "loan_minutes": request_body.loan_minutes},
    )
    return ActionResponse.from_result(result, lang)
