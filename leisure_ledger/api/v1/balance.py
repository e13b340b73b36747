"""/v1/balance - current time-economy balance"""

from fastapi import APIRouter, Depends

from leisure_ledger.api.dependencies import get_language, get_tracker
from leisure_ledger.api.v1.errors import to_http_error
from leisure_ledger.api.v1.schemas import ActionResponse, BalanceResponse
from leisure_ledger.domain.exceptions import SessionActiveError
from leisure_ledger.services.tracker import TrackerService

router = APIRouter()


@router.get("/balance", response_model=BalanceResponse)
async def get_balance(tracker: TrackerService = Depends(get_tracker)):
    """
    Earned leisure, debt and loaned leisure.

    Returns:
        Raw components plus net_balance and the total a leisure session may spend
    """
    return BalanceResponse.from_balance(tracker.balance())


@router.post("/balance/reset", response_model=ActionResponse)
async def reset_balance(
    tracker: TrackerService = Depends(get_tracker),
    lang: str = Depends(get_language),
):
    """Zero the balance; refused with 409 while a session runs"""
    try:
        result = tracker.reset_balance()
    except SessionActiveError as e:
        raise to_http_error(e, lang)
    return ActionResponse.from_result(result, lang)
