"""/v1/history - read and clear the transaction history"""

from fastapi import APIRouter, Depends

from leisure_ledger.api.dependencies import get_language, get_tracker
from leisure_ledger.api.v1.errors import to_http_error
from leisure_ledger.api.v1.schemas import ActionResponse, HistoryItem, HistoryResponse
from leisure_ledger.domain.exceptions import HistoryLockedError
from leisure_ledger.services.tracker import TrackerService

router = APIRouter()


@router.get("/history", response_model=HistoryResponse)
async def get_history(tracker: TrackerService = Depends(get_tracker)):
    """
    Retrieve settled transactions.

    Returns:
        At most 50 entries, newest first
    """
    return HistoryResponse(entries=[HistoryItem.from_entry(e) for e in tracker.history.entries()])


@router.delete("/history", response_model=ActionResponse)
async def clear_history(
    tracker: TrackerService = Depends(get_tracker),
    lang: str = Depends(get_language),
):
    """Clear all entries; refused with 409 while study time is owed"""
    try:
        result = tracker.clear_history()
    except HistoryLockedError as e:
        raise to_http_error(e, lang)
    return ActionResponse.from_result(result, lang)
