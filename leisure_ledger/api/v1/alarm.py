"""POST /v1/alarm/stop - silence the completion alarm"""

from fastapi import APIRouter, Depends

from leisure_ledger.api.dependencies import get_tracker
from leisure_ledger.services.tracker import TrackerService

router = APIRouter()


@router.post("/alarm/stop")
async def stop_alarm(tracker: TrackerService = Depends(get_tracker)):
    tracker.stop_alarm()
    return {"alarm_playing": tracker.alarm.is_playing()}
