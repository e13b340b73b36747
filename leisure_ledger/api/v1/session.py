"""Session endpoints - start, stop and inspect study/leisure sessions"""

import logging
from fastapi import APIRouter, Depends, Request

from leisure_ledger.api.dependencies import get_language, get_request_id, get_tracker
from leisure_ledger.api.i18n import translate
from leisure_ledger.api.v1.errors import to_http_error
from leisure_ledger.api.v1.schemas import ActionResponse, LeisureRequest, SessionResponse
from leisure_ledger.domain.exceptions import InvalidLeisureRequestError, InvalidSessionTransitionError
from leisure_ledger.services.tracker import TrackerService

router = APIRouter()


@router.get("/session", response_model=SessionResponse)
async def get_session(
    tracker: TrackerService = Depends(get_tracker),
    lang: str = Depends(get_language),
):
    """Current timer reading, alarm flag and the latest automatic settlement message"""
    last = tracker.last_result
    last_message = translate(last.message_key, *last.message_args, lang=lang) if last else None
    return SessionResponse.from_state(tracker.session_state(), tracker.alarm.is_playing(), last_message)


@router.post("/session/study", response_model=ActionResponse)
async def start_study(
    request: Request,
    tracker: TrackerService = Depends(get_tracker),
    lang: str = Depends(get_language),
):
    try:
        result = tracker.start_study()
    except InvalidSessionTransitionError as e:
        raise to_http_error(e, lang)

    logging.info("Study started via API", extra={"request_id": get_request_id(request)})
    return ActionResponse.from_result(result, lang)


@router.post("/session/leisure", response_model=ActionResponse)
async def start_leisure(
    request_body: LeisureRequest,
    request: Request,
    tracker: TrackerService = Depends(get_tracker),
    lang: str = Depends(get_language),
):
    """
    Start a leisure countdown.

    Body is either {"minutes": n} or {"use_all": true}.
    """
    try:
        result = tracker.start_leisure(minutes=request_body.minutes, use_all=request_body.use_all)
    except (InvalidSessionTransitionError, InvalidLeisureRequestError) as e:
        raise to_http_error(e, lang)

    logging.info("Leisure started via API", extra={"request_id": get_request_id(request)})
    return ActionResponse.from_result(result, lang)


@router.post("/session/stop", response_model=ActionResponse)
async def stop_session(
    request: Request,
    tracker: TrackerService = Depends(get_tracker),
    lang: str = Depends(get_language),
):
    """Stop the running session and settle it"""
    try:
        result = tracker.stop()
    except InvalidSessionTransitionError as e:
        raise to_http_error(e, lang)

    logging.info(
        "Session stopped via API",
        extra={"request_id": get_request_id(request), "outcome": result.message_key},
    )
    return ActionResponse.from_result(result, lang)
