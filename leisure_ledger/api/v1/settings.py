"""/v1/config - economy parameters"""

from fastapi import APIRouter, Depends

from leisure_ledger.api.dependencies import get_language, get_tracker
from leisure_ledger.api.i18n import translate
from leisure_ledger.api.v1.errors import to_http_error
from leisure_ledger.api.v1.schemas import ConfigResponse, ConfigSchema, ConfigUpdateRequest
from leisure_ledger.domain.exceptions import InvalidConfigError
from leisure_ledger.services.tracker import TrackerService

router = APIRouter()


@router.get("/config", response_model=ConfigResponse)
async def get_config(tracker: TrackerService = Depends(get_tracker)):
    return ConfigResponse(config=ConfigSchema.from_config(tracker.config.get()))


@router.put("/config", response_model=ConfigResponse)
async def update_config(
    request_body: ConfigUpdateRequest,
    tracker: TrackerService = Depends(get_tracker),
    lang: str = Depends(get_language),
):
    """
    Update some or all parameters.

    Values are range-checked together; on 422 nothing is changed.
    """
    changes = request_body.model_dump(exclude_none=True)
    try:
        config = tracker.update_config(**changes)
    except InvalidConfigError as e:
        raise to_http_error(e, lang)
    return ConfigResponse(config=ConfigSchema.from_config(config), message=translate("settings_saved", lang=lang))


@router.post("/config/reset", response_model=ConfigResponse)
async def reset_config(
    tracker: TrackerService = Depends(get_tracker),
    lang: str = Depends(get_language),
):
    config = tracker.reset_config()
    return ConfigResponse(config=ConfigSchema.from_config(config), message=translate("settings_reset", lang=lang))
