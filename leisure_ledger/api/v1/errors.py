"""Mapping of domain rejections to localised HTTP errors"""

import logging

from fastapi import HTTPException

from leisure_ledger.api.i18n import translate
from leisure_ledger.domain.exceptions import (
    DomainException,
    HistoryLockedError,
    InvalidConfigError,
    InvalidLeisureRequestError,
    LoanRejectedError,
    NoActiveSessionError,
    SessionActiveError,
)

# Reasons that describe a malformed request rather than a conflict with current state
VALIDATION_REASONS = {"custom_time_minimum", "custom_time_exceeds", "minimum_loan"}


def to_http_error(e: DomainException, lang: str, *args) -> HTTPException:
    """
    Translate a domain exception into an HTTPException.

    Returns:
        409 for state conflicts, 422 for invalid input; detail is localised
    """
    if isinstance(e, (LoanRejectedError, InvalidLeisureRequestError)):
        key = e.reason
    elif isinstance(e, SessionActiveError):
        key = "session_active"
    elif isinstance(e, NoActiveSessionError):
        key = "no_active_session"
    elif isinstance(e, HistoryLockedError):
        key = "cannot_clear_debt"
    elif isinstance(e, InvalidConfigError):
        key, args = "invalid_config", (str(e),)
    else:
        key = "session_active"

    status_code = 422 if key in VALIDATION_REASONS or key == "invalid_config" else 409
    logging.info(f"Request rejected: {e}", extra={"step": "reject", "reason": key, "status": status_code})
    return HTTPException(status_code=status_code, detail=translate(key, *args, lang=lang))
