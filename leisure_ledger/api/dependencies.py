"""Dependency injection for FastAPI endpoints"""

from typing import Optional

from fastapi import Header, Query, Request

from leisure_ledger.api.i18n import negotiate_language
from leisure_ledger.config import settings
from leisure_ledger.services.tracker import TrackerService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_tracker(request: Request) -> TrackerService:
    """Provide the application's single tracker instance"""
    return request.app.state.tracker


def get_language(
    lang: Optional[str] = Query(None, description="Message language (en, es, fr)"),
    accept_language: Optional[str] = Header(None),
) -> str:
    """Resolve the language for localised messages"""
    return negotiate_language(lang, accept_language, settings.default_language)
