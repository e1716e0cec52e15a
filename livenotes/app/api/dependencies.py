"""Shared API dependencies."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from ..config import Settings
from ..domain.screen import EntryScreenSession

__all__ = [
    "get_screen_session",
    "get_settings",
]


def get_settings(request: Request) -> Settings:
    """Return the settings the application was built with."""

    return request.app.state.settings


def get_screen_session(request: Request) -> EntryScreenSession:
    """Return the screen session activated by the application lifespan."""

    session = getattr(request.app.state, "screen_session", None)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "screen_inactive", "message": "Screen is not active"},
        )
    return session
