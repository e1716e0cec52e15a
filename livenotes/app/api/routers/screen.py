"""Entry screen endpoints: one route per UI intent.

Handlers are ``async`` so they run on the event loop that also hosts the
screen dispatcher; intents and store callbacks never interleave.
"""

from __future__ import annotations

from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Path, Response, status
from pydantic import BaseModel, Field

from ...domain.screen import EntryScreenSession, ScreenView
from ...infra.logging import get_logger
from ...infra.metrics import get_metrics_client
from ..dependencies import get_screen_session

router = APIRouter(prefix="/api/screen", tags=["screen"])
logger = get_logger(__name__)
metrics = get_metrics_client()

MAX_DRAFT_LENGTH = 10_000
EntryId = Annotated[str, Path(..., min_length=1, max_length=128)]


class DraftRequest(BaseModel):
    text: str = Field(default="", max_length=MAX_DRAFT_LENGTH)


class ScreenResponse(ScreenView):
    subscription: str
    notifications: List[str] = Field(default_factory=list)


def _screen_response(session: EntryScreenSession) -> ScreenResponse:
    view = session.view()
    drain = getattr(session.notifier, "drain", None)
    return ScreenResponse(
        **view.model_dump(),
        subscription=session.state.value,
        notifications=drain() if drain is not None else [],
    )


@router.get("", response_model=ScreenResponse, summary="Render the entry screen")
async def get_screen(
    session: EntryScreenSession = Depends(get_screen_session),
) -> ScreenResponse:
    return _screen_response(session)


@router.put("/draft", response_model=ScreenResponse, summary="Replace the draft text")
async def put_draft(
    payload: DraftRequest,
    session: EntryScreenSession = Depends(get_screen_session),
) -> ScreenResponse:
    session.set_draft(payload.text)
    return _screen_response(session)


@router.post(
    "/submit",
    response_model=ScreenResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Save or update the draft without waiting for the store",
)
async def submit_draft(
    response: Response,
    session: EntryScreenSession = Depends(get_screen_session),
) -> ScreenResponse:
    if not session.submit():
        metrics.increment("screen.submit.empty")
        response.status_code = status.HTTP_200_OK
    return _screen_response(session)


@router.post(
    "/entries/{entry_id}/edit",
    response_model=ScreenResponse,
    summary="Load a displayed entry into the form",
)
async def edit_entry(
    entry_id: EntryId,
    session: EntryScreenSession = Depends(get_screen_session),
) -> ScreenResponse:
    try:
        session.request_edit(entry_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "code": "entry_not_displayed",
                "message": f"Entry {entry_id} is not in the current list",
            },
        ) from exc
    return _screen_response(session)


@router.delete(
    "/entries/{entry_id}",
    response_model=ScreenResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Delete an entry without waiting for the store",
)
async def delete_entry(
    entry_id: EntryId,
    session: EntryScreenSession = Depends(get_screen_session),
) -> ScreenResponse:
    session.request_delete(entry_id)
    return _screen_response(session)
