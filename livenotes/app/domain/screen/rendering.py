"""Pure projection of screen state into a view model."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol, Sequence

from pydantic import BaseModel, Field

from ..entrystore.models import Entry

__all__ = [
    "EntryRow",
    "FormState",
    "ScreenView",
    "render_screen",
]

INPUT_LABEL = "Type something"
SAVE_LABEL = "Save entry"
UPDATE_LABEL = "Update entry"
LIST_HEADING = "Stored entries:"
EMPTY_MESSAGE = "No entries found."
ROW_ACTIONS = ("edit", "delete")


class FormState(Protocol):  # pragma: no cover - interface only
    draft_text: str
    editing_target: Optional[Entry]


class EntryRow(BaseModel):
    entry_id: str
    content: str
    timestamp: Optional[datetime] = None
    actions: List[str] = Field(default_factory=lambda: list(ROW_ACTIONS))


class ScreenView(BaseModel):
    input_label: str = INPUT_LABEL
    input_value: str = ""
    submit_label: str = SAVE_LABEL
    editing_entry_id: Optional[str] = None
    heading: Optional[str] = None
    empty_message: Optional[str] = None
    rows: List[EntryRow] = Field(default_factory=list)


def render_screen(entries: Sequence[Entry], form: FormState) -> ScreenView:
    """Build the view for ``entries`` (in received order) and the form state."""

    editing = form.editing_target
    rows = [
        EntryRow(
            entry_id=entry.entry_id,
            content=entry.content,
            timestamp=entry.timestamp,
        )
        for entry in entries
    ]
    return ScreenView(
        input_value=form.draft_text,
        submit_label=UPDATE_LABEL if editing is not None else SAVE_LABEL,
        editing_entry_id=editing.entry_id if editing is not None else None,
        heading=LIST_HEADING if rows else None,
        empty_message=None if rows else EMPTY_MESSAGE,
        rows=rows,
    )
