"""Note timeline schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from carecircle.models.patient_note import NoteType


class NoteItem(BaseModel):
    """A timeline note with its author's display name."""

    id: uuid.UUID
    patient_id: uuid.UUID
    caregiver_id: uuid.UUID | None
    caregiver_name: str
    note: str
    note_type: str
    created_at: datetime | None = None


class NoteCreate(BaseModel):
    """Request to add a note.

    Blank text is rejected by the service (after trimming), not here, so
    the same rule applies to non-HTTP callers.
    """

    note: str = Field(..., max_length=5000)
    note_type: NoteType = NoteType.GENERAL


class NoteListResponse(BaseModel):
    notes: list[NoteItem]
    count: int
