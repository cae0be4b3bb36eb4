"""Patient note timeline router."""

import uuid

from fastapi import APIRouter, Depends, Query, status

from carecircle.core.auth import CareContext
from carecircle.core.confirmation import require_confirmation
from carecircle.schemas.note import NoteCreate, NoteItem, NoteListResponse
from carecircle.services.notes import add_note, delete_note, list_notes

router = APIRouter(prefix="/api", tags=["notes"])


@router.get("/patients/{patient_id}/notes", response_model=NoteListResponse)
async def get_notes(
    patient_id: uuid.UUID,
    ctx: CareContext,
    limit: int | None = Query(default=None, ge=1, le=500),
) -> NoteListResponse:
    """A patient's notes, newest first."""
    notes = await list_notes(ctx, patient_id, limit)
    return NoteListResponse(notes=notes, count=len(notes))


@router.post(
    "/patients/{patient_id}/notes",
    response_model=NoteItem,
    status_code=status.HTTP_201_CREATED,
)
async def post_note(
    patient_id: uuid.UUID,
    body: NoteCreate,
    ctx: CareContext,
) -> NoteItem:
    """Add a note authored by the caller."""
    principal = ctx.require_principal()
    return await add_note(ctx, patient_id, principal.id, body.note, body.note_type)


@router.delete(
    "/notes/{note_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_confirmation)],
)
async def remove_note(note_id: uuid.UUID, ctx: CareContext) -> None:
    """Delete a note. Only its author or an admin may do this."""
    await delete_note(ctx, note_id)
