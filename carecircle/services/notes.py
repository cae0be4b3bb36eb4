"""Patient note timeline.

Notes are listed newest first and attributed to their author by name.
"""

import uuid

from carecircle.core.context import RequestContext
from carecircle.core.exceptions import NotFoundError, UnauthorizedError, ValidationError
from carecircle.core.roles import is_admin
from carecircle.logging_config import get_logger
from carecircle.models.patient_note import NoteType
from carecircle.schemas.note import NoteItem
from carecircle.services.access import ensure_can_view_patient
from carecircle.services.normalize import normalize_note
from carecircle.store.base import CareStore, Embed

logger = get_logger(__name__)

_AUTHOR = Embed("author", "profiles", local_key="caregiver_id", foreign_key="id")


async def fetch_notes(
    store: CareStore,
    patient_id: uuid.UUID,
    limit: int | None = None,
) -> list[NoteItem]:
    """Read a patient's notes without an access check.

    Used by the aggregator after it has already checked access.
    """
    rows = await store.select_related(
        "patient_notes",
        [_AUTHOR],
        where={"patient_id": patient_id},
        order_by="created_at",
        descending=True,
        limit=limit,
    )
    return [normalize_note(row, row.get("author")) for row in rows]


async def list_notes(
    ctx: RequestContext,
    patient_id: uuid.UUID,
    limit: int | None = None,
) -> list[NoteItem]:
    """List a patient's notes, newest first."""
    await ensure_can_view_patient(ctx, patient_id)
    return await fetch_notes(ctx.store, patient_id, limit)


async def add_note(
    ctx: RequestContext,
    patient_id: uuid.UUID,
    author_id: uuid.UUID,
    text: str,
    note_type: NoteType | str = NoteType.GENERAL,
) -> NoteItem:
    """Append a note to the patient's timeline.

    Raises:
        ValidationError: If ``text`` is blank after trimming or the note
            type is unknown. Nothing is written in that case.
    """
    await ensure_can_view_patient(ctx, patient_id)

    note = (text or "").strip()
    if not note:
        raise ValidationError("Note text must not be empty")

    try:
        kind = NoteType(note_type)
    except ValueError:
        raise ValidationError(f"Unknown note type: {note_type}") from None

    row = await ctx.store.insert(
        "patient_notes",
        {
            "patient_id": patient_id,
            "caregiver_id": author_id,
            "note": note,
            "note_type": kind.value,
        },
    )
    author = await ctx.store.select_one("profiles", id=author_id)

    logger.info(
        "Added patient note",
        patient_id=str(patient_id),
        note_id=str(row["id"]),
        note_type=kind.value,
    )

    return normalize_note(row, author)


async def delete_note(ctx: RequestContext, note_id: uuid.UUID) -> None:
    """Hard-delete a note. Callers must confirm before calling.

    Only the note's author or an admin may delete it.

    Raises:
        NotFoundError: If the note does not exist.
        UnauthorizedError: If the caller is neither author nor admin.
    """
    principal = ctx.require_principal()

    row = await ctx.store.select_one("patient_notes", id=note_id)
    if row is None:
        raise NotFoundError("Note not found")

    if row.get("caregiver_id") != principal.id and not await is_admin(ctx):
        logger.warning(
            "Refused note deletion by non-author",
            note_id=str(note_id),
            principal_id=str(principal.id),
        )
        raise UnauthorizedError("Only the note's author or an admin may delete it")

    await ctx.store.delete("patient_notes", where={"id": note_id})

    logger.info("Deleted patient note", note_id=str(note_id))
