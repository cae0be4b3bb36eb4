"""Care record aggregation.

Builds one patient's complete record from the independent collections:

1. Read the patient row. Absent -> None; store failure -> StoreError.
2. Normalize it (``normalize_patient``).
3. Read every dependent collection concurrently. A collection whose read
   fails is logged and treated as empty, so a partial record is returned
   instead of none at all.
4. Derive the dashboard stats.
"""

import asyncio
import uuid
from collections.abc import Awaitable
from datetime import UTC, datetime
from typing import TypeVar

from carecircle.core.context import RequestContext
from carecircle.core.exceptions import StoreError, UnauthorizedError
from carecircle.core.roles import resolve_role
from carecircle.logging_config import get_logger
from carecircle.models.profile import UserRole
from carecircle.schemas.care_record import CareRecord
from carecircle.services.access import ensure_can_view_patient
from carecircle.services.normalize import (
    compute_dashboard_stats,
    normalize_appointment,
    normalize_care_team_member,
    normalize_medication,
    normalize_medication_log,
    normalize_memory,
    normalize_mood_entry,
    normalize_patient,
    normalize_task,
)
from carecircle.services.notes import fetch_notes
from carecircle.store.base import CareStore

logger = get_logger(__name__)

RECENT_NOTES_LIMIT = 5
MEMORIES_LIMIT = 10
RECENT_MOODS_LIMIT = 5

T = TypeVar("T")


def today_string(now: datetime | None = None) -> str:
    """Calendar date (UTC) used to select today's medication logs."""
    return (now or datetime.now(UTC)).date().isoformat()


async def _or_empty(category: str, patient_id: uuid.UUID, fetch: Awaitable[list[T]]) -> list[T]:
    try:
        return await fetch
    except StoreError as exc:
        logger.warning(
            "Collection unavailable, continuing with an empty list",
            category=category,
            patient_id=str(patient_id),
            error=exc.message,
        )
        return []


async def assemble_care_record(
    store: CareStore,
    patient_id: uuid.UUID,
    *,
    today: str | None = None,
) -> CareRecord | None:
    """Build the care record without an access check.

    Args:
        store: Store to read from
        patient_id: Patient to aggregate
        today: Date string for the medication log lookup; defaults to the
            current UTC date

    Returns:
        The record, or None if the patient does not exist

    Raises:
        StoreError: If the patient row itself cannot be read
    """
    row = await store.select_one("patients", id=patient_id)
    if row is None:
        return None

    patient = normalize_patient(row)
    scope = {"patient_id": patient_id}

    (
        task_rows,
        medication_rows,
        appointment_rows,
        notes,
        memory_rows,
        mood_rows,
        care_team_rows,
        log_rows,
    ) = await asyncio.gather(
        _or_empty(
            "tasks",
            patient_id,
            store.select("tasks", where={**scope, "is_active": True}),
        ),
        _or_empty(
            "medications",
            patient_id,
            store.select("medications", where={**scope, "is_active": True}),
        ),
        _or_empty("appointments", patient_id, store.select("appointments", where=scope)),
        _or_empty("notes", patient_id, fetch_notes(store, patient_id, RECENT_NOTES_LIMIT)),
        _or_empty(
            "memories",
            patient_id,
            store.select("memories", where=scope, limit=MEMORIES_LIMIT),
        ),
        _or_empty(
            "mood_entries",
            patient_id,
            store.select(
                "mood_entries",
                where=scope,
                order_by="timestamp",
                descending=True,
                limit=RECENT_MOODS_LIMIT,
            ),
        ),
        _or_empty(
            "care_team_members",
            patient_id,
            store.select("care_team_members", where=scope),
        ),
        _or_empty(
            "medication_logs",
            patient_id,
            store.select(
                "medication_logs",
                where={**scope, "date": today or today_string()},
            ),
        ),
    )

    tasks = [normalize_task(r) for r in task_rows]
    medications = [normalize_medication(r) for r in medication_rows]
    medication_names = {m.id: m.name for m in medications}
    medication_logs = [normalize_medication_log(r, medication_names) for r in log_rows]
    mood_entries = [normalize_mood_entry(r) for r in mood_rows]

    return CareRecord(
        patient=patient,
        tasks=tasks,
        medications=medications,
        medication_logs=medication_logs,
        mood_entries=mood_entries,
        memories=[normalize_memory(r) for r in memory_rows],
        care_team=[normalize_care_team_member(r) for r in care_team_rows],
        appointments=[normalize_appointment(r) for r in appointment_rows],
        notes=notes,
        dashboard_stats=compute_dashboard_stats(
            patient.id, tasks, medications, medication_logs, mood_entries
        ),
    )


async def load_care_record(
    ctx: RequestContext,
    patient_id: uuid.UUID,
    *,
    today: str | None = None,
) -> CareRecord | None:
    """Build one patient's care record for the calling principal.

    Returns None (not an error) when the patient does not exist.

    Raises:
        UnauthenticatedError: If there is no principal.
        UnauthorizedError: If the caller may not view this patient.
        StoreError: If the patient row cannot be read.
    """
    await ensure_can_view_patient(ctx, patient_id)
    return await assemble_care_record(ctx.store, patient_id, today=today)


async def list_patients_for_caregiver(
    ctx: RequestContext,
    caregiver_id: uuid.UUID | None = None,
    *,
    today: str | None = None,
) -> list[CareRecord]:
    """Care records of every patient linked to ``caregiver_id``.

    ``caregiver_id`` defaults to the calling principal.

    Without a session this returns an empty list instead of failing.
    Caregivers may list only their own patients; admins may list anyone's.
    Links pointing at patients that no longer exist are skipped.
    """
    if not ctx.is_authenticated:
        logger.info("No active session, returning empty patient list")
        return []

    principal = ctx.require_principal()
    caregiver_id = caregiver_id or principal.id
    role = await resolve_role(ctx)
    if role != UserRole.ADMIN and not (
        role == UserRole.CAREGIVER and principal.id == caregiver_id
    ):
        raise UnauthorizedError("You can only list your own patients")

    links = await ctx.store.select(
        "caregiver_patients",
        where={"caregiver_id": caregiver_id},
        order_by="created_at",
    )
    patient_ids = list(dict.fromkeys(link["patient_id"] for link in links))

    records = await asyncio.gather(
        *(assemble_care_record(ctx.store, pid, today=today) for pid in patient_ids)
    )

    logger.info(
        "Loaded caregiver patients",
        caregiver_id=str(caregiver_id),
        linked=len(patient_ids),
        loaded=sum(1 for r in records if r is not None),
    )

    return [record for record in records if record is not None]
