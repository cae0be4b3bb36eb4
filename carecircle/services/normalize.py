"""Raw store rows -> canonical care record shapes.

Every field-level default of the care record is applied here, so the
rules can be unit-tested without a store.
"""

from collections.abc import Mapping
from typing import Any

from carecircle.schemas.care_record import (
    DEFAULT_AFFIRMATION,
    DEFAULT_LOCATION,
    DEFAULT_MOOD_TREND,
    AppointmentItem,
    CareTeamMemberItem,
    DashboardStats,
    EmergencyContactInfo,
    MedicationItem,
    MedicationLogItem,
    MemoryItem,
    MoodEntryItem,
    PatientPreferences,
    PatientProfile,
    TaskItem,
)
from carecircle.schemas.note import NoteItem

Row = Mapping[str, Any]

UNKNOWN_AUTHOR = "Unknown"
DEFAULT_DEMENTIA_STAGE = "middle"
TASK_COMPLETED = "completed"
DOSE_TAKEN = "taken"


def _text(value: str | None, default: str) -> str:
    """Blank or missing text falls back to ``default``."""
    return value if value else default


def _flag(value: bool | None, default: bool) -> bool:
    """Only a missing flag falls back; a stored False is kept."""
    return default if value is None else bool(value)


def percent(numerator: int, denominator: int) -> int:
    """``round(100 * numerator / denominator)`` rounding halves up; 0 if empty.

    Integer arithmetic avoids both float error and Python's
    round-half-to-even (1/8 must give 13, not 12).
    """
    if denominator <= 0:
        return 0
    return (200 * numerator + denominator) // (2 * denominator)


def full_name(first_name: str | None, last_name: str | None) -> str:
    return " ".join(part for part in (first_name, last_name) if part)


def author_name(profile: Row | None) -> str:
    """Display name of a note author, "Unknown" if the row is gone."""
    if not profile:
        return UNKNOWN_AUTHOR
    return full_name(profile.get("first_name"), profile.get("last_name")) or UNKNOWN_AUTHOR


def normalize_patient(row: Row) -> PatientProfile:
    """Build a PatientProfile from a ``patients`` row.

    Defaults: preferred name -> first name, location -> "Unknown",
    affirmation -> the standard reassurance, stage -> "middle",
    preferences -> en / large / no high contrast / audio on /
    notifications on / gentle.
    """
    first_name = row.get("first_name") or ""

    return PatientProfile(
        id=row["id"],
        user_id=row["id"],
        first_name=first_name,
        last_name=row.get("last_name") or "",
        preferred_name=_text(row.get("preferred_name"), first_name),
        date_of_birth=row.get("date_of_birth") or None,
        photo_url=row.get("photo_url") or None,
        location=_text(row.get("location"), DEFAULT_LOCATION),
        address=row.get("address") or None,
        affirmation=_text(row.get("affirmation"), DEFAULT_AFFIRMATION),
        emergency_contact=EmergencyContactInfo(
            name=_text(row.get("emergency_contact_name"), "Emergency Contact"),
            relationship=_text(row.get("emergency_contact_relationship"), "Family"),
            phone=row.get("emergency_contact_phone") or "",
            email=row.get("emergency_contact_email") or None,
        ),
        diagnosis_date=row.get("diagnosis_date") or None,
        dementia_stage=_text(row.get("dementia_stage"), DEFAULT_DEMENTIA_STAGE),
        preferences=PatientPreferences(
            language=_text(row.get("preferences_language"), "en"),
            font_size=_text(row.get("preferences_font_size"), "large"),
            high_contrast=_flag(row.get("preferences_high_contrast"), False),
            audio_enabled=_flag(row.get("preferences_audio_enabled"), True),
            notifications_enabled=_flag(
                row.get("preferences_notifications_enabled"), True
            ),
            tone=_text(row.get("preferences_tone"), "gentle"),
        ),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def normalize_task(row: Row) -> TaskItem:
    return TaskItem(
        id=row["id"],
        patient_id=row["patient_id"],
        title=row.get("title") or "",
        description=row.get("description"),
        icon=row.get("icon"),
        time_of_day=row.get("time_of_day"),
        scheduled_time=row.get("scheduled_time"),
        days_of_week=row.get("days_of_week") or [],
        status=row.get("status") or "pending",
        completed_at=row.get("completed_at"),
        is_recurring=_flag(row.get("is_recurring"), True),
        difficulty=row.get("difficulty"),
        is_active=_flag(row.get("is_active"), True),
    )


def normalize_medication(row: Row) -> MedicationItem:
    return MedicationItem(
        id=row["id"],
        patient_id=row["patient_id"],
        name=row.get("name") or "",
        generic_name=row.get("generic_name"),
        dosage=row.get("dosage"),
        form=row.get("form"),
        instructions=row.get("instructions"),
        prescribed_by=row.get("prescribed_by"),
        prescription_date=row.get("prescription_date"),
        side_effects=row.get("side_effects") or [],
        is_active=_flag(row.get("is_active"), True),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def normalize_medication_log(
    row: Row, medication_names: Mapping[Any, str] | None = None
) -> MedicationLogItem:
    """``medication_name`` comes from the active medication list when known."""
    names = medication_names or {}
    return MedicationLogItem(
        id=row["id"],
        medication_id=row["medication_id"],
        patient_id=row["patient_id"],
        medication_name=names.get(row["medication_id"], ""),
        scheduled_time=row.get("scheduled_time"),
        taken_time=row.get("taken_time"),
        status=row.get("status") or "",
        notes=row.get("notes"),
        recorded_by=row.get("recorded_by"),
        date=row.get("date") or "",
    )


def normalize_mood_entry(row: Row) -> MoodEntryItem:
    return MoodEntryItem(
        id=row["id"],
        patient_id=row["patient_id"],
        mood=row.get("mood") or "",
        intensity=row.get("intensity"),
        note=row.get("note"),
        triggers=row.get("triggers") or [],
        time_of_day=row.get("time_of_day"),
        timestamp=row["timestamp"],
        recorded_by=row.get("recorded_by"),
    )


def normalize_memory(row: Row) -> MemoryItem:
    return MemoryItem(
        id=row["id"],
        patient_id=row["patient_id"],
        title=row.get("title") or "",
        description=row.get("description"),
        photo_url=row.get("photo_url"),
        audio_url=row.get("audio_url"),
        date=row.get("date"),
        location=row.get("location"),
        people=row.get("people") or [],
        category=row.get("category"),
        tags=row.get("tags") or [],
        is_favorite=_flag(row.get("is_favorite"), False),
        created_at=row.get("created_at"),
        created_by=row.get("created_by"),
    )


def normalize_care_team_member(row: Row) -> CareTeamMemberItem:
    return CareTeamMemberItem(
        id=row["id"],
        patient_id=row["patient_id"],
        name=row.get("name") or "",
        role=row.get("role"),
        specialty=row.get("specialty"),
        organization=row.get("organization"),
        phone=row.get("phone"),
        email=row.get("email"),
        is_primary=_flag(row.get("is_primary"), False),
    )


def normalize_appointment(row: Row) -> AppointmentItem:
    return AppointmentItem(
        id=row["id"],
        patient_id=row["patient_id"],
        title=row.get("title") or "",
        provider=row.get("provider"),
        location=row.get("location"),
        date=row.get("date") or "",
        time=row.get("time"),
        notes=row.get("notes"),
        reminder_set=_flag(row.get("reminder_set"), False),
        created_at=row.get("created_at"),
    )


def normalize_note(row: Row, author: Row | None) -> NoteItem:
    return NoteItem(
        id=row["id"],
        patient_id=row["patient_id"],
        caregiver_id=row.get("caregiver_id"),
        caregiver_name=author_name(author),
        note=row.get("note") or "",
        note_type=row.get("note_type") or "general",
        created_at=row.get("created_at"),
    )


def compute_dashboard_stats(
    patient_id: Any,
    tasks: list[TaskItem],
    medications: list[MedicationItem],
    medication_logs: list[MedicationLogItem],
    mood_entries: list[MoodEntryItem],
) -> DashboardStats:
    """Derive the dashboard indicators.

    Adherence divides today's "taken" log rows by the number of active
    medications, not by scheduled doses. A medication taken several times
    a day therefore counts more than once in the numerator.

    ``mood_entries`` must be newest first; the first entry is today's mood.
    The trend is always "stable"; no trend analysis is done.
    """
    tasks_completed = sum(1 for t in tasks if t.status == TASK_COMPLETED)
    medications_taken = sum(1 for log in medication_logs if log.status == DOSE_TAKEN)

    return DashboardStats(
        patient_id=patient_id,
        tasks_completed=tasks_completed,
        tasks_total=len(tasks),
        tasks_completion_rate=percent(tasks_completed, len(tasks)),
        medications_taken=medications_taken,
        medications_total=len(medications),
        medications_adherence_rate=percent(medications_taken, len(medications)),
        mood_today=mood_entries[0].mood if mood_entries else None,
        mood_trend=DEFAULT_MOOD_TREND,
    )
