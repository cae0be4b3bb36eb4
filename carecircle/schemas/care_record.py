"""Care record schemas.

The canonical, fully defaulted shapes produced by
``carecircle.services.normalize`` from raw store rows.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from carecircle.schemas.note import NoteItem

DEFAULT_AFFIRMATION = "You are safe. You are loved. You are at home."
DEFAULT_LOCATION = "Unknown"
DEFAULT_MOOD_TREND = "stable"


class PatientPreferences(BaseModel):
    """Display and interaction preferences for the patient-facing app."""

    language: str = "en"
    font_size: str = "large"
    high_contrast: bool = False
    audio_enabled: bool = True
    notifications_enabled: bool = True
    tone: str = "gentle"


class EmergencyContactInfo(BaseModel):
    """Who to call first."""

    name: str = "Emergency Contact"
    relationship: str = "Family"
    phone: str = ""
    email: str | None = None


class PatientProfile(BaseModel):
    """A patient with every display default applied."""

    id: uuid.UUID
    user_id: uuid.UUID
    first_name: str
    last_name: str
    preferred_name: str
    date_of_birth: str | None = None
    photo_url: str | None = None
    location: str = DEFAULT_LOCATION
    address: str | None = None
    affirmation: str = DEFAULT_AFFIRMATION
    emergency_contact: EmergencyContactInfo
    familiar_faces: list[str] = Field(default_factory=list)
    diagnosis_date: str | None = None
    dementia_stage: str = "middle"
    preferences: PatientPreferences
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TaskItem(BaseModel):
    id: uuid.UUID
    patient_id: uuid.UUID
    title: str
    description: str | None = None
    icon: str | None = None
    time_of_day: str | None = None
    scheduled_time: str | None = None
    days_of_week: list[int] = Field(default_factory=list)
    status: str
    completed_at: str | None = None
    is_recurring: bool = True
    difficulty: str | None = None
    is_active: bool = True


class MedicationItem(BaseModel):
    id: uuid.UUID
    patient_id: uuid.UUID
    name: str
    generic_name: str | None = None
    dosage: str | None = None
    form: str | None = None
    instructions: str | None = None
    prescribed_by: str | None = None
    prescription_date: str | None = None
    side_effects: list[str] = Field(default_factory=list)
    schedule: list[str] = Field(default_factory=list)
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


class MedicationLogItem(BaseModel):
    id: uuid.UUID
    medication_id: uuid.UUID
    patient_id: uuid.UUID
    medication_name: str = ""
    scheduled_time: str | None = None
    taken_time: str | None = None
    status: str
    notes: str | None = None
    recorded_by: str | None = None
    date: str


class MoodEntryItem(BaseModel):
    id: uuid.UUID
    patient_id: uuid.UUID
    mood: str
    intensity: int | None = None
    note: str | None = None
    triggers: list[str] = Field(default_factory=list)
    time_of_day: str | None = None
    timestamp: datetime
    recorded_by: str | None = None


class MemoryItem(BaseModel):
    id: uuid.UUID
    patient_id: uuid.UUID
    title: str
    description: str | None = None
    photo_url: str | None = None
    audio_url: str | None = None
    date: str | None = None
    location: str | None = None
    people: list[str] = Field(default_factory=list)
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_favorite: bool = False
    created_at: datetime | None = None
    created_by: str | None = None


class CareTeamMemberItem(BaseModel):
    id: uuid.UUID
    patient_id: uuid.UUID
    name: str
    role: str | None = None
    specialty: str | None = None
    organization: str | None = None
    phone: str | None = None
    email: str | None = None
    is_primary: bool = False


class AppointmentItem(BaseModel):
    id: uuid.UUID
    patient_id: uuid.UUID
    title: str
    provider: str | None = None
    location: str | None = None
    date: str
    time: str | None = None
    notes: str | None = None
    reminder_set: bool = False
    created_at: datetime | None = None


class DashboardStats(BaseModel):
    """Indicators derived on every aggregation; never stored.

    Sleep, activity and behavior figures have no data source yet and are
    emitted as fixed defaults.
    """

    patient_id: uuid.UUID
    tasks_completed: int
    tasks_total: int
    tasks_completion_rate: int
    medications_taken: int
    medications_total: int
    medications_adherence_rate: int
    mood_today: str | None = None
    mood_trend: str = DEFAULT_MOOD_TREND
    sleep_hours: float = 7
    sleep_quality: str = "good"
    activities_completed: int = 0
    behavior_incidents: int = 0
    alerts: list[dict] = Field(default_factory=list)


class CareRecord(BaseModel):
    """One patient's state across every collection.

    The trailing collections (documents through nutrition_logs) have no
    backing table and are always empty; an empty list there does not mean
    the store reported no data.
    """

    patient: PatientProfile
    tasks: list[TaskItem] = Field(default_factory=list)
    medications: list[MedicationItem] = Field(default_factory=list)
    medication_logs: list[MedicationLogItem] = Field(default_factory=list)
    mood_entries: list[MoodEntryItem] = Field(default_factory=list)
    memories: list[MemoryItem] = Field(default_factory=list)
    care_team: list[CareTeamMemberItem] = Field(default_factory=list)
    appointments: list[AppointmentItem] = Field(default_factory=list)
    notes: list[NoteItem] = Field(default_factory=list)
    dashboard_stats: DashboardStats

    documents: list[dict] = Field(default_factory=list)
    reminders: list[dict] = Field(default_factory=list)
    vital_signs: list[dict] = Field(default_factory=list)
    sleep_entries: list[dict] = Field(default_factory=list)
    goals: list[dict] = Field(default_factory=list)
    alerts: list[dict] = Field(default_factory=list)
    safety_alerts: list[dict] = Field(default_factory=list)
    adl_assessments: list[dict] = Field(default_factory=list)
    nutrition_logs: list[dict] = Field(default_factory=list)
    behavior_logs: list[dict] = Field(default_factory=list)


class CareRecordListResponse(BaseModel):
    patients: list[CareRecord]
    count: int
