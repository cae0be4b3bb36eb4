# Database Models
from carecircle.models.appointment import Appointment
from carecircle.models.audit_log import AuditLog
from carecircle.models.base import Base, CreatedAtMixin, TimestampMixin
from carecircle.models.care_team_member import CareTeamMember
from carecircle.models.caregiver_link import CaregiverLink
from carecircle.models.medication import Medication, MedicationLog
from carecircle.models.memory import Memory
from carecircle.models.mood_entry import MoodEntry
from carecircle.models.patient import DementiaStage, Patient
from carecircle.models.patient_note import NoteType, PatientNote
from carecircle.models.profile import Profile, UserRole
from carecircle.models.task import Task

__all__ = [
    "Appointment",
    "AuditLog",
    "Base",
    "CareTeamMember",
    "CaregiverLink",
    "CreatedAtMixin",
    "DementiaStage",
    "Medication",
    "MedicationLog",
    "Memory",
    "MoodEntry",
    "NoteType",
    "Patient",
    "PatientNote",
    "Profile",
    "Task",
    "TimestampMixin",
    "UserRole",
]
