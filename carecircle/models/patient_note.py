"""Patient note model: the append-only caregiver timeline."""

import enum
import uuid

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from carecircle.models.base import Base, CreatedAtMixin


class NoteType(str, enum.Enum):
    """Category of a timeline note."""

    GENERAL = "general"
    MEDICAL = "medical"
    MOOD = "mood"
    ACTIVITY = "activity"
    BEHAVIOR = "behavior"


class PatientNote(Base, CreatedAtMixin):
    """Free-text note written by a caregiver about a patient."""

    __tablename__ = "patient_notes"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    patient_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    caregiver_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    note: Mapped[str] = mapped_column(Text(), nullable=False)
    note_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=NoteType.GENERAL.value,
    )

    def __repr__(self) -> str:
        return f"<PatientNote(patient={self.patient_id}, type={self.note_type})>"
