"""Patient model.

A patient row shares its id with the principal's profile. Deleting the
profile cascades to the patient and, through it, to every dependent
collection.
"""

import enum
import uuid

from sqlalchemy import Boolean, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from carecircle.models.base import Base, TimestampMixin


class DementiaStage(str, enum.Enum):
    """Coarse severity classification used to pick UI tone."""

    EARLY = "early"
    MIDDLE = "middle"
    LATE = "late"


class Patient(Base, TimestampMixin):
    """Care profile for a person living with cognitive impairment.

    Nearly every column is nullable: rows are filled in gradually by
    caregivers, and the aggregator supplies defaults when reading.
    """

    __tablename__ = "patients"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        primary_key=True,
    )

    first_name: Mapped[str | None] = mapped_column(String(100))
    last_name: Mapped[str | None] = mapped_column(String(100))
    preferred_name: Mapped[str | None] = mapped_column(String(100))
    date_of_birth: Mapped[str | None] = mapped_column(String(10))
    photo_url: Mapped[str | None] = mapped_column(Text())
    location: Mapped[str | None] = mapped_column(String(255))
    address: Mapped[str | None] = mapped_column(Text())
    affirmation: Mapped[str | None] = mapped_column(Text())
    diagnosis_date: Mapped[str | None] = mapped_column(String(10))
    dementia_stage: Mapped[str | None] = mapped_column(String(10))

    emergency_contact_name: Mapped[str | None] = mapped_column(String(100))
    emergency_contact_relationship: Mapped[str | None] = mapped_column(String(50))
    emergency_contact_phone: Mapped[str | None] = mapped_column(String(30))
    emergency_contact_email: Mapped[str | None] = mapped_column(String(255))

    preferences_language: Mapped[str | None] = mapped_column(String(10))
    preferences_font_size: Mapped[str | None] = mapped_column(String(20))
    preferences_high_contrast: Mapped[bool | None] = mapped_column(Boolean)
    preferences_audio_enabled: Mapped[bool | None] = mapped_column(Boolean)
    preferences_notifications_enabled: Mapped[bool | None] = mapped_column(Boolean)
    preferences_tone: Mapped[str | None] = mapped_column(String(20))

    def __repr__(self) -> str:
        return f"<Patient {self.first_name} {self.last_name} ({self.id})>"
