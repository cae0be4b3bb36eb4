"""Mood entry model."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.orm import Mapped, mapped_column

from carecircle.models.base import Base


class MoodEntry(Base):
    """A mood observation. ``timestamp`` is when the mood was observed."""

    __tablename__ = "mood_entries"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    patient_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    mood: Mapped[str] = mapped_column(String(30), nullable=False)
    intensity: Mapped[int | None] = mapped_column(Integer)
    note: Mapped[str | None] = mapped_column(Text())
    triggers: Mapped[list[str] | None] = mapped_column(ARRAY(String(100)))
    time_of_day: Mapped[str | None] = mapped_column(String(20))
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    recorded_by: Mapped[str | None] = mapped_column(String(100))

    def __repr__(self) -> str:
        return f"<MoodEntry {self.mood} at {self.timestamp}>"
