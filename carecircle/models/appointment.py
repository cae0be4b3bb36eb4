"""Appointment model."""

import uuid

from sqlalchemy import Boolean, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from carecircle.models.base import Base, CreatedAtMixin


class Appointment(Base, CreatedAtMixin):
    """A scheduled visit. ``date`` and ``time`` are local wall-clock strings."""

    __tablename__ = "appointments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    patient_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    provider: Mapped[str | None] = mapped_column(String(200))
    location: Mapped[str | None] = mapped_column(String(255))
    date: Mapped[str] = mapped_column(String(10), nullable=False)
    time: Mapped[str | None] = mapped_column(String(10))
    notes: Mapped[str | None] = mapped_column(Text())
    reminder_set: Mapped[bool] = mapped_column(Boolean, default=False)

    def __repr__(self) -> str:
        return f"<Appointment {self.title!r} on {self.date}>"
