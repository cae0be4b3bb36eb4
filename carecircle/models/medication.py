"""Medication and daily dose log models."""

import uuid

from sqlalchemy import Boolean, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.orm import Mapped, mapped_column

from carecircle.models.base import Base, CreatedAtMixin, TimestampMixin


class Medication(Base, TimestampMixin):
    """A prescribed medication. Inactive rows are kept for history."""

    __tablename__ = "medications"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    patient_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    generic_name: Mapped[str | None] = mapped_column(String(200))
    dosage: Mapped[str | None] = mapped_column(String(100))
    form: Mapped[str | None] = mapped_column(String(50))
    instructions: Mapped[str | None] = mapped_column(Text())
    prescribed_by: Mapped[str | None] = mapped_column(String(200))
    prescription_date: Mapped[str | None] = mapped_column(String(10))
    side_effects: Mapped[list[str] | None] = mapped_column(ARRAY(String(200)))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    def __repr__(self) -> str:
        return f"<Medication {self.name!r} active={self.is_active}>"


class MedicationLog(Base, CreatedAtMixin):
    """One scheduled dose and whether it was taken.

    ``date`` is the calendar day (YYYY-MM-DD) the dose belongs to.
    """

    __tablename__ = "medication_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    medication_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("medications.id", ondelete="CASCADE"),
        nullable=False,
    )
    patient_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    scheduled_time: Mapped[str | None] = mapped_column(String(10))
    taken_time: Mapped[str | None] = mapped_column(String(40))
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text())
    recorded_by: Mapped[str | None] = mapped_column(String(100))
    date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<MedicationLog(medication={self.medication_id}, {self.date}, {self.status})>"
