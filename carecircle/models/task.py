"""Daily task model."""

import uuid

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.orm import Mapped, mapped_column

from carecircle.models.base import Base, TimestampMixin


class Task(Base, TimestampMixin):
    """A routine the patient is helped through (e.g. "Brush teeth").

    ``status`` is "pending" or "completed"; only active tasks are
    aggregated into the care record.
    """

    __tablename__ = "tasks"

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
    description: Mapped[str | None] = mapped_column(Text())
    icon: Mapped[str | None] = mapped_column(String(50))
    time_of_day: Mapped[str | None] = mapped_column(String(20))
    scheduled_time: Mapped[str | None] = mapped_column(String(10))
    days_of_week: Mapped[list[int] | None] = mapped_column(ARRAY(Integer))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    completed_at: Mapped[str | None] = mapped_column(String(40))
    is_recurring: Mapped[bool] = mapped_column(Boolean, default=True)
    difficulty: Mapped[str | None] = mapped_column(String(20))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    def __repr__(self) -> str:
        return f"<Task {self.title!r} ({self.status})>"
