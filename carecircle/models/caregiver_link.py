"""Caregiver-to-patient link model.

The table is many-to-many capable: a patient may have several rows. Readers
treat the most recent row as the authoritative assignment.
"""

import uuid

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from carecircle.models.base import Base, CreatedAtMixin

DEFAULT_RELATIONSHIP = "Primary Caregiver"


class CaregiverLink(Base, CreatedAtMixin):
    """Links a caregiver principal to a patient.

    Unique constraint on (caregiver_id, patient_id) prevents duplicates.
    """

    __tablename__ = "caregiver_patients"
    __table_args__ = (
        UniqueConstraint("caregiver_id", "patient_id", name="uq_caregiver_patient"),
        CheckConstraint("caregiver_id != patient_id", name="ck_no_self_link"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    caregiver_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    patient_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    relationship: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False)

    def __repr__(self) -> str:
        return (
            f"<CaregiverLink(caregiver={self.caregiver_id}, patient={self.patient_id})>"
        )
