"""Principal profile model.

One row per authenticated principal. The ``role`` column is the only
stored authorization signal; the admin allow-list lives in configuration.
"""

import enum
import uuid

from sqlalchemy import Enum, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from carecircle.models.base import Base, TimestampMixin


class UserRole(str, enum.Enum):
    """Roles a principal can hold.

    - PATIENT: The person receiving care; also the role after revocation
    - CAREGIVER: Can view and manage linked patients
    - ADMIN: Manages caregivers, assignments and the audit trail
    """

    PATIENT = "patient"
    CAREGIVER = "caregiver"
    ADMIN = "admin"


class Profile(Base, TimestampMixin):
    """A principal known to the external identity provider."""

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str | None] = mapped_column(
        String(255),
        unique=True,
        nullable=True,
        index=True,
    )
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        Enum(
            UserRole,
            name="userrole",
            create_type=False,  # Already created in migration
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
        default=UserRole.PATIENT,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Profile {self.email} ({self.role.value})>"
