"""Admin console schemas: caregivers, assignments and the audit trail."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from carecircle.models.profile import UserRole


class UserSummary(BaseModel):
    """A principal as listed in the admin console."""

    id: uuid.UUID
    email: str | None
    first_name: str | None
    last_name: str | None
    full_name: str
    role: UserRole
    created_at: datetime | None = None


class CaregiverSummary(UserSummary):
    """A caregiver with the number of link rows naming them."""

    patients_count: int = 0


class CaregiverListResponse(BaseModel):
    caregivers: list[CaregiverSummary]
    count: int


class UserListResponse(BaseModel):
    users: list[UserSummary]
    count: int


class AssignedCaregiver(BaseModel):
    id: uuid.UUID
    full_name: str
    email: str | None


class PatientAssignment(BaseModel):
    """A patient with at most one assigned caregiver (None = unassigned)."""

    id: uuid.UUID
    first_name: str | None
    last_name: str | None
    full_name: str
    email: str | None
    preferred_name: str | None = None
    dementia_stage: str | None = None
    date_of_birth: str | None = None
    created_at: datetime | None = None
    caregiver: AssignedCaregiver | None = None


class PatientAssignmentListResponse(BaseModel):
    patients: list[PatientAssignment]
    count: int


class ReassignRequest(BaseModel):
    """Target caregiver; null or omitted unassigns the patient."""

    caregiver_id: uuid.UUID | None = None


class CaregiverLinkItem(BaseModel):
    id: uuid.UUID
    caregiver_id: uuid.UUID
    patient_id: uuid.UUID
    relationship: str | None = None
    is_primary: bool = False
    created_at: datetime | None = None


class ReassignResponse(BaseModel):
    patient_id: uuid.UUID
    link: CaregiverLinkItem | None


class AuditLogItem(BaseModel):
    """An audit entry with the actor's display name ("System" if unknown)."""

    id: uuid.UUID
    created_at: datetime | None
    action: str
    details: dict[str, Any] | None = None
    ip_address: str | None = None
    user_id: uuid.UUID | None = None
    user_display: str


class AuditLogListResponse(BaseModel):
    entries: list[AuditLogItem]
    count: int
