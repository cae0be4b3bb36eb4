"""Admin console router: caregiver grants, patient assignment, audit trail.

Every endpoint is admin-only; the role check happens in the services.
"""

import uuid

from fastapi import APIRouter, Depends, Query, status

from carecircle.core.auth import CareContext
from carecircle.core.confirmation import require_confirmation
from carecircle.schemas.admin import (
    AuditLogListResponse,
    CaregiverListResponse,
    PatientAssignmentListResponse,
    ReassignRequest,
    ReassignResponse,
    UserListResponse,
    UserSummary,
)
from carecircle.services import audit_service
from carecircle.services.relationships import (
    delete_patient,
    grant_caregiver_role,
    list_all_patients_with_assignment,
    list_caregivers,
    list_grantable_users,
    reassign_patient,
    revoke_caregiver_role,
)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/caregivers", response_model=CaregiverListResponse)
async def get_caregivers(ctx: CareContext) -> CaregiverListResponse:
    """List caregivers, newest first, with their linked patient counts."""
    caregivers = await list_caregivers(ctx)
    return CaregiverListResponse(caregivers=caregivers, count=len(caregivers))


@router.post("/caregivers/{user_id}", response_model=UserSummary)
async def grant_caregiver(user_id: uuid.UUID, ctx: CareContext) -> UserSummary:
    """Grant the caregiver role to an existing user."""
    return await grant_caregiver_role(ctx, user_id)


@router.delete(
    "/caregivers/{user_id}",
    response_model=UserSummary,
    dependencies=[Depends(require_confirmation)],
)
async def revoke_caregiver(user_id: uuid.UUID, ctx: CareContext) -> UserSummary:
    """Revoke the caregiver role. Existing patient links are kept."""
    return await revoke_caregiver_role(ctx, user_id)


@router.get("/users", response_model=UserListResponse)
async def get_grantable_users(
    ctx: CareContext,
    search: str | None = Query(default=None, max_length=255),
) -> UserListResponse:
    """Users who could be made caregivers, optionally filtered by name or email."""
    users = await list_grantable_users(ctx, search)
    return UserListResponse(users=users, count=len(users))


@router.get("/patients", response_model=PatientAssignmentListResponse)
async def get_patients(ctx: CareContext) -> PatientAssignmentListResponse:
    """List every patient with its assigned caregiver."""
    patients = await list_all_patients_with_assignment(ctx)
    return PatientAssignmentListResponse(patients=patients, count=len(patients))


@router.put("/patients/{patient_id}/caregiver", response_model=ReassignResponse)
async def put_patient_caregiver(
    patient_id: uuid.UUID,
    body: ReassignRequest,
    ctx: CareContext,
) -> ReassignResponse:
    """Assign a patient to a caregiver; a null caregiver_id unassigns it."""
    return await reassign_patient(ctx, patient_id, body.caregiver_id)


@router.delete(
    "/patients/{patient_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_confirmation)],
)
async def remove_patient(patient_id: uuid.UUID, ctx: CareContext) -> None:
    """Delete a patient and all of their care data."""
    await delete_patient(ctx, patient_id)


@router.get("/audit", response_model=AuditLogListResponse)
async def get_audit_log(
    ctx: CareContext,
    limit: int = Query(default=audit_service.DEFAULT_AUDIT_LIMIT, ge=1, le=500),
) -> AuditLogListResponse:
    """Most recent audit entries, newest first."""
    entries = await audit_service.list_recent(ctx, limit)
    return AuditLogListResponse(entries=entries, count=len(entries))
