"""Caregiver router: care records and patient management."""

import uuid

from fastapi import APIRouter, HTTPException, Query, status

from carecircle.core.auth import CareContext
from carecircle.schemas.care_record import CareRecord, CareRecordListResponse, PatientProfile
from carecircle.schemas.patient import PatientCreate, PatientUpdate
from carecircle.services.care_record import list_patients_for_caregiver, load_care_record
from carecircle.services.relationships import create_patient, update_patient

router = APIRouter(prefix="/api/caregivers", tags=["caregivers"])


@router.get("/patients", response_model=CareRecordListResponse)
async def get_my_patients(
    ctx: CareContext,
    caregiver_id: uuid.UUID | None = Query(
        default=None,
        description="Admins only: list another caregiver's patients",
    ),
) -> CareRecordListResponse:
    """Care records of every patient linked to the caregiver.

    Returns an empty list when there is no session.
    """
    records = await list_patients_for_caregiver(ctx, caregiver_id)
    return CareRecordListResponse(patients=records, count=len(records))


@router.post(
    "/patients",
    response_model=PatientProfile,
    status_code=status.HTTP_201_CREATED,
)
async def add_patient(
    body: PatientCreate,
    ctx: CareContext,
    caregiver_id: uuid.UUID | None = Query(
        default=None,
        description="Admins only: link the new patient to this caregiver",
    ),
) -> PatientProfile:
    """Create a patient linked to the calling caregiver."""
    principal = ctx.require_principal()
    return await create_patient(ctx, body, caregiver_id or principal.id)


@router.get("/patients/{patient_id}", response_model=CareRecord)
async def get_patient_record(patient_id: uuid.UUID, ctx: CareContext) -> CareRecord:
    """One patient's full care record."""
    record = await load_care_record(ctx, patient_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Patient not found",
        )
    return record


@router.patch("/patients/{patient_id}", response_model=PatientProfile)
async def patch_patient(
    patient_id: uuid.UUID,
    body: PatientUpdate,
    ctx: CareContext,
) -> PatientProfile:
    """Update the supplied fields of a patient's profile."""
    return await update_patient(ctx, patient_id, body)
