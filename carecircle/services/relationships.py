"""Caregiver/patient relationship management.

Admin console operations (caregiver grants, patient assignment, patient
deletion) plus the caregiver-facing patient create and update flows.

Admin mutations are written to the audit trail after they succeed.
"""

import uuid
from typing import Any

from pydantic import BaseModel

from carecircle.core.context import RequestContext
from carecircle.core.exceptions import NotFoundError, UnauthorizedError, ValidationError
from carecircle.core.roles import require_admin, require_roles
from carecircle.logging_config import get_logger
from carecircle.models.caregiver_link import DEFAULT_RELATIONSHIP
from carecircle.models.profile import UserRole
from carecircle.schemas.admin import (
    AssignedCaregiver,
    CaregiverLinkItem,
    CaregiverSummary,
    PatientAssignment,
    ReassignResponse,
    UserSummary,
)
from carecircle.schemas.care_record import PatientProfile
from carecircle.schemas.patient import PatientCreate, PatientUpdate
from carecircle.services.access import ensure_can_view_patient
from carecircle.services.audit_service import record
from carecircle.services.normalize import full_name, normalize_patient
from carecircle.store.base import Embed, Row

logger = get_logger(__name__)

_NESTED_PREFIXES = {
    "emergency_contact": "emergency_contact_",
    "preferences": "preferences_",
}


def _user_summary(row: Row) -> UserSummary:
    return UserSummary(
        id=row["id"],
        email=row.get("email"),
        first_name=row.get("first_name"),
        last_name=row.get("last_name"),
        full_name=full_name(row.get("first_name"), row.get("last_name")),
        role=UserRole(row["role"]),
        created_at=row.get("created_at"),
    )


def filter_users(users: list[UserSummary], search: str | None) -> list[UserSummary]:
    """Case-insensitive substring match on full name or email."""
    needle = (search or "").strip().lower()
    if not needle:
        return users
    return [
        user
        for user in users
        if needle in user.full_name.lower() or needle in (user.email or "").lower()
    ]


def _newest_link(links: list[Row]) -> Row | None:
    """The authoritative link of a patient: the most recently created one."""
    if not links:
        return None
    return max(links, key=lambda link: link["created_at"])


def _patient_values(data: BaseModel, *, exclude_unset: bool) -> dict[str, Any]:
    """Flatten a create/update payload into ``patients`` columns."""
    fields = data.model_dump(
        mode="json",
        exclude_unset=exclude_unset,
        exclude={"email", "relationship"},
    )

    values: dict[str, Any] = {}
    for key, value in fields.items():
        prefix = _NESTED_PREFIXES.get(key)
        if prefix is None:
            values[key] = value
        elif value:
            values.update({f"{prefix}{name}": item for name, item in value.items()})
    return values


def _require_name(value: str | None, label: str) -> str:
    name = (value or "").strip()
    if not name:
        raise ValidationError(f"{label} is required")
    return name


# Caregiver grants


async def list_caregivers(ctx: RequestContext) -> list[CaregiverSummary]:
    """Every caregiver, newest first, with the number of links naming them."""
    await require_admin(ctx)

    rows = await ctx.store.select_related(
        "profiles",
        [
            Embed(
                "patients_count",
                "caregiver_patients",
                local_key="id",
                foreign_key="caregiver_id",
                count=True,
            )
        ],
        where={"role": UserRole.CAREGIVER},
        order_by="created_at",
        descending=True,
    )

    return [
        CaregiverSummary(
            **_user_summary(row).model_dump(),
            patients_count=row.get("patients_count") or 0,
        )
        for row in rows
    ]


async def list_grantable_users(
    ctx: RequestContext,
    search: str | None = None,
) -> list[UserSummary]:
    """Principals who are not caregivers yet, ordered by email."""
    await require_admin(ctx)

    rows = await ctx.store.select(
        "profiles",
        where_not={"role": UserRole.CAREGIVER},
        order_by="email",
    )
    return filter_users([_user_summary(row) for row in rows], search)


async def _set_role(
    ctx: RequestContext,
    principal_id: uuid.UUID,
    role: UserRole,
    action: str,
) -> UserSummary:
    await require_admin(ctx)

    profile = await ctx.store.select_one("profiles", id=principal_id)
    if profile is None:
        raise NotFoundError("User not found")

    previous = UserRole(profile["role"])
    await ctx.store.update("profiles", {"role": role}, where={"id": principal_id})

    logger.info(
        "Changed user role",
        principal_id=str(principal_id),
        previous_role=previous.value,
        new_role=role.value,
    )
    await record(
        ctx,
        action,
        target_user_id=principal_id,
        email=profile.get("email"),
        previous_role=previous.value,
    )

    return _user_summary({**profile, "role": role})


async def grant_caregiver_role(
    ctx: RequestContext,
    principal_id: uuid.UUID,
) -> UserSummary:
    """Make a principal a caregiver. Granting twice is harmless."""
    return await _set_role(ctx, principal_id, UserRole.CAREGIVER, "caregiver.granted")


async def revoke_caregiver_role(
    ctx: RequestContext,
    principal_id: uuid.UUID,
) -> UserSummary:
    """Demote a caregiver to patient.

    Their link rows are kept. The access checks stop honoring them because
    the principal no longer holds the caregiver role.
    """
    return await _set_role(ctx, principal_id, UserRole.PATIENT, "caregiver.revoked")


# Patient assignment


async def list_all_patients_with_assignment(
    ctx: RequestContext,
) -> list[PatientAssignment]:
    """Every patient, newest first, with its assigned caregiver (if any)."""
    await require_admin(ctx)

    rows = await ctx.store.select_related(
        "patients",
        [
            Embed("profile", "profiles", local_key="id", foreign_key="id"),
            Embed(
                "links",
                "caregiver_patients",
                local_key="id",
                foreign_key="patient_id",
                many=True,
            ),
        ],
        order_by="created_at",
        descending=True,
    )

    assigned = {row["id"]: _newest_link(row["links"]) for row in rows}
    caregiver_ids = list(
        {link["caregiver_id"] for link in assigned.values() if link is not None}
    )
    caregivers = (
        {
            profile["id"]: profile
            for profile in await ctx.store.select(
                "profiles", where_in={"id": caregiver_ids}
            )
        }
        if caregiver_ids
        else {}
    )

    patients = []
    for row in rows:
        profile = row.get("profile") or {}
        first_name = row.get("first_name") or profile.get("first_name")
        last_name = row.get("last_name") or profile.get("last_name")

        caregiver = None
        link = assigned[row["id"]]
        if link is not None and link["caregiver_id"] in caregivers:
            caregiver_row = caregivers[link["caregiver_id"]]
            caregiver = AssignedCaregiver(
                id=caregiver_row["id"],
                full_name=full_name(
                    caregiver_row.get("first_name"), caregiver_row.get("last_name")
                ),
                email=caregiver_row.get("email"),
            )

        patients.append(
            PatientAssignment(
                id=row["id"],
                first_name=first_name,
                last_name=last_name,
                full_name=full_name(first_name, last_name),
                email=profile.get("email"),
                preferred_name=row.get("preferred_name"),
                dementia_stage=row.get("dementia_stage"),
                date_of_birth=row.get("date_of_birth"),
                created_at=row.get("created_at"),
                caregiver=caregiver,
            )
        )

    return patients


async def reassign_patient(
    ctx: RequestContext,
    patient_id: uuid.UUID,
    new_caregiver_id: uuid.UUID | None,
) -> ReassignResponse:
    """Point a patient at a different caregiver, or unassign it.

    - link exists, target given: the newest link's caregiver is swapped in
      place; its id and relationship label are kept. An older link the
      target already holds is removed so the pair stays unique
    - target already holds the newest link: nothing is written
    - no link, target given: one primary link is inserted
    - no target: every link of the patient is deleted

    Raises:
        NotFoundError: If the patient or the target caregiver is absent.
        ValidationError: If the target is the patient themself or does not
            hold the caregiver role.
    """
    await require_admin(ctx)

    patient = await ctx.store.select_one("patients", id=patient_id)
    if patient is None:
        raise NotFoundError("Patient not found")

    if new_caregiver_id is not None:
        if new_caregiver_id == patient_id:
            raise ValidationError("A patient cannot be their own caregiver")
        caregiver = await ctx.store.select_one("profiles", id=new_caregiver_id)
        if caregiver is None:
            raise NotFoundError("Caregiver not found")
        if UserRole(caregiver["role"]) != UserRole.CAREGIVER:
            raise ValidationError("Patients can only be assigned to caregivers")

    links = await ctx.store.select(
        "caregiver_patients",
        where={"patient_id": patient_id},
        order_by="created_at",
        descending=True,
    )
    current = links[0] if links else None

    link: Row | None
    if new_caregiver_id is None:
        if links:
            await ctx.store.delete("caregiver_patients", where={"patient_id": patient_id})
        link = None
    elif current is not None and current["caregiver_id"] == new_caregiver_id:
        link = current
    elif current is not None:
        # (caregiver, patient) is unique: drop the target's older row first
        stale = [row for row in links if row["caregiver_id"] == new_caregiver_id]
        for row in stale:
            await ctx.store.delete("caregiver_patients", where={"id": row["id"]})
        await ctx.store.update(
            "caregiver_patients",
            {"caregiver_id": new_caregiver_id},
            where={"id": current["id"]},
        )
        link = {**current, "caregiver_id": new_caregiver_id}
    else:
        link = await ctx.store.insert(
            "caregiver_patients",
            {
                "caregiver_id": new_caregiver_id,
                "patient_id": patient_id,
                "relationship": DEFAULT_RELATIONSHIP,
                "is_primary": True,
            },
        )

    logger.info(
        "Reassigned patient",
        patient_id=str(patient_id),
        previous_caregiver_id=str(current["caregiver_id"]) if current else None,
        new_caregiver_id=str(new_caregiver_id) if new_caregiver_id else None,
    )
    await record(
        ctx,
        "patient.reassigned",
        patient_id=patient_id,
        previous_caregiver_id=current["caregiver_id"] if current else None,
        new_caregiver_id=new_caregiver_id,
    )

    return ReassignResponse(
        patient_id=patient_id,
        link=CaregiverLinkItem(**link) if link is not None else None,
    )


async def delete_patient(ctx: RequestContext, patient_id: uuid.UUID) -> None:
    """Delete a patient's principal; the store cascades to everything else.

    Irreversible. The HTTP layer demands explicit confirmation first.
    """
    await require_admin(ctx)

    patient = await ctx.store.select_one("patients", id=patient_id)
    if patient is None:
        raise NotFoundError("Patient not found")

    await ctx.store.delete("profiles", where={"id": patient_id})

    logger.info("Deleted patient", patient_id=str(patient_id))
    await record(
        ctx,
        "patient.deleted",
        patient_id=patient_id,
        name=full_name(patient.get("first_name"), patient.get("last_name")),
    )


# Caregiver-facing patient management


async def create_patient(
    ctx: RequestContext,
    data: PatientCreate,
    caregiver_id: uuid.UUID,
    relationship: str = DEFAULT_RELATIONSHIP,
) -> PatientProfile:
    """Create a patient and link it to ``caregiver_id``.

    Three separate writes: profile, patient, link. If a later write fails
    the earlier rows stay behind (a patient without a caregiver).

    Raises:
        UnauthorizedError: If the caller is not a caregiver or admin, or a
            caregiver creates a patient for someone else.
        ValidationError: If the first or last name is blank.
    """
    principal = ctx.require_principal()
    role = await require_roles(ctx, UserRole.CAREGIVER, UserRole.ADMIN)
    if role == UserRole.CAREGIVER and caregiver_id != principal.id:
        raise UnauthorizedError("Caregivers can only add patients to their own list")

    first_name = _require_name(data.first_name, "First name")
    last_name = _require_name(data.last_name, "Last name")

    profile = await ctx.store.insert(
        "profiles",
        {
            "email": data.email,
            "first_name": first_name,
            "last_name": last_name,
            "role": UserRole.PATIENT,
        },
    )
    row = await ctx.store.insert(
        "patients",
        {
            **_patient_values(data, exclude_unset=False),
            "id": profile["id"],
            "first_name": first_name,
            "last_name": last_name,
        },
    )
    await ctx.store.insert(
        "caregiver_patients",
        {
            "caregiver_id": caregiver_id,
            "patient_id": profile["id"],
            "relationship": data.relationship or relationship,
            "is_primary": True,
        },
    )

    logger.info(
        "Created patient",
        patient_id=str(profile["id"]),
        caregiver_id=str(caregiver_id),
    )
    await record(
        ctx,
        "patient.created",
        patient_id=profile["id"],
        caregiver_id=caregiver_id,
    )

    return normalize_patient(row)


async def update_patient(
    ctx: RequestContext,
    patient_id: uuid.UUID,
    updates: PatientUpdate,
) -> PatientProfile:
    """Write the supplied profile fields of a patient.

    Allowed for admins and caregivers linked to the patient.

    Raises:
        NotFoundError: If the patient does not exist.
        ValidationError: If a supplied first or last name is blank.
    """
    await ensure_can_view_patient(ctx, patient_id, allow_self=False)

    row = await ctx.store.select_one("patients", id=patient_id)
    if row is None:
        raise NotFoundError("Patient not found")

    values = _patient_values(updates, exclude_unset=True)
    names = {}
    if "first_name" in values:
        names["first_name"] = values["first_name"] = _require_name(
            values["first_name"], "First name"
        )
    if "last_name" in values:
        names["last_name"] = values["last_name"] = _require_name(
            values["last_name"], "Last name"
        )

    if not values:
        return normalize_patient(row)

    await ctx.store.update("patients", values, where={"id": patient_id})
    if names:
        await ctx.store.update("profiles", names, where={"id": patient_id})

    logger.info(
        "Updated patient",
        patient_id=str(patient_id),
        fields=sorted(values),
    )

    updated = await ctx.store.select_one("patients", id=patient_id)
    if updated is None:
        raise NotFoundError("Patient not found")
    return normalize_patient(updated)
