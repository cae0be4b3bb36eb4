"""Patient-scoped access checks shared by the aggregator and the timeline."""

import uuid

from carecircle.core.context import RequestContext
from carecircle.core.exceptions import UnauthorizedError
from carecircle.core.roles import resolve_role
from carecircle.logging_config import get_logger
from carecircle.models.profile import UserRole

logger = get_logger(__name__)


async def ensure_can_view_patient(
    ctx: RequestContext,
    patient_id: uuid.UUID,
    *,
    allow_self: bool = True,
) -> UserRole:
    """Allow admins, the patient themself, and linked caregivers.

    A link only counts while its caregiver still holds the caregiver
    role; rows left behind by a revocation grant nothing.

    Existence is not checked here. A caller who is not allowed to see a
    patient gets ``UnauthorizedError`` whether or not the patient exists,
    so only admins can tell a missing patient (404) from a forbidden one.

    Returns:
        The caller's resolved role

    Raises:
        UnauthenticatedError: If there is no principal.
        UnauthorizedError: If none of the rules match.
    """
    principal = ctx.require_principal()
    role = await resolve_role(ctx)

    if role == UserRole.ADMIN:
        return role
    if allow_self and principal.id == patient_id:
        return role
    if role == UserRole.CAREGIVER:
        link = await ctx.store.select_one(
            "caregiver_patients",
            caregiver_id=principal.id,
            patient_id=patient_id,
        )
        if link is not None:
            return role

    logger.warning(
        "Patient access denied",
        principal_id=str(principal.id),
        patient_id=str(patient_id),
        user_role=role.value,
    )
    raise UnauthorizedError("You don't have access to this patient")
