"""Role resolution and role-based access checks.

The stored profile role is user data; the admin allow-list is deployment
configuration. They are kept apart: an allow-listed email resolves to
ADMIN without the profile ever being rewritten.
"""

from collections.abc import Iterable

from carecircle.core.context import RequestContext
from carecircle.core.exceptions import NotFoundError, UnauthorizedError
from carecircle.logging_config import get_logger
from carecircle.models.profile import UserRole

logger = get_logger(__name__)


def is_admin_email(email: str | None, admin_emails: Iterable[str]) -> bool:
    """True if ``email`` is on the allow-list (case-insensitive)."""
    if not email:
        return False
    return email.strip().lower() in {e.lower() for e in admin_emails}


async def resolve_role(ctx: RequestContext) -> UserRole:
    """Resolve the calling principal's effective role.

    Not cached: every privileged call resolves again, so a role change
    takes effect on the next request.

    Raises:
        UnauthenticatedError: If the context has no principal.
        NotFoundError: If the principal has no profile row.
    """
    principal = ctx.require_principal()

    if is_admin_email(principal.email, ctx.admin_emails):
        return UserRole.ADMIN

    profile = await ctx.store.select_one("profiles", id=principal.id)
    if profile is None:
        raise NotFoundError("Profile not found")

    return UserRole(profile["role"])


async def require_roles(ctx: RequestContext, *roles: UserRole) -> UserRole:
    """Resolve the role and check it is one of ``roles``.

    Returns:
        The resolved role

    Raises:
        UnauthorizedError: If the resolved role is not allowed
    """
    role = await resolve_role(ctx)
    if role not in roles:
        principal = ctx.require_principal()
        logger.warning(
            "Unauthorized access attempt",
            principal_id=str(principal.id),
            email=principal.email,
            user_role=role.value,
            required_roles=[r.value for r in roles],
        )
        raise UnauthorizedError("You don't have permission to access this resource")
    return role


async def require_admin(ctx: RequestContext) -> None:
    """Raise unless the caller resolves to ADMIN."""
    await require_roles(ctx, UserRole.ADMIN)


async def is_admin(ctx: RequestContext) -> bool:
    """True if the caller resolves to ADMIN."""
    return await resolve_role(ctx) == UserRole.ADMIN
