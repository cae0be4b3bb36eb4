"""Administrative audit trail.

Entries are append-only: this module inserts and lists them, nothing
updates or deletes them.
"""

import json
import uuid
from typing import Any

from carecircle.core.context import RequestContext
from carecircle.core.roles import require_admin
from carecircle.logging_config import get_logger
from carecircle.schemas.admin import AuditLogItem
from carecircle.services.normalize import full_name
from carecircle.store.base import CareStore, Embed, Row

logger = get_logger(__name__)

DEFAULT_AUDIT_LIMIT = 100
SYSTEM_ACTOR = "System"


async def log_event(
    store: CareStore,
    action: str,
    actor_id: uuid.UUID | None = None,
    details: dict[str, Any] | None = None,
    origin_address: str | None = None,
) -> None:
    """Write an audit entry.

    Fire-and-forget: logs errors but never raises so the administrative
    action that triggered it is not disrupted.
    """
    try:
        await store.insert(
            "audit_logs",
            {
                "action": action,
                "user_id": actor_id,
                "details": json.dumps(details, default=str) if details else None,
                "ip_address": origin_address,
            },
        )
    except Exception:
        logger.exception("Failed to write audit log", action=action)


async def record(ctx: RequestContext, action: str, **details: Any) -> None:
    """``log_event`` attributed to the calling principal."""
    actor_id = ctx.principal.id if ctx.principal else None
    await log_event(
        ctx.store,
        action,
        actor_id=actor_id,
        details=details or None,
        origin_address=ctx.origin_address,
    )


def _user_display(profile: Row | None) -> str:
    if not profile:
        return SYSTEM_ACTOR
    name = full_name(profile.get("first_name"), profile.get("last_name"))
    email = profile.get("email")
    if name and email:
        return f"{name} ({email})"
    return name or email or SYSTEM_ACTOR


def _decode_details(raw: str | None) -> dict[str, Any] | None:
    if not raw:
        return None
    try:
        decoded = json.loads(raw)
    except ValueError:
        return {"raw": raw}
    return decoded if isinstance(decoded, dict) else {"value": decoded}


async def list_recent(
    ctx: RequestContext,
    limit: int = DEFAULT_AUDIT_LIMIT,
) -> list[AuditLogItem]:
    """Newest audit entries first, with the actor's display name.

    Raises:
        UnauthorizedError: If the caller is not an admin.
    """
    await require_admin(ctx)

    rows = await ctx.store.select_related(
        "audit_logs",
        [Embed("actor", "profiles", local_key="user_id", foreign_key="id")],
        order_by="created_at",
        descending=True,
        limit=limit,
    )

    return [
        AuditLogItem(
            id=row["id"],
            created_at=row.get("created_at"),
            action=row["action"],
            details=_decode_details(row.get("details")),
            ip_address=row.get("ip_address"),
            user_id=row.get("user_id"),
            user_display=_user_display(row.get("actor")),
        )
        for row in rows
    ]
