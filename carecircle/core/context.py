"""Per-request context passed explicitly into every service call."""

from collections.abc import Iterable
from dataclasses import dataclass, field

from carecircle.core.exceptions import UnauthenticatedError
from carecircle.core.identity import IdentityProvider, Principal
from carecircle.logging_config import principal_id_ctx
from carecircle.store.base import CareStore


@dataclass
class RequestContext:
    """Who is calling, and through which store.

    Attributes:
        store: Store handle used for every read and write of the request
        principal: Authenticated principal, or None when signed out
        admin_emails: Lower-cased admin allow-list from configuration
        origin_address: Client address recorded on audit entries
    """

    store: CareStore
    principal: Principal | None = None
    admin_emails: frozenset[str] = field(default_factory=frozenset)
    origin_address: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.principal is not None

    def require_principal(self) -> Principal:
        """Return the principal or raise ``UnauthenticatedError``."""
        if self.principal is None:
            raise UnauthenticatedError("Not authenticated")
        return self.principal


async def build_context(
    store: CareStore,
    identity: IdentityProvider,
    *,
    admin_emails: Iterable[str] = (),
    origin_address: str | None = None,
) -> RequestContext:
    """Populate a RequestContext from the identity provider's session."""
    principal = await identity.get_principal()
    if principal is not None:
        principal_id_ctx.set(str(principal.id))

    return RequestContext(
        store=store,
        principal=principal,
        admin_emails=frozenset(email.lower() for email in admin_emails),
        origin_address=origin_address,
    )
