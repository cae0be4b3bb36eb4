"""FastAPI dependencies that turn a request into a RequestContext.

Credentials are read from:
1. httpOnly session cookie (web)
2. Authorization Bearer JWT (mobile)

A missing or invalid token yields a context without a principal; each
operation decides whether that is an error.
"""

from typing import Annotated

from fastapi import Cookie, Depends, Request

from carecircle.config import settings
from carecircle.core.context import RequestContext, build_context
from carecircle.core.identity import IdentityProvider, JwtIdentityProvider
from carecircle.database import get_session_maker
from carecircle.store.base import CareStore
from carecircle.store.sql import SqlAlchemyStore


def get_store() -> CareStore:
    """Store used by request handlers. Overridden in tests."""
    return SqlAlchemyStore(get_session_maker())


def get_identity_provider(
    request: Request,
    session_token: Annotated[str | None, Cookie(alias=settings.jwt_cookie_name)] = None,
) -> IdentityProvider:
    """Identity for this request, from the session cookie or a Bearer token."""
    if not session_token:
        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            session_token = auth_header[7:]

    return JwtIdentityProvider(
        session_token,
        secret=settings.auth_jwt_secret,
        algorithm=settings.jwt_algorithm,
        audience=settings.jwt_audience,
    )


async def get_request_context(
    request: Request,
    store: Annotated[CareStore, Depends(get_store)],
    identity: Annotated[IdentityProvider, Depends(get_identity_provider)],
) -> RequestContext:
    """Build the per-request context every service call receives."""
    return await build_context(
        store,
        identity,
        admin_emails=settings.admin_emails,
        origin_address=request.client.host if request.client else None,
    )


# Type alias for cleaner route signatures
CareContext = Annotated[RequestContext, Depends(get_request_context)]
