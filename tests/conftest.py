"""Pytest configuration and shared fixtures.

Services run against ``MemoryStore``; HTTP tests swap it in through
``app.dependency_overrides`` so no database is needed.
"""

import os
import uuid
from collections.abc import AsyncGenerator, Mapping, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt

# Set testing mode BEFORE importing app to use NullPool
os.environ["TESTING"] = "true"

from carecircle.config import settings

settings.testing = True

from carecircle.core.auth import get_store
from carecircle.core.context import RequestContext
from carecircle.core.exceptions import StoreError
from carecircle.core.identity import Principal
from carecircle.main import app
from carecircle.models.profile import UserRole
from carecircle.store.base import Row
from carecircle.store.memory import MemoryStore

ADMIN_EMAIL = "director@carecircle.test"


def unique_email(prefix: str = "user") -> str:
    """Generate a unique email for testing."""
    return f"{prefix}_{uuid.uuid4().hex[:8]}@example.com"


def _make_token(
    principal_id: uuid.UUID,
    email: str | None = None,
    *,
    expires_in: timedelta = timedelta(hours=1),
    secret: str | None = None,
) -> str:
    """Mint a session token the way the external auth service does."""
    claims: dict[str, Any] = {
        "sub": str(principal_id),
        "aud": "authenticated",
        "exp": datetime.now(UTC) + expires_in,
    }
    if email:
        claims["email"] = email
    return jwt.encode(
        claims,
        secret or settings.auth_jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


def _auth_headers(profile: Row) -> dict[str, str]:
    return {"Authorization": f"Bearer {_make_token(profile['id'], profile.get('email'))}"}


class FlakyStore(MemoryStore):
    """MemoryStore whose reads of selected tables fail."""

    def __init__(self, failing: Sequence[str] = (), **kwargs: Any):
        super().__init__(**kwargs)
        self.failing = set(failing)

    async def select(self, table: str, **query: Any) -> list[Row]:
        if table in self.failing:
            raise StoreError(f"connection reset while reading {table}")
        return await super().select(table, **query)


class Seeder:
    """Inserts rows with sensible defaults and builds contexts."""

    def __init__(self, store: MemoryStore):
        self.store = store

    async def profile(
        self,
        role: UserRole = UserRole.PATIENT,
        *,
        email: str | None = None,
        first_name: str = "Test",
        last_name: str = "User",
        **fields: Any,
    ) -> Row:
        return await self.store.insert(
            "profiles",
            {
                "email": email or unique_email(role.value),
                "first_name": first_name,
                "last_name": last_name,
                "role": role,
                **fields,
            },
        )

    async def caregiver(self, **fields: Any) -> Row:
        return await self.profile(UserRole.CAREGIVER, **fields)

    async def patient(
        self,
        first_name: str = "Rose",
        last_name: str = "Miller",
        **fields: Any,
    ) -> Row:
        """A patient principal plus its patients row."""
        profile = await self.profile(
            UserRole.PATIENT, first_name=first_name, last_name=last_name
        )
        return await self.store.insert(
            "patients",
            {
                "id": profile["id"],
                "first_name": first_name,
                "last_name": last_name,
                **fields,
            },
        )

    async def link(
        self,
        caregiver_id: uuid.UUID,
        patient_id: uuid.UUID,
        **fields: Any,
    ) -> Row:
        return await self.store.insert(
            "caregiver_patients",
            {"caregiver_id": caregiver_id, "patient_id": patient_id, **fields},
        )

    async def rows(self, table: str, patient_id: uuid.UUID, *rows: Mapping[str, Any]) -> None:
        for row in rows:
            await self.store.insert(table, {"patient_id": patient_id, **row})

    def ctx(
        self,
        profile: Row | None,
        admin_emails: Sequence[str] = (),
    ) -> RequestContext:
        principal = (
            Principal(id=profile["id"], email=profile.get("email"))
            if profile is not None
            else None
        )
        return RequestContext(
            store=self.store,
            principal=principal,
            admin_emails=frozenset(e.lower() for e in admin_emails),
            origin_address="10.0.0.1",
        )


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def seed(store: MemoryStore) -> Seeder:
    return Seeder(store)


@pytest_asyncio.fixture
async def admin(seed: Seeder) -> Row:
    """An admin resolved through the stored role."""
    return await seed.profile(UserRole.ADMIN, first_name="Ada", last_name="Admin")


@pytest_asyncio.fixture
async def client(store: MemoryStore) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client backed by the test store."""
    app.dependency_overrides[get_store] = lambda: store
    previous_admins = settings.admin_emails
    settings.admin_emails = [ADMIN_EMAIL]
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        settings.admin_emails = previous_admins
        app.dependency_overrides.clear()


@pytest.fixture
def flaky_seed():
    """Factory for a Seeder whose store fails reads of the named tables."""

    def factory(*failing: str) -> Seeder:
        return Seeder(FlakyStore(failing=failing))

    return factory


@pytest.fixture
def make_token():
    """Token minting helper."""
    return _make_token


@pytest.fixture
def auth_headers():
    """Build Bearer headers for a profile row."""
    return _auth_headers


@pytest.fixture
def admin_email() -> str:
    """Email on the admin allow-list while ``client`` is active."""
    return ADMIN_EMAIL
