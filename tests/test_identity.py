"""Tests for the JWT identity provider."""

import asyncio
import uuid
from datetime import timedelta

from jose import jwt

from carecircle.config import settings
from carecircle.core.identity import JwtIdentityProvider, SessionEvent


def _provider(token: str | None = None) -> JwtIdentityProvider:
    return JwtIdentityProvider(
        token,
        secret=settings.auth_jwt_secret,
        algorithm=settings.jwt_algorithm,
        audience="authenticated",
    )


class TestGetSession:
    """Tests for token verification."""

    async def test_valid_token(self, make_token):
        principal_id = uuid.uuid4()
        token = make_token(principal_id, "sam@example.com")

        session = await _provider(token).get_session()

        assert session.principal.id == principal_id
        assert session.principal.email == "sam@example.com"
        assert session.access_token == token
        assert session.expires_at is not None

    async def test_no_token(self):
        assert await _provider().get_session() is None
        assert await _provider().get_principal() is None

    async def test_expired_token(self, make_token):
        token = make_token(uuid.uuid4(), expires_in=timedelta(minutes=-5))

        assert await _provider(token).get_session() is None

    async def test_wrong_secret(self, make_token):
        token = make_token(uuid.uuid4(), secret="not-the-secret")

        assert await _provider(token).get_session() is None

    async def test_garbage_token(self):
        assert await _provider("not.a.jwt").get_session() is None

    async def test_non_uuid_subject(self):
        token = jwt.encode(
            {"sub": "service-account", "aud": "authenticated"},
            settings.auth_jwt_secret,
            algorithm=settings.jwt_algorithm,
        )

        assert await _provider(token).get_session() is None


class TestSubscriptions:
    """Session change notifications."""

    async def test_events_are_delivered_on_a_later_turn(self, make_token):
        provider = _provider()
        events = []
        provider.subscribe(lambda event, session: events.append((event, session)))

        session = provider.sign_in(make_token(uuid.uuid4()))

        assert events == []
        await asyncio.sleep(0)
        assert events == [(SessionEvent.SIGNED_IN, session)]

    async def test_sign_out(self, make_token):
        provider = _provider(make_token(uuid.uuid4()))
        events = []
        provider.subscribe(lambda event, session: events.append(event))

        provider.sign_out()
        await asyncio.sleep(0)

        assert events == [SessionEvent.SIGNED_OUT]
        assert await provider.get_session() is None

    async def test_unsubscribe(self, make_token):
        provider = _provider()
        events = []
        unsubscribe = provider.subscribe(lambda event, session: events.append(event))

        unsubscribe()
        provider.sign_in(make_token(uuid.uuid4()))
        await asyncio.sleep(0)

        assert events == []

    async def test_invalid_sign_in_notifies_nobody(self):
        provider = _provider()
        events = []
        provider.subscribe(lambda event, session: events.append(event))

        assert provider.sign_in("garbage") is None
        await asyncio.sleep(0)

        assert events == []
