"""Identity provider interface and the JWT-backed implementation.

Sign-in, sign-up and token issuance belong to the external auth service.
CareCircle only needs to answer "who is calling" for a request, and to let
long-lived callers hear about sign-in/sign-out.
"""

import abc
import asyncio
import enum
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from jose import JWTError, jwt

from carecircle.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Principal:
    """An authenticated actor as reported by the identity provider."""

    id: uuid.UUID
    email: str | None = None


@dataclass(frozen=True)
class AuthSession:
    """A verified session for one principal."""

    access_token: str
    principal: Principal
    expires_at: datetime | None = None


class SessionEvent(str, enum.Enum):
    """Session changes pushed to subscribers."""

    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"


SessionListener = Callable[[SessionEvent, AuthSession | None], None]


class IdentityProvider(abc.ABC):
    """What the core needs from the authentication service."""

    def __init__(self) -> None:
        self._listeners: list[SessionListener] = []

    @abc.abstractmethod
    async def get_session(self) -> AuthSession | None:
        """Return the current session, or None when signed out."""

    async def get_principal(self) -> Principal | None:
        """Return the principal of the current session, if any."""
        session = await self.get_session()
        return session.principal if session else None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register ``listener`` for session changes.

        Events are delivered on a later event-loop turn, never from inside
        the call that caused them. Returns a function that unsubscribes.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: SessionEvent, session: AuthSession | None) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        for listener in list(self._listeners):
            if loop is not None:
                loop.call_soon(listener, event, session)
            else:
                listener(event, session)


class JwtIdentityProvider(IdentityProvider):
    """Identity from a bearer JWT issued by the external auth service.

    The token's ``sub`` claim is the principal id and ``email`` its email.
    Tokens that are malformed, expired, or signed with the wrong key yield
    no session rather than an error; the caller decides what "signed out"
    means for its operation.
    """

    def __init__(
        self,
        token: str | None,
        secret: str,
        algorithm: str = "HS256",
        audience: str | None = None,
    ):
        super().__init__()
        self._token = token
        self._secret = secret
        self._algorithm = algorithm
        self._audience = audience

    async def get_session(self) -> AuthSession | None:
        return self._decode(self._token)

    def sign_in(self, token: str) -> AuthSession | None:
        """Adopt ``token`` as the current session and notify subscribers."""
        session = self._decode(token)
        if session is None:
            return None
        self._token = token
        self._notify(SessionEvent.SIGNED_IN, session)
        return session

    def sign_out(self) -> None:
        """Drop the current session and notify subscribers."""
        self._token = None
        self._notify(SessionEvent.SIGNED_OUT, None)

    def _decode(self, token: str | None) -> AuthSession | None:
        if not token:
            return None

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
            )
        except JWTError as exc:
            logger.info("Rejected session token", reason=str(exc))
            return None

        try:
            principal_id = uuid.UUID(str(claims.get("sub")))
        except ValueError:
            logger.info("Rejected session token", reason="sub is not a UUID")
            return None

        expires_at = None
        if claims.get("exp") is not None:
            expires_at = datetime.fromtimestamp(claims["exp"], UTC)

        return AuthSession(
            access_token=token,
            principal=Principal(id=principal_id, email=claims.get("email")),
            expires_at=expires_at,
        )
