"""Correlation id middleware.

Reuses the caller's ``X-Correlation-ID`` or mints one, binds it to the
logging context for the request, echoes it on the response and logs each
request's outcome and duration.

Pure ASGI rather than ``BaseHTTPMiddleware``, which runs the endpoint in a
separate task and breaks asyncpg connections bound to the request's loop.
"""

import time
import uuid

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from carecircle.logging_config import correlation_id_ctx, get_logger, principal_id_ctx

logger = get_logger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"
_HEADER_KEY = CORRELATION_ID_HEADER.lower().encode()


def _incoming_correlation_id(scope: Scope) -> str | None:
    for name, value in scope.get("headers", []):
        if name == _HEADER_KEY:
            return value.decode("latin-1").strip() or None
    return None


class CorrelationIdMiddleware:
    """Tag every HTTP request with a correlation id."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        correlation_id = _incoming_correlation_id(scope) or str(uuid.uuid4())
        correlation_token = correlation_id_ctx.set(correlation_id)
        principal_token = principal_id_ctx.set(None)

        method = scope.get("method", "")
        path = scope.get("path", "")
        status_code: int | None = None
        start_time = time.perf_counter()

        async def send_with_header(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status")
                headers = list(message.get("headers", []))
                headers.append((_HEADER_KEY, correlation_id.encode("latin-1")))
                message = {**message, "headers": headers}
            await send(message)

        try:
            await self.app(scope, receive, send_with_header)
            logger.info(
                "Request completed",
                method=method,
                path=path,
                status_code=status_code,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
        except Exception:
            logger.exception(
                "Request failed",
                method=method,
                path=path,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            raise
        finally:
            principal_id_ctx.reset(principal_token)
            correlation_id_ctx.reset(correlation_token)
