"""ASGI client identification middleware."""

import json

import structlog
from starlette.types import ASGIApp, Receive, Scope, Send

from ragchat.core.config import settings
from ragchat.schemas.response_schema import error_content

logger = structlog.get_logger()

CLIENT_ID_HEADER = b"x-client-id"
MAX_CLIENT_ID_LENGTH = 64


class ClientIdMiddleware:
    """Pure ASGI middleware that requires an ``X-Client-Id`` header (SSE-compatible).

    The identifier is stored in ``scope["state"]["client_id"]`` and bound to
    the structlog context for the lifetime of the request.
    """

    def __init__(self, app: ASGIApp, prefix: str | None = None) -> None:
        self.app = app
        self.prefix = prefix if prefix is not None else settings.server.api_prefix

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if scope.get("method", "") == "OPTIONS":
            await self.app(scope, receive, send)
            return

        path: str = scope["path"]
        if not path.startswith(self.prefix):
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        client_id = headers.get(CLIENT_ID_HEADER, b"").decode("latin-1").strip()

        if not client_id:
            logger.info("Request without client id rejected", path=path)
            await self._send_error(
                send, 401, "CLIENT_ID_REQUIRED", "Client ID is required"
            )
            return

        if len(client_id) > MAX_CLIENT_ID_LENGTH or not _is_safe_identifier(client_id):
            logger.warning("Invalid client id rejected", path=path)
            await self._send_error(send, 400, "INVALID_CLIENT_ID", "Invalid client ID")
            return

        scope.setdefault("state", {})
        scope["state"]["client_id"] = client_id

        with structlog.contextvars.bound_contextvars(client_id=client_id):
            await self.app(scope, receive, send)

    @staticmethod
    async def _send_error(send: Send, status: int, code: str, message: str) -> None:
        """Send a JSON error response directly."""
        body = json.dumps(error_content(status, code, message)).encode()

        await send(
            {
                "type": "http.response.start",
                "status": status,
                "headers": [
                    [b"content-type", b"application/json"],
                    [b"content-length", str(len(body)).encode()],
                ],
            }
        )
        await send({"type": "http.response.body", "body": body})


def _is_safe_identifier(value: str) -> bool:
    # Client ids become directory names.
    return all((ch.isascii() and ch.isalnum()) or ch in "-_" for ch in value)
