"""Per-client rate limiting."""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from ragchat.schemas.response_schema import error_content


def client_key(request: Request) -> str:
    """Rate-limit key: the client id when present, otherwise the remote address."""
    client_id = getattr(request.state, "client_id", None)
    return client_id or get_remote_address(request)


limiter = Limiter(key_func=client_key)


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Custom handler for rate limit exceeded errors."""
    return JSONResponse(
        status_code=429,
        content=error_content(429, "RATE_LIMIT_EXCEEDED", "Rate limit exceeded"),
    )
