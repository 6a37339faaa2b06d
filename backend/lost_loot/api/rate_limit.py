from fastapi import Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from lost_loot.api.errors import problem_response
from lost_loot.core.config import Settings


def build_limiter(settings: Settings) -> Limiter:
    """Per-client-IP limiter applied to every API route."""
    return Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit],
        enabled=settings.rate_limit_enabled,
    )


# slowapi's middleware calls this synchronously.
def handle_rate_limit_exceeded(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return problem_response(
        request,
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        title="Too Many Requests",
        detail="You have exceeded the request limit. Please try again later.",
    )
