"""
Request Logging Middleware

- Assigns a unique request_id to every request
- Sets user_id context from the bearer token
- Logs request start & end with timing
"""

import logging
import time
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.security import AuthenticatedUser, InvalidTokenError, decode_access_token
from app.logging_config import (
    generate_request_id,
    request_id_ctx,
    user_id_ctx,
)

logger = logging.getLogger("bingindex.request")


def _authenticate(request: Request) -> Optional[AuthenticatedUser]:
    # Middleware runs before the auth dependency, so parse the header here.
    # The result is kept on request.state for deps.get_current_user.
    auth = request.headers.get("authorization", "")
    if not auth.startswith("Bearer "):
        return None
    try:
        return decode_access_token(auth[7:])
    except InvalidTokenError:
        return None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        rid = generate_request_id()
        request_id_ctx.set(rid)
        user = _authenticate(request)
        request.state.user = user
        user_id_ctx.set(str(user.id) if user else "-")

        method = request.method
        path = request.url.path
        client_ip = request.client.host if request.client else "-"

        logger.info("→ %s %s from %s", method, path, client_ip)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            elapsed = (time.perf_counter() - start) * 1000
            logger.exception("✗ %s %s — %.1fms (unhandled exception)", method, path, elapsed)
            raise

        elapsed = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = rid

        logger.info(
            "← %s %s — %d — %.1fms",
            method, path, response.status_code, elapsed,
        )
        return response
