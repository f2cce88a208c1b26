"""
FastAPI middleware for request logging.

Tags every request with a request ID (reusing an incoming X-Request-ID)
and logs method, path, acting user, status and duration.
"""

import logging
import time
import uuid
from contextvars import ContextVar

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Context variable for request ID (available across async calls)
request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")

logger = logging.getLogger(__name__)


def get_request_id() -> str:
    """Get current request ID from context."""
    return request_id_ctx.get()


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each request and echoes its ID in the X-Request-ID header.

    Failed requests are logged with a traceback and re-raised.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        req_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        request_id_ctx.set(req_id)
        user_id = request.headers.get("X-User-ID", "default_user")

        logger.info(
            f"[{req_id}] {request.method} {request.url.path} (user {user_id})",
            extra={
                "request_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "user_id": user_id,
            },
        )

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.error(
                f"[{req_id}] {request.method} {request.url.path} failed after {elapsed_ms:.0f}ms: {e}",
                extra={"request_id": req_id, "elapsed_ms": elapsed_ms},
                exc_info=True,
            )
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            f"[{req_id}] {response.status_code} in {elapsed_ms:.0f}ms",
            extra={
                "request_id": req_id,
                "status_code": response.status_code,
                "elapsed_ms": elapsed_ms,
            },
        )

        response.headers["X-Request-ID"] = req_id
        return response
