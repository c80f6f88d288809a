"""Request ID middleware.

Webhook deliveries already carry a GUID (``X-GitHub-Delivery``) that GitHub
shows in the App's "Recent Deliveries" page; it becomes the request id so a
failed delivery can be found in the logs. Other requests use a valid
``X-Request-ID`` header or a fresh UUID.
"""

from __future__ import annotations

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

log = structlog.get_logger("classbot.api")


def _as_uuid(value: str | None) -> str | None:
    if not value:
        return None
    try:
        return str(uuid.UUID(value))
    except ValueError:
        return None


def request_id_for(request: Request) -> str:
    return (
        _as_uuid(request.headers.get("x-github-delivery"))
        or _as_uuid(request.headers.get("x-request-id"))
        or str(uuid.uuid4())
    )


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Binds request_id (plus method and path) to the structlog context.

    Anything else bound during the request (delivery id, repository) is
    cleared with it.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request_id_for(request)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            log.exception("api.request_failed", duration_ms=_elapsed_ms(start))
            raise
        else:
            log.info(
                "api.request",
                status_code=response.status_code,
                duration_ms=_elapsed_ms(start),
            )
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            structlog.contextvars.clear_contextvars()


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 1)
