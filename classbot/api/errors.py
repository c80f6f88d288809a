"""Maps classbot failures onto JSON error responses.

Service errors map by class (most specific first). A duplicate ledger row is
a 409 that names the colliding key; a broken ``classbot.yml`` is the
classroom's problem rather than ours, but GitHub still has to see a failed
delivery, so it answers 500 with the validation message.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from classbot.config.loader import ConfigError
from classbot.dao.base import InvalidCursorError
from classbot.services import (
    AuthenticationError,
    ConflictError,
    DuplicateRecordError,
    NotFoundError,
    ServiceError,
    ValidationError,
)

log = structlog.get_logger("classbot.api")

_STATUS_BY_ERROR: tuple[tuple[type[ServiceError], int], ...] = (
    (AuthenticationError, 401),
    (NotFoundError, 404),
    (ConflictError, 409),
    (ValidationError, 422),
)


def status_for(exc: ServiceError) -> int:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return status
    return 500


def error_body(exc: ServiceError) -> dict[str, Any]:
    body: dict[str, Any] = {"detail": str(exc)}
    if isinstance(exc, DuplicateRecordError):
        body["key"] = exc.key
        body["value"] = jsonable_encoder(exc.value)
    return body


async def _service_error(_request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=status_for(exc), content=error_body(exc))


async def _request_validation_error(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    # "query.page_size: Input should be ..." per failing field
    messages = [
        ".".join(str(part) for part in err["loc"]) + f": {err['msg']}" for err in exc.errors()
    ]
    return JSONResponse(status_code=422, content={"detail": "; ".join(messages)})


async def _invalid_cursor(_request: Request, exc: InvalidCursorError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc), "param": "cursor"})


async def _config_error(_request: Request, exc: ConfigError) -> JSONResponse:
    log.error("api.config_error", error=str(exc))
    return JSONResponse(status_code=500, content={"detail": str(exc), "source": "classbot.yml"})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, _service_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _request_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(InvalidCursorError, _invalid_cursor)  # type: ignore[arg-type]
    app.add_exception_handler(ConfigError, _config_error)  # type: ignore[arg-type]
