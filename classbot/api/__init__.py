"""Classbot HTTP API: FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from classbot.api.deps import dispose_engine, init_session_factory
from classbot.api.errors import register_error_handlers
from classbot.api.middleware.request_id import RequestIDMiddleware
from classbot.api.routers import alerts, orgs, submissions, users, webhooks
from classbot.core.logging import setup_logging


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: init DB. Shutdown: dispose engine and GitHub client."""
    init_session_factory()
    yield
    await dispose_engine()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    setup_logging()

    app = FastAPI(
        title="Classbot",
        docs_url="/api/v1/docs",
        openapi_url="/api/v1/openapi.json",
        lifespan=_lifespan,
    )

    register_error_handlers(app)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health", tags=["ops"])
    async def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    app.include_router(webhooks.router, prefix="/api/v1/webhooks", tags=["webhooks"])
    app.include_router(alerts.router, prefix="/api/v1/alerts", tags=["alerts"])
    app.include_router(submissions.router, prefix="/api/v1/submissions", tags=["submissions"])
    app.include_router(orgs.router, prefix="/api/v1/orgs", tags=["orgs"])
    app.include_router(users.router, prefix="/api/v1/users", tags=["users"])

    return app
