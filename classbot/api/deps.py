"""Dependency injection: session, auth, and service singletons."""

from __future__ import annotations

import hmac
import os
from collections.abc import AsyncGenerator

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from classbot.core.github_client import GitHubClient
from classbot.dao.alert_dao import AlertDAO
from classbot.dao.assignment_dao import AssignmentDAO
from classbot.dao.submission_dao import SubmissionDAO
from classbot.dao.user_dao import UserDAO
from classbot.dispatcher import EventDispatcher
from classbot.services import AuthenticationError
from classbot.services.alert_service import AlertService
from classbot.services.assignment_service import AssignmentService
from classbot.services.submission_service import SubmissionService
from classbot.services.user_service import UserService

# ---------------------------------------------------------------------------
# DAO singletons
# ---------------------------------------------------------------------------
_alert_dao = AlertDAO()
_assignment_dao = AssignmentDAO()
_submission_dao = SubmissionDAO()
_user_dao = UserDAO()

# ---------------------------------------------------------------------------
# Service singletons
# ---------------------------------------------------------------------------
_alert_service = AlertService(_alert_dao)
_assignment_service = AssignmentService(_assignment_dao)
_submission_service = SubmissionService(_submission_dao)
_user_service = UserService(_user_dao)

# ---------------------------------------------------------------------------
# Engine / session factory / clients (initialised by app lifespan)
# ---------------------------------------------------------------------------
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None
_github_client: GitHubClient | None = None
_dispatcher: EventDispatcher | None = None


def init_session_factory(database_url: str | None = None) -> async_sessionmaker[AsyncSession]:
    """Create the async engine and session factory. Called once at startup."""
    global _engine, _session_factory  # noqa: PLW0603
    url = database_url or os.environ.get(
        "CLASSBOT_DATABASE_URL", "postgresql+asyncpg://localhost/classbot"
    )
    if url.startswith("sqlite"):
        _engine = create_async_engine(url)
    else:
        _engine = create_async_engine(
            url,
            pool_pre_ping=True,
            pool_size=10,
            max_overflow=20,
            pool_recycle=1800,
        )
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    return _session_factory


async def dispose_engine() -> None:
    """Dispose the async engine and close the GitHub client."""
    global _engine, _github_client, _dispatcher  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
        _engine = None
    if _github_client is not None:
        await _github_client.close()
        _github_client = None
    _dispatcher = None


def set_session_factory(factory: async_sessionmaker[AsyncSession]) -> None:
    """Override session factory (for testing)."""
    global _session_factory  # noqa: PLW0603
    _session_factory = factory


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a per-request session with automatic commit/rollback."""
    if _session_factory is None:
        raise RuntimeError("call init_session_factory() before handling requests")
    async with _session_factory() as session:
        async with session.begin():
            yield session


# ---------------------------------------------------------------------------
# Auth dependency
# ---------------------------------------------------------------------------

_bearer = HTTPBearer(auto_error=False)


async def require_api_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> None:
    """Check the Bearer token against ``CLASSBOT_API_TOKEN``.

    With no token configured the read API is closed.
    """
    expected = os.environ.get("CLASSBOT_API_TOKEN", "")
    if credentials is None:
        raise AuthenticationError("missing authorization header")
    if not expected or not hmac.compare_digest(credentials.credentials, expected):
        raise AuthenticationError("invalid API token")


def get_webhook_secret() -> str | None:
    """``CLASSBOT_WEBHOOK_SECRET``; signature checks are skipped when unset."""
    return os.environ.get("CLASSBOT_WEBHOOK_SECRET") or None


# ---------------------------------------------------------------------------
# Service getters (for Depends())
# ---------------------------------------------------------------------------


def get_alert_service() -> AlertService:
    return _alert_service


def get_assignment_service() -> AssignmentService:
    return _assignment_service


def get_submission_service() -> SubmissionService:
    return _submission_service


def get_user_service() -> UserService:
    return _user_service


def get_github_client() -> GitHubClient:
    global _github_client  # noqa: PLW0603
    if _github_client is None:
        _github_client = GitHubClient()
    return _github_client


def get_dispatcher() -> EventDispatcher:
    global _dispatcher  # noqa: PLW0603
    if _dispatcher is None:
        if _session_factory is None:
            raise RuntimeError("call init_session_factory() before handling requests")
        _dispatcher = EventDispatcher(get_github_client(), _session_factory)
    return _dispatcher
