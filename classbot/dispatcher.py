"""Webhook event routing with repository and component gates."""

from __future__ import annotations

import os
import re
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from classbot.config.loader import ConfigLoader
from classbot.config.schema import ClassbotConfig, ComponentConfig, is_component_enabled
from classbot.core.github_client import GitHubClient
from classbot.dao.alert_dao import AlertDAO
from classbot.dao.assignment_dao import AssignmentDAO
from classbot.dao.submission_dao import SubmissionDAO
from classbot.engines.autograde.runner import AutogradeRunner
from classbot.engines.badges.runner import BadgesRunner
from classbot.engines.gradelog.runner import GradeLogRunner
from classbot.engines.payloads import (
    CheckRunEvent,
    CheckSuiteEvent,
    PushEvent,
    RepositoryEvent,
    WorkflowJobEvent,
)
from classbot.engines.watchdog.runner import WatchdogRunner
from classbot.engines.workflows.runner import WorkflowSetupRunner
from classbot.services.alert_service import AlertService
from classbot.services.assignment_service import AssignmentService
from classbot.services.submission_service import SubmissionService

log = structlog.get_logger("classbot.dispatcher")

MATCH_ALL = "^.*$"

SUPPORTED_EVENTS = frozenset({"push", "check_suite", "check_run", "workflow_job"})


class RepoFilter:
    """Owner/name regexes a repository must both match to be processed.

    Defaults come from ``CLASSBOT_REPO_OWNER_PATTERN`` and
    ``CLASSBOT_REPO_NAME_PATTERN`` and match everything.
    """

    def __init__(self, owner_pattern: str | None = None, name_pattern: str | None = None) -> None:
        self.owner_re = re.compile(
            owner_pattern or os.environ.get("CLASSBOT_REPO_OWNER_PATTERN") or MATCH_ALL
        )
        self.name_re = re.compile(
            name_pattern or os.environ.get("CLASSBOT_REPO_NAME_PATTERN") or MATCH_ALL
        )

    def skip(self, owner: str, repo: str) -> bool:
        return self.owner_re.search(owner) is None or self.name_re.search(repo) is None


class EventDispatcher:
    """Routes each webhook event to its components, in order.

    ``push`` runs the workflow bootstrap then the watchdog; ``check_suite``
    (requested) runs autograde; ``check_run`` runs badges; ``workflow_job``
    (completed) runs the grade importer.  Every event gets its own database
    session.  The watchdog commits (or rolls back) its own alert; the grade
    importer is committed here.  A component exception aborts the rest of
    that event and propagates.
    """

    def __init__(
        self,
        client: GitHubClient,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        repo_filter: RepoFilter | None = None,
        config_loader: ConfigLoader | None = None,
        workflows: WorkflowSetupRunner | None = None,
        watchdog: WatchdogRunner | None = None,
        autograde: AutogradeRunner | None = None,
        badges: BadgesRunner | None = None,
        gradelog: GradeLogRunner | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._repo_filter = repo_filter or RepoFilter()
        self._config_loader = config_loader or ConfigLoader(client)

        assignment_service = AssignmentService(AssignmentDAO())
        self._workflows = workflows or WorkflowSetupRunner(client)
        self._watchdog = watchdog or WatchdogRunner(
            client, AlertService(AlertDAO()), assignment_service
        )
        self._autograde = autograde or AutogradeRunner(client)
        self._badges = badges or BadgesRunner(client)
        self._gradelog = gradelog or GradeLogRunner(
            client, SubmissionService(SubmissionDAO()), assignment_service
        )

        self._handlers: dict[str, Callable[[dict[str, Any]], Awaitable[list[str]]]] = {
            "push": self._on_push,
            "check_suite": self._on_check_suite,
            "check_run": self._on_check_run,
            "workflow_job": self._on_workflow_job,
        }

    @staticmethod
    def is_component_enabled(section: ComponentConfig | None) -> bool:
        return is_component_enabled(section)

    async def dispatch(self, event_name: str, payload: dict[str, Any]) -> list[str]:
        """Process one webhook delivery; returns the components that ran.

        Raises ``pydantic.ValidationError`` for malformed payloads and
        :class:`~classbot.config.ConfigError` for invalid configuration.
        """
        handler = self._handlers.get(event_name)
        if handler is None:
            log.debug("dispatch.unsupported_event", github_event=event_name)
            return []
        ran = await handler(payload)
        log.info("dispatch.done", github_event=event_name, components=ran)
        return ran

    async def _config_for(self, event: RepositoryEvent) -> ClassbotConfig | None:
        owner = event.repository.owner.login
        repo = event.repository.name
        if self._repo_filter.skip(owner, repo):
            log.debug("dispatch.repo_skipped", repo=f"{owner}/{repo}")
            return None
        structlog.contextvars.bind_contextvars(repo=f"{owner}/{repo}")
        return await self._config_loader.load(owner, repo)

    async def _on_push(self, payload: dict[str, Any]) -> list[str]:
        push = PushEvent.model_validate(payload)
        config = await self._config_for(push)
        if config is None:
            return []

        ran: list[str] = []
        async with self._session_factory() as session:
            if is_component_enabled(config.workflows):
                await self._workflows.run(push, config)
                ran.append("workflows")
            if is_component_enabled(config.watchdog):
                await self._watchdog.run(session, push, config)
                ran.append("watchdog")
        return ran

    async def _on_check_suite(self, payload: dict[str, Any]) -> list[str]:
        event = CheckSuiteEvent.model_validate(payload)
        if event.action != "requested":
            return []
        config = await self._config_for(event)
        if config is None or not is_component_enabled(config.autograde):
            return []
        await self._autograde.run(event, config)
        return ["autograde"]

    async def _on_check_run(self, payload: dict[str, Any]) -> list[str]:
        event = CheckRunEvent.model_validate(payload)
        config = await self._config_for(event)
        if config is None or not is_component_enabled(config.badges):
            return []
        await self._badges.run(event, config)
        return ["badges"]

    async def _on_workflow_job(self, payload: dict[str, Any]) -> list[str]:
        event = WorkflowJobEvent.model_validate(payload)
        if event.action != "completed":
            return []
        config = await self._config_for(event)
        if config is None or not is_component_enabled(config.gradelog):
            return []
        async with self._session_factory() as session:
            await self._gradelog.run(session, event, config)
            await session.commit()
        return ["gradelog"]
