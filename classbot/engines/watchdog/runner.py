"""WatchdogRunner: validates a push, files the issue, records the alert."""

from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from classbot.config.schema import ClassbotConfig, is_component_enabled
from classbot.core.github import parse_assignment_repo
from classbot.core.github_client import GitHubClient
from classbot.engines.payloads import PushEvent
from classbot.engines.watchdog.issues import IssueReconciler, format_timestamp
from classbot.engines.watchdog.models import PolicyViolation, WatchdogIssue, WatchdogResult
from classbot.engines.watchdog.policy import evaluate_push, render_description
from classbot.services import DuplicateRecordError
from classbot.services.alert_service import AlertService
from classbot.services.assignment_service import AssignmentService

log = structlog.get_logger("classbot.watchdog")


class WatchdogRunner:
    """Runs the watchdog component for one push event.

    The issue is the authoritative outcome: GitHub errors while filing it
    propagate, while anything that goes wrong recording the alert afterwards
    is logged and dropped.
    """

    def __init__(
        self,
        client: GitHubClient,
        alert_service: AlertService,
        assignment_service: AssignmentService,
        reconciler: IssueReconciler | None = None,
    ) -> None:
        self._client = client
        self._alert_service = alert_service
        self._assignment_service = assignment_service
        self._reconciler = reconciler or IssueReconciler(client)

    async def list_collaborators(self, owner: str, repo: str) -> list[str]:
        """Logins of direct collaborators that can push to the repository."""
        logins = []
        async for collaborator in self._client.get_paginated(
            f"/repos/{owner}/{repo}/collaborators", params={"affiliation": "direct"}
        ):
            if (collaborator.get("permissions") or {}).get("push") is True:
                logins.append(collaborator["login"])
        return logins

    async def run(
        self,
        session: AsyncSession,
        push: PushEvent,
        config: ClassbotConfig,
        now: datetime | None = None,
    ) -> WatchdogResult:
        result = WatchdogResult()
        if not is_component_enabled(config.watchdog):
            return result

        owner = push.repository.owner.login
        repo = push.repository.name
        bound = log.bind(repo=f"{owner}/{repo}", sha=push.after)

        collaborators: list[str] = []
        if config.watchdog.validate_author:
            collaborators = await self.list_collaborators(owner, repo)
            bound.debug("watchdog.collaborators", collaborators=collaborators)

        result.violations = evaluate_push(push, config, collaborators)
        if result.violations:
            bound.info(
                "watchdog.violations",
                kinds=[v.kind for v in result.violations],
                pusher=push.pusher.name,
            )
            description = render_description(result.violations, push.commits)
            result.issue = await self._reconciler.file_or_update_issue(
                owner, repo, config.watchdog.issue, description, now=now
            )
            result.alert_id = await self.record_alert(
                session, push, result.issue, result.violations
            )

        if config.watchdog.timestamp_comment and push.commits:
            await self.create_timestamp_comment(push, now)
            result.commented = True
            bound.info("watchdog.timestamp_comment")

        return result

    async def record_alert(
        self,
        session: AsyncSession,
        push: PushEvent,
        issue: WatchdogIssue,
        violations: list[PolicyViolation],
    ) -> int | None:
        """Persist the alert for *push*; returns its id, or None if not recorded.

        The alert is committed here. A duplicate SHA or any other failure is
        logged and the session rolled back; this method never raises.
        """
        owner = push.repository.owner.login
        repo = push.repository.name
        try:
            commit = await self._client.get(f"/repos/{owner}/{repo}/commits/{push.after}")
            author = commit.get("author") or {}
            login = author.get("login")

            assignment = None
            parsed = parse_assignment_repo(repo, login)
            if parsed is not None:
                assignment = await self._assignment_service.find(
                    session, parsed.assignment, org_name=owner
                )
            if assignment is None:
                log.warning(
                    "watchdog.assignment_not_found",
                    repo=f"{owner}/{repo}",
                    assignment=parsed.assignment if parsed else None,
                )

            alert = await self._alert_service.record(
                session,
                repo=f"{owner}/{repo}",
                sha=push.after,
                issue=issue.number,
                userid=author.get("id"),
                assignment_id=assignment.id if assignment is not None else None,
                details=[v.to_dict() for v in violations],
            )
            await session.commit()
        except DuplicateRecordError:
            await session.rollback()
            log.info("watchdog.alert_duplicate", repo=f"{owner}/{repo}", sha=push.after)
            return None
        except Exception:
            await session.rollback()
            log.error(
                "watchdog.alert_failed",
                repo=f"{owner}/{repo}",
                sha=push.after,
                exc_info=True,
            )
            return None

        log.info("watchdog.alert_recorded", repo=f"{owner}/{repo}", alert_id=alert.id)
        return alert.id

    async def create_timestamp_comment(self, push: PushEvent, now: datetime | None = None) -> None:
        """Comment the push time on the last commit of *push*."""
        owner = push.repository.owner.login
        repo = push.repository.name
        await self._client.post(
            f"/repos/{owner}/{repo}/commits/{push.commits[-1].id}/comments",
            {"body": f"Pushed at {format_timestamp(now)}"},
        )
