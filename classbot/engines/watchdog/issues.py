"""Create-or-update of the single live watchdog issue in a repository."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

import chevron
import structlog

from classbot.config.schema import IssueConfig
from classbot.core.github_client import GitHubClient
from classbot.engines.watchdog.models import WatchdogIssue

log = structlog.get_logger("classbot.watchdog")

UPDATED_PREFIX = "[Updated]"
MULTIPLE_ISSUES_WARNING = (
    "> **Warning**\n"
    "> Other open classbot issues found! Updating only the latest, "
    "but please resolve others too.\n\n"
)


def format_timestamp(now: datetime | None = None) -> str:
    """Human-readable UTC timestamp used in issue headers and comments."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%a %b %d %Y %H:%M:%S UTC")


def render_issue_template(
    template: str,
    *,
    owner: str,
    repo: str,
    title: str,
    assignees: Sequence[str],
    labels: Sequence[str],
    description: str,
) -> str:
    """Render the configured Mustache issue template.

    Available variables: ``owner``, ``repo``, ``title``, ``description`` and
    the ``assignees`` and ``labels`` lists (for sections).  Double-brace tags
    are HTML-escaped; use triple braces for Markdown such as the description.
    """
    return chevron.render(
        template,
        {
            "owner": owner,
            "repo": repo,
            "title": title,
            "assignees": list(assignees),
            "labels": list(labels),
            "description": description,
        },
    )


def updated_title(title: str) -> str:
    if title.startswith(UPDATED_PREFIX):
        return title
    return f"{UPDATED_PREFIX} {title}"


class IssueReconciler:
    """Files a new watchdog issue or prepends to the most recent open one.

    Issues are found by label, so at most one open issue per label is treated
    as live.  Previous bodies are kept verbatim below each new section.
    GitHub errors propagate to the caller.
    """

    def __init__(self, client: GitHubClient) -> None:
        self._client = client

    async def _open_issues(self, owner: str, repo: str, label: str) -> list[dict[str, Any]]:
        return await self._client.get(
            f"/repos/{owner}/{repo}/issues",
            params={
                "state": "open",
                "labels": label,
                "sort": "updated",
                "direction": "desc",
                # one vs. more than one is all we need to know
                "per_page": 2,
            },
        )

    async def file_or_update_issue(
        self,
        owner: str,
        repo: str,
        issue_config: IssueConfig,
        description: str,
        now: datetime | None = None,
    ) -> WatchdogIssue:
        labels = [issue_config.label, *issue_config.extra_labels]
        body = render_issue_template(
            issue_config.template,
            owner=owner,
            repo=repo,
            title=issue_config.title,
            assignees=issue_config.assignees,
            labels=labels,
            description=description,
        )
        timestamp = format_timestamp(now)

        open_issues = await self._open_issues(owner, repo, issue_config.label)

        if not open_issues:
            data = await self._client.post(
                f"/repos/{owner}/{repo}/issues",
                {
                    "title": issue_config.title,
                    "body": f"***Created on {timestamp}:***\n\n{body}",
                    "assignees": list(issue_config.assignees),
                    "labels": labels,
                },
            )
            log.info("watchdog.issue_created", repo=f"{owner}/{repo}", issue=data["number"])
            return WatchdogIssue(
                number=data["number"],
                title=data.get("title", issue_config.title),
                body=data.get("body") or "",
                html_url=data.get("html_url"),
                created=True,
            )

        issue = open_issues[0]
        warning = MULTIPLE_ISSUES_WARNING if len(open_issues) > 1 else ""
        new_title = updated_title(issue["title"])
        new_body = (
            f"***Updated on {timestamp}:***\n\n{warning}{body}\n---\n\n{issue.get('body') or ''}"
        )
        data = await self._client.patch(
            f"/repos/{owner}/{repo}/issues/{issue['number']}",
            {"title": new_title, "body": new_body},
        )
        log.info(
            "watchdog.issue_updated",
            repo=f"{owner}/{repo}",
            issue=issue["number"],
            open_issues=len(open_issues),
        )
        return WatchdogIssue(
            number=issue["number"],
            title=data.get("title", new_title),
            body=data.get("body") or new_body,
            html_url=data.get("html_url", issue.get("html_url")),
            created=False,
        )
