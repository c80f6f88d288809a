"""WorkflowSetupRunner: installs the classroom autograding workflow once."""

from __future__ import annotations

import re

import httpx
import structlog

from classbot.config.schema import ClassbotConfig, is_component_enabled
from classbot.core.github import bot_git_identity
from classbot.core.github_client import GitHubClient, is_not_found
from classbot.engines.payloads import PushEvent

log = structlog.get_logger("classbot.workflows")

SETUP_COMMIT_MESSAGE = "Setting up classroom autograde workflow"


class WorkflowSetupRunner:
    """Copies the workflow template to ``.github/workflows`` on the setup push.

    Triggers on pushes rather than repository creation so it cannot race the
    Classroom bot's own initial commits; the pusher and message filters pick
    out those commits.
    """

    def __init__(self, client: GitHubClient) -> None:
        self._client = client

    async def _get_contents(self, owner: str, repo: str, path: str) -> dict | None:
        try:
            return await self._client.get(f"/repos/{owner}/{repo}/contents/{path}")
        except httpx.HTTPStatusError as exc:
            if is_not_found(exc):
                return None
            raise

    async def run(self, push: PushEvent, config: ClassbotConfig) -> bool:
        """Returns True if the workflow file was created."""
        if not is_component_enabled(config.workflows):
            return False

        workflows = config.workflows
        owner = push.repository.owner.login
        repo = push.repository.name
        bound = log.bind(repo=f"{owner}/{repo}")

        if workflows.pusher_filter and not re.search(workflows.pusher_filter, push.pusher.name):
            bound.info("workflows.pusher_skipped", pusher=push.pusher.name)
            return False

        if workflows.message_filter and not any(
            re.search(workflows.message_filter, c.message) for c in push.commits
        ):
            bound.info("workflows.message_skipped", commits=len(push.commits))
            return False

        if await self._get_contents(owner, repo, workflows.destination_path) is not None:
            bound.info("workflows.already_present", path=workflows.destination_path)
            return False

        source = await self._get_contents(owner, repo, workflows.source_path)
        if source is None:
            bound.info("workflows.source_missing", path=workflows.source_path)
            return False
        if not source.get("content"):
            bound.error("workflows.source_without_content", path=workflows.source_path)
            return False

        data = await self._client.put(
            f"/repos/{owner}/{repo}/contents/{workflows.destination_path}",
            {
                "message": SETUP_COMMIT_MESSAGE,
                # contents API returns base64 with embedded newlines
                "content": "".join(source["content"].split()),
                "committer": bot_git_identity(),
            },
        )
        bound.info(
            "workflows.installed",
            path=workflows.destination_path,
            commit=(data.get("commit") or {}).get("sha"),
        )
        return True
