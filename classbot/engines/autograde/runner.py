"""AutogradeRunner: placeholder grader posting a fixed check run."""

from __future__ import annotations

import structlog

from classbot.config.schema import ClassbotConfig, is_component_enabled
from classbot.core.github_client import GitHubClient
from classbot.engines.payloads import CheckSuiteEvent

log = structlog.get_logger("classbot.autograde")

FAKE_CHECK_NAME = "Autograding (fake)"
FAKE_SUMMARY = "Points 70/100"


class AutogradeRunner:
    """Stands in for out-of-repo grading on submission-branch check suites."""

    def __init__(self, client: GitHubClient) -> None:
        self._client = client

    async def run(self, event: CheckSuiteEvent, config: ClassbotConfig) -> bool:
        """Returns True if a check run was posted."""
        if not is_component_enabled(config.autograde):
            return False

        suite = event.check_suite
        owner = event.repository.owner.login
        repo = event.repository.name
        if suite.head_branch != config.submission.branch:
            log.info("autograde.branch_skipped", repo=f"{owner}/{repo}", branch=suite.head_branch)
            return False

        # TODO: run the skeleton repo's tests instead of reporting a fixed score
        data = await self._client.post(
            f"/repos/{owner}/{repo}/check-runs",
            {
                "name": FAKE_CHECK_NAME,
                "head_sha": suite.head_sha,
                "status": "completed",
                "conclusion": "success",
                "output": {
                    "title": FAKE_CHECK_NAME,
                    "summary": FAKE_SUMMARY,
                    "text": FAKE_SUMMARY,
                },
            },
        )
        log.info("autograde.check_run_posted", repo=f"{owner}/{repo}", url=data.get("html_url"))
        return True
