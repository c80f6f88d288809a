"""BadgesRunner: keeps the score badge on the status branch current."""

from __future__ import annotations

import base64
import posixpath

import httpx
import structlog

from classbot.config.schema import ClassbotConfig, is_component_enabled
from classbot.core.github import bot_git_identity
from classbot.core.github_client import GitHubClient, is_not_found
from classbot.engines.badges.badge import create_points_badge, parse_autograding_score
from classbot.engines.payloads import CheckRunEvent

log = structlog.get_logger("classbot.badges")

AUTOGRADING_CHECK_NAME = "Autograding"
BADGE_FILENAME = "score.svg"


class BadgesRunner:
    """Rewrites ``<badges.path>/score.svg`` after each autograding check run."""

    def __init__(self, client: GitHubClient) -> None:
        self._client = client

    async def run(self, event: CheckRunEvent, config: ClassbotConfig) -> bool:
        """Returns True if the badge file was updated."""
        if not is_component_enabled(config.badges):
            return False

        check_run = event.check_run
        if (
            event.action != "completed"
            or check_run.conclusion == "skipped"
            or check_run.name != AUTOGRADING_CHECK_NAME
        ):
            return False

        owner = event.repository.owner.login
        repo = event.repository.name
        bound = log.bind(repo=f"{owner}/{repo}", check_run_id=check_run.id)

        score = parse_autograding_score(
            check_run.conclusion, check_run.output.summary or check_run.output.text
        )
        bound.info("badges.score", score=score.score, max_score=score.max_score)

        badge_path = posixpath.join(config.badges.path, BADGE_FILENAME)
        contents_url = f"/repos/{owner}/{repo}/contents/{badge_path}"

        # Updating a file requires the blob SHA of its current contents.
        try:
            current = await self._client.get(contents_url, params={"ref": config.badges.branch})
        except httpx.HTTPStatusError as exc:
            if not is_not_found(exc):
                raise
            bound.error("badges.badge_missing", path=badge_path, branch=config.badges.branch)
            return False

        svg = create_points_badge(score.score, score.max_score)
        await self._client.put(
            contents_url,
            {
                "message": f"Updated badge ({score.score}/{score.max_score} points)",
                "content": base64.b64encode(svg.encode("utf-8")).decode("ascii"),
                "sha": current["sha"],
                "branch": config.badges.branch,
                "committer": bot_git_identity(),
            },
        )
        bound.info("badges.updated", path=badge_path)
        return True
