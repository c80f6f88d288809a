"""GradeLogRunner: imports autograding results of completed workflow jobs."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

import httpx
import pydantic
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from classbot.config.schema import ClassbotConfig, is_component_enabled
from classbot.core.enums import as_enum
from classbot.core.github import parse_assignment_repo
from classbot.core.github_client import GitHubClient, PayloadTooLargeError
from classbot.engines.gradelog.artifact import (
    ArtifactError,
    AutogradeResult,
    extract_result,
    max_artifact_bytes,
    select_artifact,
)
from classbot.engines.payloads import WorkflowJobEvent
from classbot.models.submission import CodeSubmissionScoredBy, CodeSubmissionStatus
from classbot.services import DuplicateRecordError
from classbot.services.assignment_service import AssignmentService
from classbot.services.submission_service import SubmissionService

log = structlog.get_logger("classbot.gradelog")

# Workflow job payloads only carry the check run URL, not its id.
_CHECK_RUN_ID_RE = re.compile(r"check-runs/(\d+)$")


def parse_check_run_id(check_run_url: str | None) -> int | None:
    if not check_run_url:
        return None
    match = _CHECK_RUN_ID_RE.search(check_run_url)
    return int(match.group(1)) if match else None


class GradeLogRunner:
    """Records one Submission/CodeSubmission pair per completed autograding job.

    Every miss (author, assignment, artifact) is logged and ends the import;
    re-processing an already recorded ``head_sha`` is a silent no-op.
    """

    def __init__(
        self,
        client: GitHubClient,
        submission_service: SubmissionService,
        assignment_service: AssignmentService,
        max_bytes: int | None = None,
    ) -> None:
        self._client = client
        self._submission_service = submission_service
        self._assignment_service = assignment_service
        self._max_bytes = max_bytes if max_bytes is not None else max_artifact_bytes()

    async def run(
        self,
        session: AsyncSession,
        event: WorkflowJobEvent,
        config: ClassbotConfig,
    ) -> int | None:
        """Import the job's result; returns the new submission id, if any."""
        if not is_component_enabled(config.gradelog):
            return None

        job = event.workflow_job
        owner = event.repository.owner.login
        repo = event.repository.name
        bound = log.bind(repo=f"{owner}/{repo}", head_sha=job.head_sha, job_id=job.id)

        if job.name != config.gradelog.job_name:
            bound.info("gradelog.job_skipped", job_name=job.name)
            return None

        if await self._submission_service.is_recorded(session, job.head_sha):
            bound.info("gradelog.already_recorded")
            return None

        commit = await self._client.get(f"/repos/{owner}/{repo}/commits/{job.head_sha}")
        author = commit.get("author")
        if not author:
            bound.error("gradelog.author_unknown")
            return None

        parsed = parse_assignment_repo(repo, author["login"])
        if parsed is None:
            bound.error("gradelog.repo_unparsable", author=author["login"])
            return None

        org_id = event.repository.owner.id
        assignment = await self._assignment_service.find(
            session, parsed.assignment, org_id=org_id
        )
        if assignment is None:
            bound.error(
                "gradelog.assignment_not_found", org_id=org_id, assignment=parsed.assignment
            )
            return None
        if assignment.org is not None and assignment.org.name != owner:
            bound.warning("gradelog.org_name_mismatch", org_name=assignment.org.name)

        fetched = await self._fetch_result(owner, repo, job.head_sha, config, bound)
        if fetched is None:
            return None
        result, autograde = fetched

        status = as_enum(job.conclusion, CodeSubmissionStatus)
        try:
            submission = await self._submission_service.record_code_submission(
                session,
                timestamp=job.completed_at or datetime.now(timezone.utc),
                userid=author["id"],
                assignment_id=assignment.id,
                repo=repo,
                head_sha=job.head_sha,
                score=autograde.score,
                max_score=autograde.max_score,
                scored_by=CodeSubmissionScoredBy.ACTION,
                check_run_id=parse_check_run_id(job.check_run_url),
                status=status.value if status is not None else None,
                execution_time=autograde.execution_time,
                autograde=result,
            )
        except DuplicateRecordError:
            bound.info("gradelog.already_recorded")
            return None

        bound.info(
            "gradelog.recorded",
            submission_id=submission.id,
            score=autograde.score,
            max_score=autograde.max_score,
        )
        return submission.id

    async def _fetch_result(
        self,
        owner: str,
        repo: str,
        head_sha: str,
        config: ClassbotConfig,
        bound: structlog.stdlib.BoundLogger,
    ) -> tuple[dict[str, Any], AutogradeResult] | None:
        artifact_name = config.gradelog.artifact_name
        listing = await self._client.get(
            f"/repos/{owner}/{repo}/actions/artifacts", params={"name": artifact_name}
        )
        artifact = select_artifact(listing.get("artifacts") or [], head_sha)
        if artifact is None:
            bound.error("gradelog.artifact_not_found", artifact_name=artifact_name)
            return None
        bound.info("gradelog.artifact_found", artifact_id=artifact["id"])

        try:
            data = await self._client.download(
                f"/repos/{owner}/{repo}/actions/artifacts/{artifact['id']}/zip",
                max_bytes=self._max_bytes,
            )
            result = extract_result(data, self._max_bytes)
            return result, AutogradeResult.model_validate(result)
        except (
            ArtifactError,
            PayloadTooLargeError,
            httpx.HTTPStatusError,
            pydantic.ValidationError,
        ) as exc:
            bound.error("gradelog.artifact_unusable", artifact_id=artifact["id"], error=str(exc))
            return None
