"""SubmissionService: grade ledger."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from classbot.dao.base import DuplicateKeyError
from classbot.dao.submission_dao import SubmissionDAO
from classbot.models.submission import CodeSubmissionScoredBy, Submission
from classbot.services import DuplicateRecordError


class SubmissionService:
    """Stateless service for code submissions imported from autograder runs."""

    def __init__(self, submission_dao: SubmissionDAO) -> None:
        self._submission_dao = submission_dao

    async def record_code_submission(
        self,
        session: AsyncSession,
        *,
        timestamp: datetime,
        userid: int,
        assignment_id: int,
        repo: str,
        head_sha: str,
        score: float | None = None,
        max_score: float | None = None,
        scored_by: CodeSubmissionScoredBy = CodeSubmissionScoredBy.ACTION,
        check_run_id: int | None = None,
        status: str | None = None,
        execution_time: float | None = None,
        autograde: dict[str, Any] | None = None,
    ) -> Submission:
        """Insert a Submission and its CodeSubmission atomically.

        Raises :class:`DuplicateRecordError` when *head_sha* was already
        recorded; neither row is written in that case.
        """
        try:
            return await self._submission_dao.create_with_code(
                session,
                submission={
                    "timestamp": timestamp,
                    "userid": userid,
                    "assignment_id": assignment_id,
                    "score": score,
                    "max_score": max_score,
                },
                code={
                    "repo": repo,
                    "head_sha": head_sha,
                    "scored_by": scored_by.value,
                    "check_run_id": check_run_id,
                    "status": status,
                    "execution_time": execution_time,
                    "autograde": autograde,
                },
            )
        except DuplicateKeyError as exc:
            raise DuplicateRecordError(exc.key, exc.value) from exc

    async def is_recorded(self, session: AsyncSession, head_sha: str) -> bool:
        """True if a code submission for *head_sha* already exists."""
        return await self._submission_dao.get_code_by_head_sha(session, head_sha) is not None

    async def list(
        self,
        session: AsyncSession,
        cursor: str | None = None,
        page_size: int = 20,
        *,
        org: str | None = None,
        assignment: str | None = None,
        userid: int | None = None,
    ) -> dict:
        """Return paginated submission list, newest first."""
        page = await self._submission_dao.list_paginated(
            session, cursor, page_size, org=org, assignment=assignment, userid=userid
        )
        total = await self._submission_dao.count_filtered(
            session, org=org, assignment=assignment, userid=userid
        )
        return {
            "data": page.data,
            "next_cursor": page.next_cursor,
            "has_more": page.has_more,
            "total": total,
        }
