"""SubmissionDAO: submissions / code_submissions table operations."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from classbot.dao.base import BaseDAO, DuplicateKeyError, Page
from classbot.models.classroom import Assignment, ClassroomOrg
from classbot.models.submission import CodeSubmission, Submission


class SubmissionDAO(BaseDAO[Submission]):
    model = Submission

    # ── read ──────────────────────────────────────────────────────────────

    async def get_code_by_head_sha(
        self, session: AsyncSession, head_sha: str
    ) -> CodeSubmission | None:
        stmt = select(CodeSubmission).where(CodeSubmission.head_sha == head_sha)
        result = await session.execute(stmt)
        return result.scalars().first()

    def _filtered(
        self,
        org: str | None,
        assignment: str | None,
        userid: int | None,
    ):
        query = select(Submission)
        if org is not None or assignment is not None:
            query = query.join(Assignment, Submission.assignment_id == Assignment.id)
        if org is not None:
            query = query.join(ClassroomOrg, Assignment.org_id == ClassroomOrg.id).where(
                ClassroomOrg.name == org
            )
        if assignment is not None:
            query = query.where(Assignment.name == assignment)
        if userid is not None:
            query = query.where(Submission.userid == userid)
        return query

    async def list_paginated(
        self,
        session: AsyncSession,
        cursor: str | None = None,
        page_size: int = 20,
        *,
        org: str | None = None,
        assignment: str | None = None,
        userid: int | None = None,
    ) -> Page[Submission]:
        """Paginated submission list (with code details), newest first (API)."""
        query = self._filtered(org, assignment, userid)
        return await self.paginate(session, query, cursor, page_size)

    async def count_filtered(
        self,
        session: AsyncSession,
        *,
        org: str | None = None,
        assignment: str | None = None,
        userid: int | None = None,
    ) -> int:
        return await self.count(session, self._filtered(org, assignment, userid))

    # ── write ─────────────────────────────────────────────────────────────

    async def create_with_code(
        self,
        session: AsyncSession,
        submission: dict[str, Any],
        code: dict[str, Any],
    ) -> Submission:
        """Insert a submission and its code_submissions row atomically.

        Both rows go in under one SAVEPOINT: either both land or neither does.
        Raises ``DuplicateKeyError`` if ``code["head_sha"]`` is already recorded.
        """
        head_sha = code.get("head_sha")
        try:
            async with session.begin_nested():
                sub = Submission(**submission)
                session.add(sub)
                await session.flush()
                session.add(CodeSubmission(id=sub.id, **code))
                await session.flush()
        except IntegrityError:
            if await self.get_code_by_head_sha(session, head_sha) is not None:
                raise DuplicateKeyError("code_submissions", "head_sha", head_sha) from None
            raise
        await session.refresh(sub, attribute_names=["code"])
        return sub
