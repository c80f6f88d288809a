"""AlertDAO: alerts table operations."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from classbot.dao.base import BaseDAO, Page
from classbot.models.alert import Alert
from classbot.models.classroom import Assignment, ClassroomOrg


class AlertDAO(BaseDAO[Alert]):
    model = Alert

    # ── read ──────────────────────────────────────────────────────────────

    async def get_by_sha(self, session: AsyncSession, sha: str) -> Alert | None:
        return await self.get_by_field(session, sha=sha)

    def _filtered(
        self,
        org: str | None,
        assignment: str | None,
        userid: int | None,
    ):
        query = select(Alert)
        if org is not None or assignment is not None:
            query = query.join(Assignment, Alert.assignment_id == Assignment.id)
        if org is not None:
            query = query.join(ClassroomOrg, Assignment.org_id == ClassroomOrg.id).where(
                ClassroomOrg.name == org
            )
        if assignment is not None:
            query = query.where(Assignment.name == assignment)
        if userid is not None:
            query = query.where(Alert.userid == userid)
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
    ) -> Page[Alert]:
        """Paginated alert list, newest first, optionally filtered (API)."""
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

    async def insert(self, session: AsyncSession, **values: Any) -> Alert:
        """Insert one alert; raises ``DuplicateKeyError`` if ``sha`` was already recorded."""
        return await self.create_unique(session, "sha", **values)
