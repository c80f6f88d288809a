"""AlertService: watchdog alert ledger."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from classbot.dao.alert_dao import AlertDAO
from classbot.dao.base import DuplicateKeyError
from classbot.models.alert import Alert
from classbot.services import DuplicateRecordError


class AlertService:
    """Stateless service for recording and listing watchdog alerts."""

    def __init__(self, alert_dao: AlertDAO) -> None:
        self._alert_dao = alert_dao

    async def record(
        self,
        session: AsyncSession,
        *,
        repo: str,
        sha: str,
        details: list[dict[str, Any]],
        issue: int | None = None,
        userid: int | None = None,
        assignment_id: int | None = None,
        timestamp: datetime | None = None,
    ) -> Alert:
        """Insert one alert row for the push whose head commit is *sha*.

        Raises :class:`DuplicateRecordError` if an alert for *sha* already
        exists.  Other database failures propagate unchanged.
        """
        try:
            return await self._alert_dao.insert(
                session,
                timestamp=timestamp or datetime.now(timezone.utc),
                userid=userid,
                assignment_id=assignment_id,
                repo=repo,
                issue=issue,
                sha=sha,
                details=details,
            )
        except DuplicateKeyError as exc:
            raise DuplicateRecordError(exc.key, exc.value) from exc

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
        """Return paginated alert list, newest first."""
        page = await self._alert_dao.list_paginated(
            session, cursor, page_size, org=org, assignment=assignment, userid=userid
        )
        total = await self._alert_dao.count_filtered(
            session, org=org, assignment=assignment, userid=userid
        )
        return {
            "data": page.data,
            "next_cursor": page.next_cursor,
            "has_more": page.has_more,
            "total": total,
        }
