"""AssignmentService: assignment lookups for identity resolution and the API."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from classbot.dao.assignment_dao import AssignmentDAO, ClassroomOrgDAO
from classbot.models.classroom import Assignment
from classbot.services import NotFoundError


class AssignmentService:
    """Stateless service resolving repositories to assignment rows."""

    def __init__(
        self, assignment_dao: AssignmentDAO, org_dao: ClassroomOrgDAO | None = None
    ) -> None:
        self._assignment_dao = assignment_dao
        self._org_dao = org_dao or ClassroomOrgDAO()

    async def find(
        self,
        session: AsyncSession,
        name: str,
        *,
        org_name: str | None = None,
        org_id: int | None = None,
    ) -> Assignment | None:
        """Return the assignment *name* in the given org, or None.

        Exactly one of *org_name* / *org_id* must be given.
        """
        if (org_name is None) == (org_id is None):
            raise ValueError("pass exactly one of org_name or org_id")
        if org_id is not None:
            return await self._assignment_dao.get_by_org_id(session, org_id, name)
        return await self._assignment_dao.get_by_org_name(session, org_name, name)

    async def list_for_org(self, session: AsyncSession, org_name: str) -> list[Assignment]:
        """All assignments of a classroom org, by name.

        Raises :class:`NotFoundError` for an org classbot does not know.
        """
        org = await self._org_dao.get_by_name(session, org_name)
        if org is None:
            raise NotFoundError(f"classroom org {org_name!r} not found")
        return await self._assignment_dao.list_by_org_id(session, org.id)
