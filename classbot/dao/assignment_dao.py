"""AssignmentDAO: assignments / classroom_orgs table operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from classbot.dao.base import BaseDAO
from classbot.models.classroom import Assignment, ClassroomOrg


class AssignmentDAO(BaseDAO[Assignment]):
    model = Assignment

    async def get_by_org_name(
        self, session: AsyncSession, org_name: str, name: str
    ) -> Assignment | None:
        """Look up an assignment by organization login and assignment name."""
        stmt = (
            select(Assignment)
            .join(ClassroomOrg, Assignment.org_id == ClassroomOrg.id)
            .where(ClassroomOrg.name == org_name, Assignment.name == name)
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def get_by_org_id(
        self, session: AsyncSession, org_id: int, name: str
    ) -> Assignment | None:
        """Look up an assignment by GitHub organization id and assignment name.

        The owning org is eagerly joined so callers can compare its name.
        """
        stmt = select(Assignment).where(Assignment.org_id == org_id, Assignment.name == name)
        result = await session.execute(stmt)
        return result.scalars().first()

    async def list_by_org_id(self, session: AsyncSession, org_id: int) -> list[Assignment]:
        stmt = select(Assignment).where(Assignment.org_id == org_id).order_by(Assignment.name)
        result = await session.execute(stmt)
        return list(result.scalars().all())


class ClassroomOrgDAO(BaseDAO[ClassroomOrg]):
    model = ClassroomOrg

    async def get_by_name(self, session: AsyncSession, name: str) -> ClassroomOrg | None:
        return await self.get_by_field(session, name=name)
