"""UserDAO: users table operations."""

from sqlalchemy.ext.asyncio import AsyncSession

from classbot.dao.base import BaseDAO
from classbot.models.user import User


class UserDAO(BaseDAO[User]):
    model = User

    async def get_by_username(self, session: AsyncSession, username: str) -> User | None:
        return await self.get_by_field(session, username=username)
