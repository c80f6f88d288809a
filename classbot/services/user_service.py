"""UserService: staff and student profiles."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from classbot.dao.user_dao import UserDAO
from classbot.models.user import User
from classbot.services import NotFoundError


class UserService:
    def __init__(self, user_dao: UserDAO) -> None:
        self._user_dao = user_dao

    async def get(self, session: AsyncSession, userid: int) -> User:
        """Return the user with GitHub id *userid*; raises :class:`NotFoundError`."""
        user = await self._user_dao.get_by_id(session, userid)
        if user is None:
            raise NotFoundError(f"user {userid} not found")
        return user
