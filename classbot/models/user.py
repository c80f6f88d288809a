"""users table."""

import enum
from typing import Optional

from sqlalchemy import BigInteger, Enum, Text
from sqlalchemy.orm import Mapped, mapped_column

from classbot.core.database import Base


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    MEMBER = "member"


user_role_enum = Enum(
    *(r.value for r in UserRole),
    name="user_role",
    native_enum=False,
)


class User(Base):
    __tablename__ = "users"

    # GitHub user id
    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    sis_id: Mapped[Optional[str]] = mapped_column(Text, unique=True)
    role: Mapped[str] = mapped_column(
        user_role_enum, nullable=False, default=UserRole.MEMBER.value
    )
    name: Mapped[Optional[str]] = mapped_column(Text)
