"""classroom_orgs and assignments tables."""

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from classbot.core.database import Base


class ClassroomOrg(Base):
    __tablename__ = "classroom_orgs"

    # GitHub organization id
    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    assignments: Mapped[list["Assignment"]] = relationship(back_populates="org")


class Assignment(Base):
    __tablename__ = "assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    org_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("classroom_orgs.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    due: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    org: Mapped[ClassroomOrg] = relationship(back_populates="assignments", lazy="joined")

    __table_args__ = (UniqueConstraint("org_id", "name", name="uq_assignments_org_name"),)
