"""alerts table."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    desc,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from classbot.core.database import Base, JSONType


class Alert(Base):
    """One row per push that violated the submission policy.

    Rows are append-only; ``cleared`` exists for staff bookkeeping but
    nothing in the bot ever sets it.
    """

    __tablename__ = "alerts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    cleared: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )

    # GitHub id of the push author; users rows only exist once they sign in
    userid: Mapped[Optional[int]] = mapped_column(BigInteger)
    assignment_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("assignments.id", ondelete="SET NULL")
    )

    repo: Mapped[str] = mapped_column(Text, nullable=False)  # owner/name
    issue: Mapped[Optional[int]] = mapped_column(Integer)
    sha: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    details: Mapped[Optional[list[dict[str, Any]]]] = mapped_column(JSONType)

    __table_args__ = (
        Index("idx_alerts_cursor", desc("timestamp"), desc("id")),
        Index("idx_alerts_assignment", "assignment_id"),
        Index("idx_alerts_user", "userid"),
    )
