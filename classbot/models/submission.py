"""submissions and code_submissions tables."""

import enum
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    BigInteger,
    DateTime,
    Double,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Text,
    desc,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from classbot.core.database import Base, JSONType


class CodeSubmissionScoredBy(str, enum.Enum):
    ACTION = "action"  # in-repo GitHub Classroom autograding action
    BOT = "bot"  # out-of-repo autograde component


class CodeSubmissionStatus(str, enum.Enum):
    """Mirrors GitHub check-run conclusions, minus action_required/cancelled/skipped/stale."""

    FAILURE = "failure"
    NEUTRAL = "neutral"
    SUCCESS = "success"
    TIMED_OUT = "timed_out"


scored_by_enum = Enum(
    *(s.value for s in CodeSubmissionScoredBy),
    name="code_submission_scored_by",
    native_enum=False,
)
submission_status_enum = Enum(
    *(s.value for s in CodeSubmissionStatus),
    name="code_submission_status",
    native_enum=False,
)


class Submission(Base):
    __tablename__ = "submissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    userid: Mapped[int] = mapped_column(BigInteger, nullable=False)
    assignment_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False
    )
    score: Mapped[Optional[float]] = mapped_column(Double)
    max_score: Mapped[Optional[float]] = mapped_column(Double)

    code: Mapped[Optional["CodeSubmission"]] = relationship(
        back_populates="submission", lazy="selectin", uselist=False
    )

    __table_args__ = (
        Index("idx_submissions_cursor", desc("timestamp"), desc("id")),
        Index("idx_submissions_assignment_user", "assignment_id", "userid"),
    )


class CodeSubmission(Base):
    """1-1 extension of :class:`Submission` for pushes scored by an autograder."""

    __tablename__ = "code_submissions"

    id: Mapped[int] = mapped_column(
        Integer, ForeignKey("submissions.id", ondelete="CASCADE"), primary_key=True
    )
    repo: Mapped[str] = mapped_column(Text, nullable=False)  # plain name, without owner
    head_sha: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    scored_by: Mapped[Optional[str]] = mapped_column(scored_by_enum)
    check_run_id: Mapped[Optional[int]] = mapped_column(BigInteger)
    status: Mapped[Optional[str]] = mapped_column(submission_status_enum)
    execution_time: Mapped[Optional[float]] = mapped_column(Double)  # seconds
    autograde: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType)

    submission: Mapped[Submission] = relationship(back_populates="code")
