"""SQLAlchemy ORM models: one file per table group."""

from classbot.models.alert import Alert
from classbot.models.classroom import Assignment, ClassroomOrg
from classbot.models.submission import (
    CodeSubmission,
    CodeSubmissionScoredBy,
    CodeSubmissionStatus,
    Submission,
)
from classbot.models.user import User, UserRole

__all__ = [
    "Alert",
    "Assignment",
    "ClassroomOrg",
    "CodeSubmission",
    "CodeSubmissionScoredBy",
    "CodeSubmissionStatus",
    "Submission",
    "User",
    "UserRole",
]
