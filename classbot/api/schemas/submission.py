"""Submission response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class CodeSubmissionDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    repo: str
    head_sha: str
    scored_by: str | None
    check_run_id: int | None
    status: str | None
    execution_time: float | None
    autograde: dict[str, Any] | None


class SubmissionListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    timestamp: datetime
    userid: int
    assignment_id: int
    score: float | None
    max_score: float | None
    code: CodeSubmissionDetail | None = None
