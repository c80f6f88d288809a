"""Alert response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class AlertListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    timestamp: datetime
    cleared: bool
    userid: int | None
    assignment_id: int | None
    repo: str
    issue: int | None
    sha: str
    details: list[dict[str, Any]] | None
