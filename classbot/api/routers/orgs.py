"""Classroom org router: assignment listing."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from classbot.api.deps import get_assignment_service, get_session, require_api_token
from classbot.api.schemas.classroom import AssignmentItem
from classbot.services.assignment_service import AssignmentService

router = APIRouter()


@router.get("/{org}/assignments", response_model=list[AssignmentItem])
async def list_assignments(
    org: str,
    session: AsyncSession = Depends(get_session),
    _auth: None = Depends(require_api_token),
    svc: AssignmentService = Depends(get_assignment_service),
) -> list[AssignmentItem]:
    rows = await svc.list_for_org(session, org)
    return [AssignmentItem.model_validate(a) for a in rows]
