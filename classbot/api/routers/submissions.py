"""Submissions router (read-only grade ledger)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from classbot.api.deps import get_session, get_submission_service, require_api_token
from classbot.api.schemas.common import PaginatedResponse, ledger_page
from classbot.api.schemas.submission import SubmissionListItem
from classbot.services.submission_service import SubmissionService

router = APIRouter()


@router.get("/", response_model=PaginatedResponse[SubmissionListItem])
async def list_submissions(
    cursor: str | None = Query(None),
    page_size: int = Query(20, ge=1, le=100),
    org: str | None = Query(None),
    assignment: str | None = Query(None),
    userid: int | None = Query(None),
    session: AsyncSession = Depends(get_session),
    _auth: None = Depends(require_api_token),
    svc: SubmissionService = Depends(get_submission_service),
) -> PaginatedResponse[SubmissionListItem]:
    result = await svc.list(
        session,
        cursor=cursor,
        page_size=page_size,
        org=org,
        assignment=assignment,
        userid=userid,
    )
    return ledger_page(SubmissionListItem, result)
