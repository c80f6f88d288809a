"""Alerts router (read-only ledger)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from classbot.api.deps import get_alert_service, get_session, require_api_token
from classbot.api.schemas.alert import AlertListItem
from classbot.api.schemas.common import PaginatedResponse, ledger_page
from classbot.services.alert_service import AlertService

router = APIRouter()


@router.get("/", response_model=PaginatedResponse[AlertListItem])
async def list_alerts(
    cursor: str | None = Query(None),
    page_size: int = Query(20, ge=1, le=100),
    org: str | None = Query(None),
    assignment: str | None = Query(None),
    userid: int | None = Query(None),
    session: AsyncSession = Depends(get_session),
    _auth: None = Depends(require_api_token),
    svc: AlertService = Depends(get_alert_service),
) -> PaginatedResponse[AlertListItem]:
    result = await svc.list(
        session,
        cursor=cursor,
        page_size=page_size,
        org=org,
        assignment=assignment,
        userid=userid,
    )
    return ledger_page(AlertListItem, result)
