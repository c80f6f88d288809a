"""Users router: profile lookup by GitHub id."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from classbot.api.deps import get_session, get_user_service, require_api_token
from classbot.api.schemas.classroom import UserProfile
from classbot.services.user_service import UserService

router = APIRouter()


@router.get("/{userid}", response_model=UserProfile)
async def get_user(
    userid: int,
    session: AsyncSession = Depends(get_session),
    _auth: None = Depends(require_api_token),
    svc: UserService = Depends(get_user_service),
) -> UserProfile:
    return UserProfile.model_validate(await svc.get(session, userid))
