"""bg_account REST API — profile and transaction history.

Identity comes from the path; authentication is handled upstream.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.bg_account.application.service import AccountApplicationService
from src.bg_common.database import get_db_session
from src.bg_common.response import ApiResponse, success_response

router = APIRouter(prefix="/users", tags=["users"])

_service = AccountApplicationService()


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_user(db, user_id)
    return success_response(data.model_dump(), request)


@router.get("/{user_id}/transactions")
async def list_transactions(
    user_id: int,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    limit: int = Query(10, ge=1, le=100, description="Most recent N transactions"),
) -> ApiResponse:
    data = await _service.list_transactions(db, user_id, limit)
    return success_response(data.model_dump(), request)
