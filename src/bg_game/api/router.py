"""bg_game REST endpoints.

POST /games                       — open a new game (FORMING)
GET  /games                       — lobby: FORMING and ACTIVE games
GET  /games/{game_id}             — full detail with participants
POST /games/{game_id}/join        — pay the stake and take a seat
POST /games/{game_id}/marks       — submit marks (same path as the WS mark_number frame)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.bg_common.database import get_db_session
from src.bg_common.response import ApiResponse, success_response
from src.bg_game.application.schemas import (
    CreateGameRequest,
    JoinGameRequest,
    JoinGameResponse,
    MarkNumbersRequest,
    MarkResultResponse,
    ParticipantItem,
)
from src.bg_game.application.service import GameApplicationService, get_game_engine
from src.bg_game.engine.engine import GameEngine

router = APIRouter(prefix="/games", tags=["games"])

_service = GameApplicationService()


@router.post("", status_code=201)
async def create_game(
    body: CreateGameRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.create_game(db, body.entry_fee_cents, body.max_players, body.game_type)
    return success_response(result.model_dump(), request)


@router.get("")
async def list_games(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    user_id: int | None = Query(None, description="Flag games this user already joined"),
) -> ApiResponse:
    result = await _service.list_games(db, user_id)
    return success_response(result.model_dump(), request)


@router.get("/{game_id}")
async def get_game(
    game_id: int,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_game(db, game_id)
    return success_response(result.model_dump(), request)


@router.post("/{game_id}/join")
async def join_game(
    game_id: int,
    body: JoinGameRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[GameEngine, Depends(get_game_engine)],
) -> ApiResponse:
    participant = await engine.join(db, game_id, body.user_id)
    result = JoinGameResponse(game_id=game_id, participant=ParticipantItem.from_domain(participant))
    return success_response(result.model_dump(), request)


@router.post("/{game_id}/marks")
async def submit_marks(
    game_id: int,
    body: MarkNumbersRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[GameEngine, Depends(get_game_engine)],
) -> ApiResponse:
    mark = await engine.submit_mark(db, game_id, body.participant_id, body.marked_numbers)
    return success_response(MarkResultResponse.from_domain(mark).model_dump(), request)
