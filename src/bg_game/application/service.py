# src/bg_game/application/service.py
"""GameApplicationService — lobby reads and game creation.

Joins, marks and settlement go through the process-wide GameEngine,
which owns the per-game locks; see get_game_engine().
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.bg_common.enums import GameType, SessionStatus
from src.bg_common.errors import SessionNotFoundError
from src.bg_game.application.schemas import GameDetail, GameListItem, GameListResponse
from src.bg_game.domain.repository import GameRepositoryProtocol
from src.bg_game.engine.engine import GameEngine
from src.bg_game.infrastructure.persistence import GameRepository

_engine: GameEngine | None = None


def get_game_engine() -> GameEngine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = GameEngine()
    return _engine


class GameApplicationService:
    def __init__(self, repo: GameRepositoryProtocol | None = None) -> None:
        self._repo: GameRepositoryProtocol = repo or GameRepository()

    async def create_game(
        self,
        db: AsyncSession,
        entry_fee_cents: int,
        max_players: int,
        game_type: GameType,
    ) -> GameDetail:
        try:
            game = await self._repo.create_session(db, entry_fee_cents, max_players, game_type)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return GameDetail.from_domain(game, [])

    async def list_games(self, db: AsyncSession, user_id: int | None) -> GameListResponse:
        """Open lobby: FORMING and ACTIVE games, newest first."""
        games = await self._repo.list_sessions(
            db, [SessionStatus.FORMING, SessionStatus.ACTIVE]
        )
        items = []
        for game in games:
            participants = await self._repo.get_participants(db, game.id)
            joined = user_id is not None and any(p.user_id == user_id for p in participants)
            items.append(GameListItem.from_domain(game, len(participants), joined))
        return GameListResponse(items=items)

    async def get_game(self, db: AsyncSession, game_id: int) -> GameDetail:
        game = await self._repo.get_session(db, game_id)
        if game is None:
            raise SessionNotFoundError(game_id)
        participants = await self._repo.get_participants(db, game_id)
        return GameDetail.from_domain(game, participants)
