# src/bg_game/domain/repository.py
"""Repository Protocol — dependency inversion for testability.

Unit tests inject a fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bg_game.domain.models import GameSession, Participant


class GameRepositoryProtocol(Protocol):
    async def get_session(
        self, db: AsyncSession, session_id: int, for_update: bool = False
    ) -> GameSession | None: ...

    async def create_session(
        self,
        db: AsyncSession,
        entry_fee: int,
        max_players: int,
        game_type: str,
    ) -> GameSession: ...

    async def list_sessions(
        self, db: AsyncSession, statuses: list[str]
    ) -> list[GameSession]: ...

    async def update_session_status(
        self, db: AsyncSession, session_id: int, status: str
    ) -> GameSession: ...

    async def update_session_called_numbers(
        self,
        db: AsyncSession,
        session_id: int,
        current_number: int,
        called_numbers: list[int],
    ) -> GameSession: ...

    async def update_session_prize_pool(
        self, db: AsyncSession, session_id: int, delta: int
    ) -> GameSession: ...

    async def set_session_winner(
        self, db: AsyncSession, session_id: int, winner_id: int
    ) -> GameSession | None:
        """ACTIVE -> SETTLED with winner. None if the session is not ACTIVE."""
        ...

    async def create_participant(
        self,
        db: AsyncSession,
        session_id: int,
        user_id: int,
        card: list[list[int]],
    ) -> Participant: ...

    async def get_participants(
        self, db: AsyncSession, session_id: int
    ) -> list[Participant]: ...

    async def get_participant(
        self, db: AsyncSession, participant_id: int
    ) -> Participant | None: ...

    async def update_participant_marks(
        self, db: AsyncSession, participant_id: int, marked_numbers: list[int]
    ) -> Participant: ...
