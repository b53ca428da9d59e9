# src/bg_game/infrastructure/persistence.py
"""GameRepository — concrete implementation of GameRepositoryProtocol.

Raw SQL on an AsyncSession. Cards and number lists are INTEGER arrays, which
asyncpg maps to (nested) Python lists.

Transaction ownership: The CALLER (GameEngine or application service) is
responsible for committing or rolling back.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bg_common.enums import GameType, SessionStatus
from src.bg_common.errors import InternalError, ParticipantNotFoundError, SessionNotFoundError
from src.bg_game.domain.models import GameSession, Participant

_SESSION_COLUMNS = """
    id, status, game_type, entry_fee, prize_pool, max_players,
    called_numbers, current_number, winner_id,
    created_at, started_at, completed_at
"""

_PARTICIPANT_COLUMNS = "id, game_id, user_id, card, marked_numbers, joined_at"

_GET_SESSION_SQL = text(f"SELECT {_SESSION_COLUMNS} FROM games WHERE id = :session_id")

_GET_SESSION_FOR_UPDATE_SQL = text(
    f"SELECT {_SESSION_COLUMNS} FROM games WHERE id = :session_id FOR UPDATE"
)

_INSERT_SESSION_SQL = text(f"""
    INSERT INTO games (status, game_type, entry_fee, max_players)
    VALUES (:status, :game_type, :entry_fee, :max_players)
    RETURNING {_SESSION_COLUMNS}
""")

_LIST_SESSIONS_SQL = text(f"""
    SELECT {_SESSION_COLUMNS}
    FROM games
    WHERE status = ANY(:statuses)
    ORDER BY created_at DESC, id DESC
""")

_UPDATE_STATUS_SQL = text(f"""
    UPDATE games
    SET status = :status,
        started_at = CASE WHEN :mark_started THEN NOW() ELSE started_at END,
        completed_at = CASE WHEN :mark_completed THEN NOW() ELSE completed_at END
    WHERE id = :session_id
    RETURNING {_SESSION_COLUMNS}
""")

_UPDATE_CALLED_SQL = text(f"""
    UPDATE games
    SET current_number = :current_number,
        called_numbers = :called_numbers
    WHERE id = :session_id
    RETURNING {_SESSION_COLUMNS}
""")

_UPDATE_PRIZE_POOL_SQL = text(f"""
    UPDATE games
    SET prize_pool = prize_pool + :delta
    WHERE id = :session_id
    RETURNING {_SESSION_COLUMNS}
""")

# Guarded: only the first winner flips ACTIVE -> SETTLED
_SET_WINNER_SQL = text(f"""
    UPDATE games
    SET winner_id = :winner_id,
        status = 'SETTLED',
        completed_at = NOW()
    WHERE id = :session_id AND status = 'ACTIVE'
    RETURNING {_SESSION_COLUMNS}
""")

_INSERT_PARTICIPANT_SQL = text(f"""
    INSERT INTO game_participants (game_id, user_id, card)
    VALUES (:game_id, :user_id, :card)
    RETURNING {_PARTICIPANT_COLUMNS}
""")

_LIST_PARTICIPANTS_SQL = text(f"""
    SELECT {_PARTICIPANT_COLUMNS}
    FROM game_participants
    WHERE game_id = :game_id
    ORDER BY id ASC
""")

_GET_PARTICIPANT_SQL = text(
    f"SELECT {_PARTICIPANT_COLUMNS} FROM game_participants WHERE id = :participant_id"
)

_UPDATE_MARKS_SQL = text(f"""
    UPDATE game_participants
    SET marked_numbers = :marked_numbers
    WHERE id = :participant_id
    RETURNING {_PARTICIPANT_COLUMNS}
""")


def _row_to_session(row: Any) -> GameSession:
    return GameSession(
        id=row.id,
        status=row.status,
        game_type=row.game_type,
        entry_fee=row.entry_fee,
        prize_pool=row.prize_pool,
        max_players=row.max_players,
        called_numbers=list(row.called_numbers or []),
        current_number=row.current_number,
        winner_id=row.winner_id,
        created_at=row.created_at,
        started_at=row.started_at,
        completed_at=row.completed_at,
    )


def _row_to_participant(row: Any) -> Participant:
    return Participant(
        id=row.id,
        game_id=row.game_id,
        user_id=row.user_id,
        card=[list(r) for r in row.card],
        marked_numbers=list(row.marked_numbers or []),
        joined_at=row.joined_at,
    )


class GameRepository:
    """Concrete repository for games and game_participants."""

    async def get_session(
        self, db: AsyncSession, session_id: int, for_update: bool = False
    ) -> GameSession | None:
        sql = _GET_SESSION_FOR_UPDATE_SQL if for_update else _GET_SESSION_SQL
        row = (await db.execute(sql, {"session_id": session_id})).fetchone()
        return _row_to_session(row) if row else None

    async def create_session(
        self,
        db: AsyncSession,
        entry_fee: int,
        max_players: int,
        game_type: str,
    ) -> GameSession:
        row = (
            await db.execute(
                _INSERT_SESSION_SQL,
                {
                    "status": SessionStatus.FORMING.value,
                    "game_type": GameType(game_type).value,
                    "entry_fee": entry_fee,
                    "max_players": max_players,
                },
            )
        ).fetchone()
        if row is None:
            raise InternalError("Game insert returned no rows")
        return _row_to_session(row)

    async def list_sessions(
        self, db: AsyncSession, statuses: list[str]
    ) -> list[GameSession]:
        params = {"statuses": [SessionStatus(s).value for s in statuses]}
        rows = (await db.execute(_LIST_SESSIONS_SQL, params)).fetchall()
        return [_row_to_session(row) for row in rows]

    async def update_session_status(
        self, db: AsyncSession, session_id: int, status: str
    ) -> GameSession:
        row = (
            await db.execute(
                _UPDATE_STATUS_SQL,
                {
                    "session_id": session_id,
                    "status": SessionStatus(status).value,
                    "mark_started": status == SessionStatus.ACTIVE,
                    "mark_completed": status == SessionStatus.SETTLED,
                },
            )
        ).fetchone()
        if row is None:
            raise SessionNotFoundError(session_id)
        return _row_to_session(row)

    async def update_session_called_numbers(
        self,
        db: AsyncSession,
        session_id: int,
        current_number: int,
        called_numbers: list[int],
    ) -> GameSession:
        row = (
            await db.execute(
                _UPDATE_CALLED_SQL,
                {
                    "session_id": session_id,
                    "current_number": current_number,
                    "called_numbers": called_numbers,
                },
            )
        ).fetchone()
        if row is None:
            raise SessionNotFoundError(session_id)
        return _row_to_session(row)

    async def update_session_prize_pool(
        self, db: AsyncSession, session_id: int, delta: int
    ) -> GameSession:
        row = (
            await db.execute(_UPDATE_PRIZE_POOL_SQL, {"session_id": session_id, "delta": delta})
        ).fetchone()
        if row is None:
            raise SessionNotFoundError(session_id)
        return _row_to_session(row)

    async def set_session_winner(
        self, db: AsyncSession, session_id: int, winner_id: int
    ) -> GameSession | None:
        row = (
            await db.execute(
                _SET_WINNER_SQL, {"session_id": session_id, "winner_id": winner_id}
            )
        ).fetchone()
        return _row_to_session(row) if row else None

    async def create_participant(
        self,
        db: AsyncSession,
        session_id: int,
        user_id: int,
        card: list[list[int]],
    ) -> Participant:
        row = (
            await db.execute(
                _INSERT_PARTICIPANT_SQL,
                {"game_id": session_id, "user_id": user_id, "card": card},
            )
        ).fetchone()
        if row is None:
            raise InternalError("Participant insert returned no rows")
        return _row_to_participant(row)

    async def get_participants(
        self, db: AsyncSession, session_id: int
    ) -> list[Participant]:
        rows = (await db.execute(_LIST_PARTICIPANTS_SQL, {"game_id": session_id})).fetchall()
        return [_row_to_participant(row) for row in rows]

    async def get_participant(
        self, db: AsyncSession, participant_id: int
    ) -> Participant | None:
        row = (
            await db.execute(_GET_PARTICIPANT_SQL, {"participant_id": participant_id})
        ).fetchone()
        return _row_to_participant(row) if row else None

    async def update_participant_marks(
        self, db: AsyncSession, participant_id: int, marked_numbers: list[int]
    ) -> Participant:
        row = (
            await db.execute(
                _UPDATE_MARKS_SQL,
                {"participant_id": participant_id, "marked_numbers": marked_numbers},
            )
        ).fetchone()
        if row is None:
            raise ParticipantNotFoundError(participant_id)
        return _row_to_participant(row)
