"""Domain models for bg_game — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class GameSession:
    id: int
    status: str                      # SessionStatus value
    game_type: str                   # GameType value
    entry_fee: int                   # cents
    prize_pool: int                  # cents
    max_players: int
    called_numbers: list[int] = field(default_factory=list)   # append-only, draw order
    current_number: int | None = None
    winner_id: int | None = None     # user id, set only on a won settlement
    created_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None


@dataclass
class Participant:
    id: int
    game_id: int
    user_id: int
    card: list[list[int]]            # 5x5, row-major, FREE_CELL at (2, 2)
    marked_numbers: list[int] = field(default_factory=list)
    joined_at: datetime | None = None


@dataclass
class MarkResult:
    """Outcome of a mark submission. ``bingo`` is informational only;
    ``won`` is true only for the claim that settled the session."""

    participant_id: int
    bingo: bool
    won: bool = False
    prize_amount: int = 0            # cents
