"""Pydantic schemas for bg_game REST API."""

from pydantic import BaseModel, Field, field_validator

from src.bg_common.cents import cents_to_display, validate_stake
from src.bg_common.datetime_utils import to_iso
from src.bg_common.enums import GameType
from src.bg_game.application.messages import BingoNumber
from src.bg_game.domain.models import GameSession, MarkResult, Participant

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreateGameRequest(BaseModel):
    entry_fee_cents: int = Field(..., description="Stake per player in cents")
    max_players: int = Field(8, ge=2, le=20, description="Player capacity")
    game_type: GameType = GameType.STANDARD

    @field_validator("entry_fee_cents")
    @classmethod
    def positive_stake(cls, v: int) -> int:
        validate_stake(v)
        return v


class JoinGameRequest(BaseModel):
    user_id: int = Field(..., gt=0)


class MarkNumbersRequest(BaseModel):
    participant_id: int = Field(..., gt=0)
    marked_numbers: list[BingoNumber] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ParticipantItem(BaseModel):
    id: int
    user_id: int
    card: list[list[int]]
    marked_numbers: list[int]
    joined_at: str | None

    @classmethod
    def from_domain(cls, p: Participant) -> "ParticipantItem":
        return cls(
            id=p.id,
            user_id=p.user_id,
            card=p.card,
            marked_numbers=p.marked_numbers,
            joined_at=to_iso(p.joined_at),
        )


class GameListItem(BaseModel):
    id: int
    status: str
    game_type: str
    entry_fee_cents: int
    entry_fee_display: str
    prize_pool_cents: int
    prize_pool_display: str
    max_players: int
    participant_count: int
    user_joined: bool
    created_at: str | None

    @classmethod
    def from_domain(
        cls, game: GameSession, participant_count: int, user_joined: bool
    ) -> "GameListItem":
        return cls(
            id=game.id,
            status=game.status,
            game_type=game.game_type,
            entry_fee_cents=game.entry_fee,
            entry_fee_display=cents_to_display(game.entry_fee),
            prize_pool_cents=game.prize_pool,
            prize_pool_display=cents_to_display(game.prize_pool),
            max_players=game.max_players,
            participant_count=participant_count,
            user_joined=user_joined,
            created_at=to_iso(game.created_at),
        )


class GameListResponse(BaseModel):
    items: list[GameListItem]


class GameDetail(BaseModel):
    id: int
    status: str
    game_type: str
    entry_fee_cents: int
    prize_pool_cents: int
    prize_pool_display: str
    max_players: int
    current_number: int | None
    called_numbers: list[int]
    winner_id: int | None
    participants: list[ParticipantItem]
    created_at: str | None
    started_at: str | None
    completed_at: str | None

    @classmethod
    def from_domain(cls, game: GameSession, participants: list[Participant]) -> "GameDetail":
        return cls(
            id=game.id,
            status=game.status,
            game_type=game.game_type,
            entry_fee_cents=game.entry_fee,
            prize_pool_cents=game.prize_pool,
            prize_pool_display=cents_to_display(game.prize_pool),
            max_players=game.max_players,
            current_number=game.current_number,
            called_numbers=game.called_numbers,
            winner_id=game.winner_id,
            participants=[ParticipantItem.from_domain(p) for p in participants],
            created_at=to_iso(game.created_at),
            started_at=to_iso(game.started_at),
            completed_at=to_iso(game.completed_at),
        )


class JoinGameResponse(BaseModel):
    game_id: int
    participant: ParticipantItem


class MarkResultResponse(BaseModel):
    participant_id: int
    bingo: bool
    won: bool
    prize_amount_cents: int

    @classmethod
    def from_domain(cls, result: MarkResult) -> "MarkResultResponse":
        return cls(
            participant_id=result.participant_id,
            bingo=result.bingo,
            won=result.won,
            prize_amount_cents=result.prize_amount,
        )
