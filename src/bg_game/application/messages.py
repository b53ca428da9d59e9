"""WebSocket wire protocol.

Every frame is a JSON object whose ``type`` field selects the variant.
Python fields are snake_case; the wire uses camelCase aliases.

Inbound (client -> server):
  join_room    {gameId}
  mark_number  {participantId, markedNumbers}

Outbound (server -> room):
  player_joined  {gameId, playerCount}
  game_started   {gameId}
  number_called  {gameId, number, label, calledNumbers}
  game_won       {gameId, winnerId, participantId, prizeAmount}
  game_drawn     {gameId, refundAmount}

Outbound (server -> one socket):
  room_snapshot  {gameId, status, currentNumber, calledNumbers, prizePool, playerCount}
  error          {code, message}

Amounts are integer cents.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from src.bg_common.errors import InvalidMessageError
from src.bg_game.domain.card import MAX_NUMBER


BingoNumber = Annotated[int, Field(ge=1, le=MAX_NUMBER)]


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> str:
        return self.model_dump_json(by_alias=True)


# ---------------------------------------------------------------------------
# Inbound
# ---------------------------------------------------------------------------


class JoinRoomMessage(WireModel):
    type: Literal["join_room"] = "join_room"
    game_id: int


class MarkNumberMessage(WireModel):
    type: Literal["mark_number"] = "mark_number"
    participant_id: int
    marked_numbers: list[BingoNumber]


InboundMessage = Annotated[
    JoinRoomMessage | MarkNumberMessage,
    Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter[JoinRoomMessage | MarkNumberMessage] = TypeAdapter(InboundMessage)


def decode_message(raw: str | bytes) -> JoinRoomMessage | MarkNumberMessage:
    """Parse one inbound frame; unknown ``type`` or bad payload -> InvalidMessageError."""
    try:
        return _inbound_adapter.validate_json(raw)
    except ValidationError as exc:
        first = exc.errors()[0]
        loc = ".".join(str(part) for part in first["loc"]) or "frame"
        raise InvalidMessageError(f"{loc}: {first['msg']}") from None


# ---------------------------------------------------------------------------
# Outbound
# ---------------------------------------------------------------------------


class PlayerJoinedEvent(WireModel):
    type: Literal["player_joined"] = "player_joined"
    game_id: int
    player_count: int


class GameStartedEvent(WireModel):
    type: Literal["game_started"] = "game_started"
    game_id: int


class NumberCalledEvent(WireModel):
    type: Literal["number_called"] = "number_called"
    game_id: int
    number: int
    label: str
    called_numbers: list[int]


class GameWonEvent(WireModel):
    type: Literal["game_won"] = "game_won"
    game_id: int
    winner_id: int
    participant_id: int
    prize_amount: int


class GameDrawnEvent(WireModel):
    """All numbers called without a winner; every stake was refunded."""

    type: Literal["game_drawn"] = "game_drawn"
    game_id: int
    refund_amount: int


class RoomSnapshotEvent(WireModel):
    type: Literal["room_snapshot"] = "room_snapshot"
    game_id: int
    status: str
    current_number: int | None
    called_numbers: list[int]
    prize_pool: int
    player_count: int


class ErrorEvent(WireModel):
    type: Literal["error"] = "error"
    code: int
    message: str


RoomEvent = (
    PlayerJoinedEvent
    | GameStartedEvent
    | NumberCalledEvent
    | GameWonEvent
    | GameDrawnEvent
)
