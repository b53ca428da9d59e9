"""Unit tests for the WebSocket wire protocol."""

import pytest

from src.bg_common.errors import InvalidMessageError
from src.bg_game.application.messages import (
    ErrorEvent,
    GameDrawnEvent,
    JoinRoomMessage,
    MarkNumberMessage,
    NumberCalledEvent,
    RoomSnapshotEvent,
    decode_message,
)


class TestDecodeMessage:
    def test_join_room(self) -> None:
        msg = decode_message('{"type": "join_room", "gameId": 12}')
        assert msg == JoinRoomMessage(game_id=12)

    def test_mark_number(self) -> None:
        msg = decode_message(
            '{"type": "mark_number", "participantId": 4, "markedNumbers": [1, 16, 31]}'
        )
        assert isinstance(msg, MarkNumberMessage)
        assert msg.participant_id == 4
        assert msg.marked_numbers == [1, 16, 31]

    def test_bytes_frame(self) -> None:
        assert decode_message(b'{"type": "join_room", "gameId": 1}').game_id == 1

    @pytest.mark.parametrize(
        "raw",
        [
            '{"type": "leave_room", "gameId": 1}',
            '{"gameId": 1}',
            '{"type": "join_room"}',
            '{"type": "mark_number", "participantId": "x", "markedNumbers": []}',
            '{"type": "mark_number", "participantId": 4, "markedNumbers": [0]}',
            '{"type": "mark_number", "participantId": 4, "markedNumbers": [76]}',
            '{"type": "mark_number", "participantId": 4, "markedNumbers": [1000000000000]}',
            "not json",
            "[]",
        ],
    )
    def test_rejects_bad_frames(self, raw: str) -> None:
        with pytest.raises(InvalidMessageError) as exc_info:
            decode_message(raw)
        assert exc_info.value.code == 3001


class TestOutboundEvents:
    def test_camel_case_wire_names(self) -> None:
        event = NumberCalledEvent(game_id=3, number=42, label="N42", called_numbers=[7, 42])
        assert event.to_wire() == (
            '{"type":"number_called","gameId":3,"number":42,"label":"N42","calledNumbers":[7,42]}'
        )

    def test_snapshot_with_no_number_yet(self) -> None:
        event = RoomSnapshotEvent(
            game_id=1,
            status="FORMING",
            current_number=None,
            called_numbers=[],
            prize_pool=250,
            player_count=1,
        )
        assert '"currentNumber":null' in event.to_wire()
        assert '"prizePool":250' in event.to_wire()

    def test_drawn_and_error(self) -> None:
        assert GameDrawnEvent(game_id=2, refund_amount=250).to_wire() == (
            '{"type":"game_drawn","gameId":2,"refundAmount":250}'
        )
        assert ErrorEvent(code=2003, message="Game is full: 2").to_wire() == (
            '{"type":"error","code":2003,"message":"Game is full: 2"}'
        )
