"""Room WebSocket endpoint.

URL: /ws

A socket joins one room at a time with ``join_room``; ``mark_number`` applies
to that room. Flow for ``join_room``:
  1. Under the game lock, send a private ``room_snapshot`` so a late joiner
     can catch up, then attach and broadcast ``player_joined``
  2. Leave the previous room, if any
Typed failures go back to this socket only as an ``error`` frame; the
connection stays open.
"""

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.websockets import WebSocketState

from src.bg_common.database import get_session_factory
from src.bg_common.errors import AppError, InvalidMessageError, TransportError
from src.bg_game.application.messages import (
    ErrorEvent,
    JoinRoomMessage,
    MarkNumberMessage,
    decode_message,
)
from src.bg_game.application.service import get_game_engine
from src.bg_game.engine.engine import GameEngine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ws"])


class WebSocketTransport:
    """Transport over a Starlette WebSocket. Sends are serialized per socket."""

    def __init__(self, websocket: WebSocket) -> None:
        self._ws = websocket
        self._send_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return (
            self._ws.client_state == WebSocketState.CONNECTED
            and self._ws.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, data: str) -> None:
        async with self._send_lock:
            try:
                await self._ws.send_text(data)
            except (WebSocketDisconnect, RuntimeError) as exc:
                raise TransportError(str(exc)) from exc

    def __repr__(self) -> str:
        return f"WebSocketTransport({self._ws.client})"


class _Connection:
    def __init__(
        self,
        engine: GameEngine,
        session_factory: async_sessionmaker[AsyncSession],
        transport: WebSocketTransport,
    ) -> None:
        self.engine = engine
        self.session_factory = session_factory
        self.transport = transport
        self.game_id: int | None = None

    async def handle(self, raw: str) -> None:
        message = decode_message(raw)
        if isinstance(message, JoinRoomMessage):
            await self._join_room(message)
        elif isinstance(message, MarkNumberMessage):
            await self._mark_number(message)

    async def leave(self) -> None:
        if self.game_id is not None:
            await self.engine.detach(self.game_id, self.transport)
            self.game_id = None

    async def _join_room(self, message: JoinRoomMessage) -> None:
        previous = self.game_id
        async with self.session_factory() as db:
            await self.engine.enter_room(db, message.game_id, self.transport)
        self.game_id = message.game_id
        if previous is not None and previous != message.game_id:
            await self.engine.detach(previous, self.transport)

    async def _mark_number(self, message: MarkNumberMessage) -> None:
        if self.game_id is None:
            raise InvalidMessageError("join_room must precede mark_number")
        async with self.session_factory() as db:
            await self.engine.submit_mark(
                db, self.game_id, message.participant_id, message.marked_numbers
            )


@router.websocket("/ws")
async def room_socket(
    websocket: WebSocket,
    engine: Annotated[GameEngine, Depends(get_game_engine)],
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> None:
    await websocket.accept()
    conn = _Connection(engine, session_factory, WebSocketTransport(websocket))
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                await conn.handle(raw)
            except AppError as exc:
                await conn.transport.send_text(
                    ErrorEvent(code=exc.code, message=exc.message).to_wire()
                )
    except (WebSocketDisconnect, TransportError):
        logger.debug("WebSocket %r closed (game %s)", conn.transport, conn.game_id)
    finally:
        await conn.leave()
