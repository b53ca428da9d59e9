"""SessionRegistry — session id -> Room of connected transports.

attach/detach/broadcast/close on one session are serialized by a per-session
asyncio.Lock, so a transport sees events in the order they were broadcast.
A Room exists only while it has transports; it is created lazily on the first
attach and dropped when the last transport leaves or the session settles.
Every frame is bounded by the send timeout; a peer that misses it is dropped.
"""
import asyncio
import logging
import weakref
from dataclasses import dataclass, field
from typing import Protocol

from config.settings import settings
from src.bg_common.errors import TransportError
from src.bg_game.application.messages import RoomEvent

logger = logging.getLogger(__name__)

LockMap = weakref.WeakValueDictionary[int, asyncio.Lock]


def keyed_lock(locks: LockMap, key: int) -> asyncio.Lock:
    """Lock for ``key``; the entry disappears once no task holds or awaits it."""
    lock = locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        locks[key] = lock
    return lock


class Transport(Protocol):
    @property
    def is_open(self) -> bool: ...

    async def send_text(self, data: str) -> None:
        """Deliver one frame. Raises TransportError if the peer is gone."""
        ...


@dataclass(eq=False)
class Room:
    session_id: int
    transports: set[Transport] = field(default_factory=set)


class SessionRegistry:
    def __init__(self, send_timeout: float | None = None) -> None:
        self._rooms: dict[int, Room] = {}
        self._locks: LockMap = weakref.WeakValueDictionary()
        self._send_timeout = (
            send_timeout if send_timeout is not None else settings.SEND_TIMEOUT_SECONDS
        )

    def has_room(self, session_id: int) -> bool:
        return session_id in self._rooms

    def connected_count(self, session_id: int) -> int:
        room = self._rooms.get(session_id)
        return len(room.transports) if room else 0

    async def attach(self, session_id: int, transport: Transport) -> int:
        async with keyed_lock(self._locks, session_id):
            room = self._rooms.get(session_id)
            if room is None:
                room = Room(session_id=session_id)
                self._rooms[session_id] = room
            room.transports.add(transport)
            return len(room.transports)

    async def detach(self, session_id: int, transport: Transport) -> int:
        async with keyed_lock(self._locks, session_id):
            room = self._rooms.get(session_id)
            if room is None:
                return 0
            room.transports.discard(transport)
            room.transports = {t for t in room.transports if t.is_open}
            if not room.transports:
                del self._rooms[session_id]
                return 0
            return len(room.transports)

    async def close(self, session_id: int) -> None:
        async with keyed_lock(self._locks, session_id):
            self._rooms.pop(session_id, None)

    async def send(self, transport: Transport, event: RoomEvent) -> bool:
        """Send ``event`` to one transport, outside any room. False if it failed."""
        return await self._deliver(transport, event.to_wire())

    async def broadcast(self, session_id: int, event: RoomEvent) -> int:
        """Send ``event`` to every open transport of the room.

        Returns the number of transports that accepted the frame.
        """
        async with keyed_lock(self._locks, session_id):
            room = self._rooms.get(session_id)
            if room is None:
                return 0
            payload = event.to_wire()
            targets = [t for t in room.transports if t.is_open]
            results = await asyncio.gather(*(self._deliver(t, payload) for t in targets))
            dead = [t for t, ok in zip(targets, results) if not ok]
            for transport in dead:
                room.transports.discard(transport)
            if not room.transports:
                del self._rooms[session_id]
            return len(targets) - len(dead)

    async def _deliver(self, transport: Transport, payload: str) -> bool:
        try:
            async with asyncio.timeout(self._send_timeout):
                await transport.send_text(payload)
        except TransportError:
            logger.debug("Dropping dead transport %r", transport)
            return False
        except TimeoutError:
            logger.warning(
                "Dropping transport %r: send exceeded %.1fs", transport, self._send_timeout
            )
            return False
        return True
