"""NumberCaller — one fixed-interval asyncio task per ACTIVE session.

IDLE -> RUNNING on start(); RUNNING -> STOPPED when the tick reports the
session is no longer ACTIVE or stop() is called. forget() drops a settled
session entirely, so it reads as IDLE again. The tick owns all durable
work; this class only owns the timers.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable

from src.bg_common.enums import CallerState

logger = logging.getLogger(__name__)

Tick = Callable[[int], Awaitable[bool]]


class NumberCaller:
    def __init__(self, tick: Tick, interval: float) -> None:
        self._tick = tick
        self._interval = interval
        self._tasks: dict[int, asyncio.Task[None]] = {}
        self._stopped: set[int] = set()

    def state(self, session_id: int) -> CallerState:
        if session_id in self._tasks:
            return CallerState.RUNNING
        if session_id in self._stopped:
            return CallerState.STOPPED
        return CallerState.IDLE

    def running_sessions(self) -> list[int]:
        return list(self._tasks)

    def start(self, session_id: int) -> bool:
        """Start calling for ``session_id``. No-op if already running."""
        if session_id in self._tasks:
            return False
        self._stopped.discard(session_id)
        self._tasks[session_id] = asyncio.create_task(
            self._run(session_id), name=f"number-caller-{session_id}"
        )
        logger.info("Number caller started for game %s", session_id)
        return True

    def stop(self, session_id: int) -> None:
        task = self._tasks.pop(session_id, None)
        self._stopped.add(session_id)
        # A tick that settles its own session returns False instead of cancelling itself
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            logger.info("Number caller stopped for game %s", session_id)

    def forget(self, session_id: int) -> None:
        """Stop calling for a settled session and drop its bookkeeping."""
        self.stop(session_id)
        self._stopped.discard(session_id)

    async def shutdown(self) -> None:
        tasks = list(self._tasks.values())
        for session_id in list(self._tasks):
            self.stop(session_id)
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(self, session_id: int) -> None:
        try:
            while True:
                await asyncio.sleep(self._interval)
                try:
                    keep_going = await self._tick(session_id)
                except Exception:
                    logger.exception("Number caller tick failed for game %s", session_id)
                    continue
                if not keep_going:
                    break
        finally:
            if self._tasks.get(session_id) is asyncio.current_task():
                del self._tasks[session_id]
                self._stopped.add(session_id)
                logger.info("Number caller finished for game %s", session_id)
