"""GameEngine — stateful coordinator for joins, number calls and settlement.

Locking discipline:
  * one asyncio.Lock per game serializes join, mark submission, ticks and
    settlement for that game (check-then-act, exactly-once settlement);
  * one asyncio.Lock per user serializes balance read-modify-write and is
    always taken after the game lock; several users are locked in id order.

Each operation writes through a single DB transaction. In-memory effects
(scheduler start/stop, broadcasts, room teardown) run only after commit.
Broadcasts stay under the game lock so every room sees commit order; each
frame is bounded by the registry's send timeout.

Lock maps hold weak values, so a settled game or an idle user leaves no entry.
"""
import asyncio
import logging
import random
import weakref
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, AsyncExitStack, asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bg_account.domain.repository import AccountRepositoryProtocol
from src.bg_account.infrastructure.persistence import AccountRepository
from src.bg_common.database import async_session_factory
from src.bg_common.enums import SessionStatus, TransactionStatus, TransactionType
from src.bg_common.errors import (
    AlreadyJoinedError,
    InsufficientFundsError,
    InvalidSessionStateError,
    ParticipantNotFoundError,
    SessionFullError,
    SessionNotFoundError,
    StorageError,
    TransportError,
    UserNotFoundError,
)
from src.bg_game.application.messages import (
    GameDrawnEvent,
    GameStartedEvent,
    GameWonEvent,
    NumberCalledEvent,
    PlayerJoinedEvent,
    RoomSnapshotEvent,
)
from src.bg_game.domain.card import (
    card_numbers,
    generate_card,
    number_label,
    remaining_numbers,
)
from src.bg_game.domain.models import GameSession, MarkResult, Participant
from src.bg_game.domain.repository import GameRepositoryProtocol
from src.bg_game.domain.win import has_bingo
from src.bg_game.engine.registry import LockMap, SessionRegistry, Transport, keyed_lock
from src.bg_game.engine.scheduler import NumberCaller
from src.bg_game.infrastructure.persistence import GameRepository

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class GameEngine:
    def __init__(
        self,
        game_repo: GameRepositoryProtocol | None = None,
        account_repo: AccountRepositoryProtocol | None = None,
        registry: SessionRegistry | None = None,
        session_factory: SessionFactory | None = None,
        call_interval: float | None = None,
        storage_timeout: float | None = None,
        min_players: int | None = None,
        verify_marks: bool | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._games: GameRepositoryProtocol = game_repo or GameRepository()
        self._accounts: AccountRepositoryProtocol = account_repo or AccountRepository()
        self._registry = registry or SessionRegistry()
        self._session_factory: SessionFactory = session_factory or async_session_factory
        self._storage_timeout = (
            storage_timeout if storage_timeout is not None else settings.STORAGE_TIMEOUT_SECONDS
        )
        self._min_players = min_players or settings.MIN_PLAYERS_TO_START
        self._verify_marks = (
            verify_marks if verify_marks is not None else settings.VERIFY_MARKS_AGAINST_CALLS
        )
        self._rng = rng or random.Random()
        self._caller = NumberCaller(
            self.call_next_number,
            call_interval if call_interval is not None else settings.CALL_INTERVAL_SECONDS,
        )
        self._session_locks: LockMap = weakref.WeakValueDictionary()
        self._user_locks: LockMap = weakref.WeakValueDictionary()

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    @property
    def caller(self) -> NumberCaller:
        return self._caller

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def attach(self, session_id: int, transport: Transport) -> int:
        count = await self._registry.attach(session_id, transport)
        await self._registry.broadcast(
            session_id, PlayerJoinedEvent(game_id=session_id, player_count=count)
        )
        return count

    async def detach(self, session_id: int, transport: Transport) -> int:
        return await self._registry.detach(session_id, transport)

    async def enter_room(self, db: AsyncSession, session_id: int, transport: Transport) -> int:
        """Send a private snapshot, then attach and announce the connection.

        Runs under the game lock so no number call lands between the snapshot
        and the attach.
        """
        async with keyed_lock(self._session_locks, session_id):
            snapshot = await self.snapshot(db, session_id)
            if not await self._registry.send(transport, snapshot):
                raise TransportError(f"snapshot for game {session_id} not delivered")
            return await self.attach(session_id, transport)

    async def snapshot(self, db: AsyncSession, session_id: int) -> RoomSnapshotEvent:
        async with self._storage_scope(db):
            session = await self._games.get_session(db, session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return RoomSnapshotEvent(
            game_id=session.id,
            status=session.status,
            current_number=session.current_number,
            called_numbers=session.called_numbers,
            prize_pool=session.prize_pool,
            player_count=self._registry.connected_count(session_id),
        )

    # ------------------------------------------------------------------
    # Join
    # ------------------------------------------------------------------

    async def join(self, db: AsyncSession, session_id: int, user_id: int) -> Participant:
        """Debit the stake, deal a card and grow the pool; start the game at threshold."""
        async with keyed_lock(self._session_locks, session_id):
            async with keyed_lock(self._user_locks, user_id), self._storage_scope(db):
                session = await self._games.get_session(db, session_id, for_update=True)
                if session is None:
                    raise SessionNotFoundError(session_id)
                if session.status != SessionStatus.FORMING:
                    raise InvalidSessionStateError(session_id, session.status)
                participants = await self._games.get_participants(db, session_id)
                if len(participants) >= session.max_players:
                    raise SessionFullError(session_id)
                if any(p.user_id == user_id for p in participants):
                    raise AlreadyJoinedError(session_id, user_id)

                user = await self._accounts.get_user(db, user_id)
                if user is None:
                    raise UserNotFoundError(user_id)
                if user.balance < session.entry_fee:
                    raise InsufficientFundsError(session.entry_fee, user.balance)
                debited = await self._accounts.update_user_balance(
                    db, user_id, -session.entry_fee
                )
                if debited is None:
                    raise InsufficientFundsError(session.entry_fee, user.balance)
                await self._accounts.create_transaction(
                    db,
                    user_id,
                    TransactionType.GAME_ENTRY,
                    -session.entry_fee,
                    TransactionStatus.COMPLETED,
                    session_id,
                )

                participant = await self._games.create_participant(
                    db, session_id, user_id, generate_card(self._rng)
                )
                await self._games.update_session_prize_pool(db, session_id, session.entry_fee)

                activated = len(participants) + 1 >= self._min_players
                if activated:
                    await self._games.update_session_status(
                        db, session_id, SessionStatus.ACTIVE
                    )
                await db.commit()

            logger.info(
                "User %s joined game %s as participant %s", user_id, session_id, participant.id
            )
            if activated:
                logger.info("Game %s is now ACTIVE", session_id)
                self._caller.start(session_id)
                await self._registry.broadcast(session_id, GameStartedEvent(game_id=session_id))
        return participant

    # ------------------------------------------------------------------
    # Marks and win settlement
    # ------------------------------------------------------------------

    async def submit_mark(
        self,
        db: AsyncSession,
        session_id: int,
        participant_id: int,
        marked_numbers: list[int],
    ) -> MarkResult:
        """Store the participant's marks; settle the game on the first valid bingo."""
        async with keyed_lock(self._session_locks, session_id):
            async with self._storage_scope(db):
                session = await self._games.get_session(db, session_id, for_update=True)
                if session is None:
                    raise SessionNotFoundError(session_id)
                participant = await self._games.get_participant(db, participant_id)
                if participant is None or participant.game_id != session_id:
                    raise ParticipantNotFoundError(participant_id)
                if session.status == SessionStatus.FORMING:
                    raise InvalidSessionStateError(session_id, session.status)

                # Values not on the card are dropped, never stored
                marks = sorted(set(marked_numbers) & card_numbers(participant.card))
                counted = (
                    set(marks) & set(session.called_numbers) if self._verify_marks else marks
                )
                bingo = has_bingo(participant.card, counted)
                if session.status == SessionStatus.SETTLED:
                    await db.rollback()
                    return MarkResult(participant_id=participant_id, bingo=bingo)

                await self._games.update_participant_marks(db, participant_id, marks)
                if not bingo:
                    await db.commit()
                    return MarkResult(participant_id=participant_id, bingo=False)

                async with keyed_lock(self._user_locks, participant.user_id):
                    prize = await self._settle_win(db, session_id, participant)
                    await db.commit()

            if prize is None:
                return MarkResult(participant_id=participant_id, bingo=True)

            logger.info(
                "Game %s won by user %s (participant %s), prize %s cents",
                session_id,
                participant.user_id,
                participant_id,
                prize,
            )
            self._caller.forget(session_id)
            await self._registry.broadcast(
                session_id,
                GameWonEvent(
                    game_id=session_id,
                    winner_id=participant.user_id,
                    participant_id=participant_id,
                    prize_amount=prize,
                ),
            )
            await self._registry.close(session_id)
        return MarkResult(participant_id=participant_id, bingo=True, won=True, prize_amount=prize)

    async def _settle_win(
        self, db: AsyncSession, session_id: int, participant: Participant
    ) -> int | None:
        """Flip ACTIVE -> SETTLED and pay the pool. None if already settled."""
        settled = await self._games.set_session_winner(db, session_id, participant.user_id)
        if settled is None:
            return None
        prize = settled.prize_pool
        credited = await self._accounts.update_user_balance(db, participant.user_id, prize)
        if credited is None:
            raise UserNotFoundError(participant.user_id)
        await self._accounts.create_transaction(
            db,
            participant.user_id,
            TransactionType.GAME_WIN,
            prize,
            TransactionStatus.COMPLETED,
            session_id,
        )
        return prize

    # ------------------------------------------------------------------
    # Number calling
    # ------------------------------------------------------------------

    async def call_next_number(self, session_id: int) -> bool:
        """One scheduler tick. Returns False once the game is no longer ACTIVE."""
        async with keyed_lock(self._session_locks, session_id):
            try:
                async with self._session_factory() as db, self._storage_scope(db):
                    session = await self._games.get_session(db, session_id, for_update=True)
                    if session is None or session.status != SessionStatus.ACTIVE:
                        return False
                    remaining = remaining_numbers(session.called_numbers)
                    if not remaining:
                        refund = await self._settle_no_contest(db, session)
                        await db.commit()
                        drawn = True
                    else:
                        number = self._rng.choice(remaining)
                        called = [*session.called_numbers, number]
                        await self._games.update_session_called_numbers(
                            db, session_id, number, called
                        )
                        await db.commit()
                        drawn = False
            except StorageError as exc:
                logger.warning("Skipping tick for game %s: %s", session_id, exc.message)
                return True

            if drawn:
                logger.info("Game %s exhausted all numbers; stakes refunded", session_id)
                self._caller.forget(session_id)
                await self._registry.broadcast(
                    session_id, GameDrawnEvent(game_id=session_id, refund_amount=refund)
                )
                await self._registry.close(session_id)
                return False

            await self._registry.broadcast(
                session_id,
                NumberCalledEvent(
                    game_id=session_id,
                    number=number,
                    label=number_label(number),
                    called_numbers=called,
                ),
            )
            return True

    async def _settle_no_contest(self, db: AsyncSession, session: GameSession) -> int:
        """Refund every stake and settle without a winner. Returns the per-player refund."""
        participants = await self._games.get_participants(db, session.id)
        async with AsyncExitStack() as stack:
            for user_id in sorted({p.user_id for p in participants}):
                await stack.enter_async_context(keyed_lock(self._user_locks, user_id))
            for p in participants:
                credited = await self._accounts.update_user_balance(
                    db, p.user_id, session.entry_fee
                )
                if credited is None:
                    raise UserNotFoundError(p.user_id)
                await self._accounts.create_transaction(
                    db,
                    p.user_id,
                    TransactionType.GAME_REFUND,
                    session.entry_fee,
                    TransactionStatus.COMPLETED,
                    session.id,
                )
            await self._games.update_session_status(db, session.id, SessionStatus.SETTLED)
        return session.entry_fee

    # ------------------------------------------------------------------
    # Process lifecycle
    # ------------------------------------------------------------------

    async def resume_active_sessions(self, db: AsyncSession) -> int:
        """Restart calling for every ACTIVE game after a process restart."""
        async with self._storage_scope(db):
            sessions = await self._games.list_sessions(db, [SessionStatus.ACTIVE])
        started = sum(1 for s in sessions if self._caller.start(s.id))
        logger.info("Resumed number calling for %d active game(s)", started)
        return started

    async def shutdown(self) -> None:
        await self._caller.shutdown()

    @asynccontextmanager
    async def _storage_scope(self, db: AsyncSession) -> AsyncIterator[None]:
        """Bound storage work by the timeout; roll back on any failure.

        The body commits. SQLAlchemy errors and timeouts surface as StorageError.
        """
        try:
            async with asyncio.timeout(self._storage_timeout):
                yield
        except (SQLAlchemyError, TimeoutError) as exc:
            await db.rollback()
            raise StorageError(f"Storage failure: {exc!r}") from exc
        except Exception:
            await db.rollback()
            raise
