"""In-memory fakes for engine, service and WebSocket tests.

FakeStore holds committed rows. A FakeDb snapshots the store on its first
write and restores the snapshot on rollback, so a failed unit leaves no trace.
Every repository call yields to the loop so concurrent callers interleave;
`failures` and `delays` inject one-shot faults per method name.
"""

import asyncio
import copy
import json
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import pytest

from src.bg_account.domain.models import Transaction, User
from src.bg_common.enums import GameType, SessionStatus, TransactionStatus, TransactionType
from src.bg_common.errors import (
    InternalError,
    ParticipantNotFoundError,
    SessionNotFoundError,
    TransportError,
)
from src.bg_game.domain.models import GameSession, Participant
from src.bg_game.engine.engine import GameEngine
from src.bg_game.engine.registry import SessionRegistry


@dataclass
class FakeStore:
    users: dict[int, User] = field(default_factory=dict)
    games: dict[int, GameSession] = field(default_factory=dict)
    participants: dict[int, Participant] = field(default_factory=dict)
    transactions: list[Transaction] = field(default_factory=list)
    next_id: int = 1

    def new_id(self) -> int:
        value = self.next_id
        self.next_id += 1
        return value

    def copy_state(self) -> dict[str, Any]:
        return copy.deepcopy(
            {
                "users": self.users,
                "games": self.games,
                "participants": self.participants,
                "transactions": self.transactions,
            }
        )

    def restore(self, state: dict[str, Any]) -> None:
        self.users = state["users"]
        self.games = state["games"]
        self.participants = state["participants"]
        self.transactions = state["transactions"]

    # Seeding helpers

    def add_user(self, balance: int = 1000, username: str | None = None) -> User:
        uid = self.new_id()
        user = User(id=uid, username=username or f"user{uid}", balance=balance)
        self.users[uid] = user
        return user

    def add_game(
        self,
        entry_fee: int = 250,
        max_players: int = 8,
        status: str = SessionStatus.FORMING.value,
    ) -> GameSession:
        gid = self.new_id()
        game = GameSession(
            id=gid,
            status=status,
            game_type=GameType.STANDARD.value,
            entry_fee=entry_fee,
            prize_pool=0,
            max_players=max_players,
        )
        self.games[gid] = game
        return game

    def participants_of(self, game_id: int) -> list[Participant]:
        return [p for p in self.participants.values() if p.game_id == game_id]

    def transactions_of(self, user_id: int, tx_type: str | None = None) -> list[Transaction]:
        return [
            t for t in self.transactions
            if t.user_id == user_id and (tx_type is None or t.type == tx_type)
        ]


class FakeDb:
    """Stands in for an AsyncSession: only commit/rollback matter to callers."""

    def __init__(self, store: FakeStore) -> None:
        self.store = store
        self._snapshot: dict[str, Any] | None = None
        self.commits = 0
        self.rollbacks = 0

    def touch(self) -> None:
        if self._snapshot is None:
            self._snapshot = self.store.copy_state()

    async def commit(self) -> None:
        self._snapshot = None
        self.commits += 1

    async def rollback(self) -> None:
        if self._snapshot is not None:
            self.store.restore(self._snapshot)
            self._snapshot = None
        self.rollbacks += 1

    async def __aenter__(self) -> "FakeDb":
        return self

    async def __aexit__(self, *exc: object) -> None:
        if self._snapshot is not None:
            await self.rollback()


class _FailureMixin:
    def __init__(self) -> None:
        self.failures: dict[str, Exception] = {}
        self.delays: dict[str, float] = {}

    async def _enter(self, name: str) -> None:
        await asyncio.sleep(self.delays.pop(name, 0))
        exc = self.failures.pop(name, None)
        if exc is not None:
            raise exc


class FakeGameRepository(_FailureMixin):
    def __init__(self, store: FakeStore) -> None:
        super().__init__()
        self.store = store

    async def get_session(
        self, db: FakeDb, session_id: int, for_update: bool = False
    ) -> GameSession | None:
        await self._enter("get_session")
        game = self.store.games.get(session_id)
        return copy.deepcopy(game) if game else None

    async def create_session(
        self, db: FakeDb, entry_fee: int, max_players: int, game_type: str
    ) -> GameSession:
        await self._enter("create_session")
        db.touch()
        game = self.store.add_game(entry_fee=entry_fee, max_players=max_players)
        game.game_type = GameType(game_type).value
        return copy.deepcopy(game)

    async def list_sessions(self, db: FakeDb, statuses: list[str]) -> list[GameSession]:
        await self._enter("list_sessions")
        wanted = {SessionStatus(s).value for s in statuses}
        games = [g for g in self.store.games.values() if g.status in wanted]
        return copy.deepcopy(sorted(games, key=lambda g: g.id, reverse=True))

    def _game(self, session_id: int) -> GameSession:
        game = self.store.games.get(session_id)
        if game is None:
            raise SessionNotFoundError(session_id)
        return game

    async def update_session_status(
        self, db: FakeDb, session_id: int, status: str
    ) -> GameSession:
        await self._enter("update_session_status")
        db.touch()
        game = self._game(session_id)
        game.status = SessionStatus(status).value
        return copy.deepcopy(game)

    async def update_session_called_numbers(
        self, db: FakeDb, session_id: int, current_number: int, called_numbers: list[int]
    ) -> GameSession:
        await self._enter("update_session_called_numbers")
        db.touch()
        game = self._game(session_id)
        game.current_number = current_number
        game.called_numbers = list(called_numbers)
        return copy.deepcopy(game)

    async def update_session_prize_pool(
        self, db: FakeDb, session_id: int, delta: int
    ) -> GameSession:
        await self._enter("update_session_prize_pool")
        db.touch()
        game = self._game(session_id)
        game.prize_pool += delta
        return copy.deepcopy(game)

    async def set_session_winner(
        self, db: FakeDb, session_id: int, winner_id: int
    ) -> GameSession | None:
        await self._enter("set_session_winner")
        game = self.store.games.get(session_id)
        if game is None or game.status != SessionStatus.ACTIVE.value:
            return None
        db.touch()
        game = self.store.games[session_id]
        game.winner_id = winner_id
        game.status = SessionStatus.SETTLED.value
        return copy.deepcopy(game)

    async def create_participant(
        self, db: FakeDb, session_id: int, user_id: int, card: list[list[int]]
    ) -> Participant:
        await self._enter("create_participant")
        db.touch()
        if any(
            p.game_id == session_id and p.user_id == user_id
            for p in self.store.participants.values()
        ):
            raise InternalError("duplicate participant")
        pid = self.store.new_id()
        participant = Participant(id=pid, game_id=session_id, user_id=user_id, card=card)
        self.store.participants[pid] = participant
        return copy.deepcopy(participant)

    async def get_participants(self, db: FakeDb, session_id: int) -> list[Participant]:
        await self._enter("get_participants")
        return copy.deepcopy(self.store.participants_of(session_id))

    async def get_participant(self, db: FakeDb, participant_id: int) -> Participant | None:
        await self._enter("get_participant")
        participant = self.store.participants.get(participant_id)
        return copy.deepcopy(participant) if participant else None

    async def update_participant_marks(
        self, db: FakeDb, participant_id: int, marked_numbers: list[int]
    ) -> Participant:
        await self._enter("update_participant_marks")
        db.touch()
        participant = self.store.participants.get(participant_id)
        if participant is None:
            raise ParticipantNotFoundError(participant_id)
        participant.marked_numbers = list(marked_numbers)
        return copy.deepcopy(participant)


class FakeAccountRepository(_FailureMixin):
    def __init__(self, store: FakeStore) -> None:
        super().__init__()
        self.store = store

    async def get_user(self, db: FakeDb, user_id: int) -> User | None:
        await self._enter("get_user")
        user = self.store.users.get(user_id)
        return copy.deepcopy(user) if user else None

    async def update_user_balance(self, db: FakeDb, user_id: int, delta: int) -> User | None:
        await self._enter("update_user_balance")
        user = self.store.users.get(user_id)
        if user is None or user.balance + delta < 0:
            return None
        db.touch()
        user = self.store.users[user_id]
        user.balance += delta
        return copy.deepcopy(user)

    async def create_transaction(
        self,
        db: FakeDb,
        user_id: int,
        tx_type: str,
        amount: int,
        status: str,
        game_id: int | None,
    ) -> Transaction:
        await self._enter("create_transaction")
        db.touch()
        tx = Transaction(
            id=self.store.new_id(),
            user_id=user_id,
            type=TransactionType(tx_type).value,
            amount=amount,
            status=TransactionStatus(status).value,
            game_id=game_id,
        )
        self.store.transactions.append(tx)
        return copy.deepcopy(tx)

    async def list_transactions(self, db: FakeDb, user_id: int, limit: int) -> list[Transaction]:
        await self._enter("list_transactions")
        txs = sorted(self.store.transactions_of(user_id), key=lambda t: t.id, reverse=True)
        return copy.deepcopy(txs[:limit])


class RecordingTransport:
    def __init__(self, fail: bool = False) -> None:
        self.is_open = True
        self.fail = fail
        self.frames: list[str] = []

    async def send_text(self, data: str) -> None:
        await asyncio.sleep(0)
        if self.fail or not self.is_open:
            raise TransportError("peer gone")
        self.frames.append(data)

    @property
    def events(self) -> list[dict[str, Any]]:
        return [json.loads(frame) for frame in self.frames]

    def types(self) -> list[str]:
        return [event["type"] for event in self.events]


class StalledTransport:
    """A peer that stopped reading: every send waits forever."""

    is_open = True

    def __init__(self) -> None:
        self.attempts = 0

    async def send_text(self, data: str) -> None:
        self.attempts += 1
        await asyncio.Event().wait()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def game_repo(store: FakeStore) -> FakeGameRepository:
    return FakeGameRepository(store)


@pytest.fixture
def account_repo(store: FakeStore) -> FakeAccountRepository:
    return FakeAccountRepository(store)


@pytest.fixture
def session_factory(store: FakeStore) -> Callable[[], FakeDb]:
    return lambda: FakeDb(store)


@pytest.fixture
def make_transport() -> type[RecordingTransport]:
    return RecordingTransport


@pytest.fixture
def stalled_transport() -> StalledTransport:
    return StalledTransport()


@pytest.fixture
async def make_engine(
    game_repo: FakeGameRepository,
    account_repo: FakeAccountRepository,
    session_factory: Callable[[], FakeDb],
) -> Any:
    """Build GameEngines over the shared fakes; callers are shut down afterwards.

    The default interval is long enough that tests drive ticks by hand.
    """
    engines: list[GameEngine] = []

    def _make(**kwargs: Any) -> GameEngine:
        options: dict[str, Any] = {
            "game_repo": game_repo,
            "account_repo": account_repo,
            "registry": SessionRegistry(send_timeout=1.0),
            "session_factory": session_factory,
            "call_interval": 3600.0,
            "storage_timeout": 1.0,
            "min_players": 2,
            "verify_marks": False,
            "rng": random.Random(7),
        }
        options.update(kwargs)
        engine = GameEngine(**options)
        engines.append(engine)
        return engine

    yield _make
    for engine in engines:
        await engine.shutdown()


async def wait_for(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_poll(), timeout)


@pytest.fixture
def eventually() -> Callable[..., Awaitable[None]]:
    return wait_for
