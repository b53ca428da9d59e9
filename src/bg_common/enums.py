"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class SessionStatus(str, Enum):
    FORMING = "FORMING"
    ACTIVE = "ACTIVE"
    SETTLED = "SETTLED"


class GameType(str, Enum):
    """Lobby label only; every type plays the same rules."""
    STANDARD = "STANDARD"
    SPEED = "SPEED"
    JACKPOT = "JACKPOT"


class TransactionType(str, Enum):
    DEPOSIT = "DEPOSIT"
    GAME_ENTRY = "GAME_ENTRY"
    GAME_WIN = "GAME_WIN"
    # No-contest refund when all 75 numbers are called without a winner
    GAME_REFUND = "GAME_REFUND"


class TransactionStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class CallerState(str, Enum):
    """Number-calling scheduler state for one session."""
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    STOPPED = "STOPPED"
