"""Domain models for bg_account — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    id: int
    username: str
    balance: int             # cents
    created_at: datetime | None = None


@dataclass
class Transaction:
    id: int                          # BIGSERIAL
    user_id: int
    type: str                        # TransactionType value
    amount: int                      # cents, positive=credit negative=debit
    status: str                      # TransactionStatus value
    game_id: int | None = None
    created_at: datetime | None = None
