"""Pydantic schemas for bg_account API."""

from pydantic import BaseModel

from src.bg_account.domain.models import Transaction, User
from src.bg_common.cents import cents_to_display
from src.bg_common.datetime_utils import to_iso


class UserProfileResponse(BaseModel):
    user_id: int
    username: str
    balance_cents: int
    balance_display: str

    @classmethod
    def from_domain(cls, user: User) -> "UserProfileResponse":
        return cls(
            user_id=user.id,
            username=user.username,
            balance_cents=user.balance,
            balance_display=cents_to_display(user.balance),
        )


class TransactionItem(BaseModel):
    id: int
    type: str
    amount_cents: int
    amount_display: str
    status: str
    game_id: int | None
    created_at: str | None  # ISO8601 string

    @classmethod
    def from_domain(cls, tx: Transaction) -> "TransactionItem":
        return cls(
            id=tx.id,
            type=tx.type,
            amount_cents=tx.amount,
            amount_display=cents_to_display(tx.amount),
            status=tx.status,
            game_id=tx.game_id,
            created_at=to_iso(tx.created_at),
        )


class TransactionListResponse(BaseModel):
    items: list[TransactionItem]
