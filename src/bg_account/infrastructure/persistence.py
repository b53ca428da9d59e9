"""AccountRepository — concrete implementation of AccountRepositoryProtocol.

Balance mutations use a single guarded PostgreSQL UPDATE ... RETURNING.
A result of 0 rows means the user is missing or the balance would go negative.

Transaction ownership: The CALLER (GameEngine or application service) is
responsible for committing or rolling back.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bg_account.domain.models import Transaction, User
from src.bg_common.enums import TransactionStatus, TransactionType
from src.bg_common.errors import InternalError

_GET_USER_SQL = text("""
    SELECT id, username, balance, created_at
    FROM users
    WHERE id = :user_id
""")

_UPDATE_BALANCE_SQL = text("""
    UPDATE users
    SET balance = balance + :delta
    WHERE id = :user_id AND balance + :delta >= 0
    RETURNING id, username, balance, created_at
""")

_INSERT_TRANSACTION_SQL = text("""
    INSERT INTO transactions (user_id, type, amount, status, game_id)
    VALUES (:user_id, :type, :amount, :status, :game_id)
    RETURNING id, user_id, type, amount, status, game_id, created_at
""")

_LIST_TRANSACTIONS_SQL = text("""
    SELECT id, user_id, type, amount, status, game_id, created_at
    FROM transactions
    WHERE user_id = :user_id
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_user(row: object) -> User:
    return User(
        id=row.id,  # type: ignore[attr-defined]
        username=row.username,  # type: ignore[attr-defined]
        balance=row.balance,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_transaction(row: object) -> Transaction:
    return Transaction(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        type=row.type,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        game_id=row.game_id,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class AccountRepository:
    """Concrete repository — balance writes atomic at the SQL level."""

    async def get_user(self, db: AsyncSession, user_id: int) -> User | None:
        result = await db.execute(_GET_USER_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_user(row) if row else None

    async def update_user_balance(
        self, db: AsyncSession, user_id: int, delta: int
    ) -> User | None:
        result = await db.execute(_UPDATE_BALANCE_SQL, {"user_id": user_id, "delta": delta})
        row = result.fetchone()
        return _row_to_user(row) if row else None

    async def create_transaction(
        self,
        db: AsyncSession,
        user_id: int,
        tx_type: str,
        amount: int,
        status: str,
        game_id: int | None,
    ) -> Transaction:
        result = await db.execute(
            _INSERT_TRANSACTION_SQL,
            {
                "user_id": user_id,
                "type": TransactionType(tx_type).value,
                "amount": amount,
                "status": TransactionStatus(status).value,
                "game_id": game_id,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Transaction insert returned no rows")
        return _row_to_transaction(row)

    async def list_transactions(
        self, db: AsyncSession, user_id: int, limit: int
    ) -> list[Transaction]:
        result = await db.execute(_LIST_TRANSACTIONS_SQL, {"user_id": user_id, "limit": limit})
        return [_row_to_transaction(row) for row in result.fetchall()]
