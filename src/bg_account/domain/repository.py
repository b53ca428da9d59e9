"""Repository Protocol — dependency inversion for testability.

Unit tests inject a fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bg_account.domain.models import Transaction, User


class AccountRepositoryProtocol(Protocol):
    async def get_user(self, db: AsyncSession, user_id: int) -> User | None: ...

    async def update_user_balance(
        self, db: AsyncSession, user_id: int, delta: int
    ) -> User | None:
        """Apply ``delta`` cents atomically. None if the user is missing or
        the balance would go negative."""
        ...

    async def create_transaction(
        self,
        db: AsyncSession,
        user_id: int,
        tx_type: str,
        amount: int,
        status: str,
        game_id: int | None,
    ) -> Transaction: ...

    async def list_transactions(
        self, db: AsyncSession, user_id: int, limit: int
    ) -> list[Transaction]: ...
