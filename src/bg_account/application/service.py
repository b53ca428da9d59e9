"""AccountApplicationService — read-only views over users and their ledger.

Balance mutations happen only inside GameEngine units of work.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.bg_account.application.schemas import (
    TransactionItem,
    TransactionListResponse,
    UserProfileResponse,
)
from src.bg_account.domain.repository import AccountRepositoryProtocol
from src.bg_account.infrastructure.persistence import AccountRepository
from src.bg_common.errors import UserNotFoundError


class AccountApplicationService:
    def __init__(self, repo: AccountRepositoryProtocol | None = None) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()

    async def get_user(self, db: AsyncSession, user_id: int) -> UserProfileResponse:
        user = await self._repo.get_user(db, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return UserProfileResponse.from_domain(user)

    async def list_transactions(
        self, db: AsyncSession, user_id: int, limit: int
    ) -> TransactionListResponse:
        user = await self._repo.get_user(db, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        txs = await self._repo.list_transactions(db, user_id, limit)
        return TransactionListResponse(items=[TransactionItem.from_domain(t) for t in txs])
