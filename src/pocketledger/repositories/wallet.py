"""Wallet repository with user-scoped queries."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pocketledger.models.wallet import Wallet
from pocketledger.repositories.base import BaseRepository


class WalletRepository(BaseRepository[Wallet]):
    """Repository for Wallet model with user-scoped security."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Wallet)

    async def get_by_user(self, user_id: UUID, wallet_id: UUID) -> Wallet | None:
        """Get wallet only if it belongs to the specified user."""
        result = await self.db.execute(
            select(Wallet).where(Wallet.id == wallet_id, Wallet.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_all_by_user(self, user_id: UUID) -> list[Wallet]:
        """Get all wallets for a user, oldest first."""
        result = await self.db.execute(
            select(Wallet).where(Wallet.user_id == user_id).order_by(Wallet.created_at)
        )
        return list(result.scalars().all())

    async def find_by_item(
        self, user_id: UUID, provider: str, provider_item_id: str
    ) -> Wallet | None:
        """Find the wallet for a (user, provider, item) key, if linked before."""
        result = await self.db.execute(
            select(Wallet).where(
                Wallet.user_id == user_id,
                Wallet.provider == provider,
                Wallet.provider_item_id == provider_item_id,
            )
        )
        return result.scalar_one_or_none()
