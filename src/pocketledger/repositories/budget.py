"""Budget, exchange-rate and user-settings queries."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pocketledger.models.budget import FxRate, UserBudget, UserSettings
from pocketledger.repositories.base import BaseRepository


class BudgetRepository(BaseRepository[UserBudget]):
    """Repository for monthly budgets."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, UserBudget)

    async def get_for_month(self, user_id: UUID, month: str) -> UserBudget | None:
        result = await self.db.execute(
            select(UserBudget).where(UserBudget.user_id == user_id, UserBudget.month == month)
        )
        return result.scalar_one_or_none()

    async def upsert(
        self, user_id: UUID, month: str, budget_amount: int, budget_currency: str | None
    ) -> UserBudget:
        """Create or replace the budget for a month."""
        budget = await self.get_for_month(user_id, month)
        if budget is None:
            return await self.create(
                UserBudget(
                    user_id=user_id,
                    month=month,
                    budget_amount=budget_amount,
                    budget_currency=budget_currency,
                )
            )
        return await self.update(
            budget, {"budget_amount": budget_amount, "budget_currency": budget_currency}
        )


class FxRateRepository(BaseRepository[FxRate]):
    """Repository for the exchange-rate table."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, FxRate)

    async def get_rate(self, base_code: str, quote_code: str) -> float | None:
        result = await self.db.execute(
            select(FxRate.rate).where(
                FxRate.base_code == base_code, FxRate.quote_code == quote_code
            )
        )
        return result.scalar_one_or_none()

    async def upsert(self, base_code: str, quote_code: str, rate: float) -> FxRate:
        result = await self.db.execute(
            select(FxRate).where(
                FxRate.base_code == base_code, FxRate.quote_code == quote_code
            )
        )
        existing = result.scalar_one_or_none()
        if existing is None:
            return await self.create(FxRate(base_code=base_code, quote_code=quote_code, rate=rate))
        return await self.update(existing, {"rate": rate})


class UserSettingsRepository(BaseRepository[UserSettings]):
    """Repository for per-user preferences."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, UserSettings)

    async def get_for_user(self, user_id: UUID) -> UserSettings | None:
        result = await self.db.execute(select(UserSettings).where(UserSettings.user_id == user_id))
        return result.scalar_one_or_none()

    async def upsert(self, user_id: UUID, active_currency: str) -> UserSettings:
        existing = await self.get_for_user(user_id)
        if existing is None:
            return await self.create(UserSettings(user_id=user_id, active_currency=active_currency))
        return await self.update(existing, {"active_currency": active_currency})
