"""Per-user preferences."""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from pocketledger.config import settings
from pocketledger.core.exceptions import ValidationFailed
from pocketledger.repositories.budget import UserSettingsRepository

logger = logging.getLogger(__name__)


class SettingsService:
    """Service for the user's active currency."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.settings_repo = UserSettingsRepository(db)

    async def get_active_currency(self, user_id: UUID) -> str:
        """The user's chosen currency, or the configured default."""
        user_settings = await self.settings_repo.get_for_user(user_id)
        if user_settings is None or not user_settings.active_currency:
            return settings.default_currency
        return user_settings.active_currency

    async def set_active_currency(self, user_id: UUID, currency: str) -> str:
        """Store the user's currency.

        Budgets already set keep the currency they were set in.

        Raises:
            ValidationFailed: If currency is not a three-letter code
        """
        code = (currency or "").strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise ValidationFailed(details={"field": "active_currency", "expected": "ISO code"})
        await self.settings_repo.upsert(user_id, code)
        logger.info("Active currency set", extra={"currency": code})
        return code
