"""Monthly budget status with currency conversion.

Expenses recorded in another currency are converted to the budget currency
using the stored exchange-rate table: the direct rate when present,
otherwise the inverse of the opposite rate. With neither, the amount is
counted 1:1. That fallback is an accepted approximation and is logged, not
raised.
"""

import logging
import re
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from pocketledger.core.exceptions import ValidationFailed
from pocketledger.core.money import from_minor_units
from pocketledger.models.budget import UserBudget
from pocketledger.repositories.budget import BudgetRepository, FxRateRepository
from pocketledger.repositories.expense import ExpenseRepository
from pocketledger.schemas.budget import BudgetStatus
from pocketledger.services.settings import SettingsService

logger = logging.getLogger(__name__)

MONTH_PATTERN = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def parse_month(month: str) -> tuple[int, int]:
    """Parse ``YYYY-MM`` into (year, month).

    Raises:
        ValidationFailed: If the string is not a valid month
    """
    match = MONTH_PATTERN.match(month or "")
    if not match:
        raise ValidationFailed(details={"field": "month", "expected": "YYYY-MM"})
    return int(match.group(1)), int(match.group(2))


def round_percent(spent: Decimal, budget: Decimal) -> int:
    """Spent as a whole percentage of budget, halves rounded up."""
    if budget <= 0:
        return 0
    return int((spent * 100 / budget).quantize(Decimal(1), rounding=ROUND_HALF_UP))


class CurrencyConverter:
    """Converts amounts using the exchange-rate table.

    Rates looked up once are reused for the lifetime of the converter.
    """

    def __init__(self, fx_repo: FxRateRepository):
        self.fx_repo = fx_repo
        self._factors: dict[tuple[str, str], Decimal] = {}

    async def factor(self, from_code: str, to_code: str) -> Decimal:
        """Multiplier that converts ``from_code`` amounts into ``to_code``."""
        if from_code == to_code:
            return Decimal(1)
        key = (from_code, to_code)
        if key not in self._factors:
            self._factors[key] = await self._lookup(from_code, to_code)
        return self._factors[key]

    async def convert(self, amount: Decimal, from_code: str, to_code: str) -> Decimal:
        return amount * await self.factor(from_code, to_code)

    async def _lookup(self, from_code: str, to_code: str) -> Decimal:
        direct = await self.fx_repo.get_rate(from_code, to_code)
        if direct:
            return Decimal(str(direct))

        inverse = await self.fx_repo.get_rate(to_code, from_code)
        if inverse:
            return Decimal(1) / Decimal(str(inverse))

        logger.warning(
            "No exchange rate found; counting 1:1",
            extra={"from_currency": from_code, "to_currency": to_code},
        )
        return Decimal(1)


class BudgetService:
    """Service for monthly budgets and spend against them."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.budget_repo = BudgetRepository(db)
        self.expense_repo = ExpenseRepository(db)
        self.converter = CurrencyConverter(FxRateRepository(db))
        self.user_settings = SettingsService(db)

    async def active_currency(self, user_id: UUID) -> str:
        return await self.user_settings.get_active_currency(user_id)

    async def get_budget_status(self, user_id: UUID, month: str) -> BudgetStatus:
        """Budget, spend, remaining and percent used for a month.

        Without a budget for the month every figure is 0 in the user's
        active currency.

        Raises:
            ValidationFailed: If month is not YYYY-MM
        """
        year, month_num = parse_month(month)
        active = await self.active_currency(user_id)

        budget_row = await self.budget_repo.get_for_month(user_id, month)
        if budget_row is None or not budget_row.budget_amount:
            zero = from_minor_units(0)
            return BudgetStatus(
                month=month, budget=zero, spent=zero, remaining=zero, percent=0, currency=active
            )

        currency = budget_row.budget_currency or active
        spent_minor = Decimal(0)
        for amount, expense_currency in await self.expense_repo.get_amounts_for_month(
            user_id, year, month_num
        ):
            spent_minor += await self.converter.convert(
                Decimal(amount), expense_currency or currency, currency
            )

        spent_minor = spent_minor.quantize(Decimal(1), rounding=ROUND_HALF_UP)
        budget_minor = Decimal(budget_row.budget_amount)
        remaining_minor = max(Decimal(0), budget_minor - spent_minor)

        return BudgetStatus(
            month=month,
            budget=from_minor_units(int(budget_minor)),
            spent=from_minor_units(int(spent_minor)),
            remaining=from_minor_units(int(remaining_minor)),
            percent=round_percent(spent_minor, budget_minor),
            currency=currency,
        )

    async def set_budget(
        self, user_id: UUID, month: str, amount_minor: int, currency: str | None = None
    ) -> UserBudget:
        """Create or replace the budget for a month.

        Raises:
            ValidationFailed: If month is not YYYY-MM or the amount is not positive
        """
        parse_month(month)
        if amount_minor <= 0:
            raise ValidationFailed(details={"field": "amount", "reason": "must be positive"})
        budget_currency = (currency or await self.active_currency(user_id)).upper()
        budget = await self.budget_repo.upsert(user_id, month, amount_minor, budget_currency)
        logger.info("Budget set", extra={"month": month, "currency": budget_currency})
        return budget
