"""Expense repository: dedup lookups, conditional inserts and month rollups."""
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import func, insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pocketledger.models.expense import SOURCE_WALLET, Expense
from pocketledger.repositories.base import BaseRepository

_DEDUP_COLUMNS = ["user_id", "provider_transaction_id"]


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Return [first day, first day of next month) for a calendar month."""
    start_date = date(year, month, 1)
    if month == 12:
        end_date = date(year + 1, 1, 1)
    else:
        end_date = date(year, month + 1, 1)
    return start_date, end_date


class ExpenseRepository(BaseRepository[Expense]):
    """Repository for the expense ledger."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Expense)

    async def find_by_provider_transaction_ids(
        self, user_id: UUID, ids: list[str]
    ) -> set[str]:
        """Return which of ``ids`` already exist as expenses for this user."""
        if not ids:
            return set()
        result = await self.db.execute(
            select(Expense.provider_transaction_id).where(
                Expense.user_id == user_id,
                Expense.provider_transaction_id.in_(sorted(set(ids))),
            )
        )
        return {row for row in result.scalars().all()}

    async def insert_if_absent(self, values: dict[str, Any]) -> UUID | None:
        """Insert one expense unless (user_id, provider_transaction_id) exists.

        The existence check and the write are a single statement, so two
        concurrent commits of the same transaction cannot both insert it.
        Does not commit.

        Args:
            values: Column values keyed by column name

        Returns:
            The new row id, or None if the row already existed.
        """
        table = Expense.__table__
        dialect = self.dialect_name()

        if dialect in ("postgresql", "sqlite"):
            dialect_insert = pg_insert if dialect == "postgresql" else sqlite_insert
            stmt = (
                dialect_insert(table)
                .values(**values)
                .on_conflict_do_nothing(index_elements=_DEDUP_COLUMNS)
                .returning(table.c.id)
            )
            result = await self.db.execute(stmt)
            return result.scalar_one_or_none()

        # Other backends: rely on the unique constraint inside a savepoint.
        try:
            async with self.db.begin_nested():
                result = await self.db.execute(
                    insert(table).values(**values).returning(table.c.id)
                )
                return result.scalar_one()
        except IntegrityError:
            return None

    async def get_amounts_for_month(
        self, user_id: UUID, year: int, month: int
    ) -> list[tuple[int, str | None]]:
        """Get (amount, currency_code) of every non-deleted expense in a month."""
        start_date, end_date = month_bounds(year, month)
        result = await self.db.execute(
            select(Expense.amount, Expense.currency_code).where(
                Expense.user_id == user_id,
                Expense.deleted_at.is_(None),
                Expense.expense_date >= start_date,
                Expense.expense_date < end_date,
            )
        )
        return [(row.amount, row.currency_code) for row in result]

    async def get_wallet_totals_for_month(
        self, user_id: UUID, year: int, month: int
    ) -> dict[UUID, int]:
        """
        Sum imported spend per wallet for a month.
        Returns dict of {wallet_id: total_amount}.
        """
        start_date, end_date = month_bounds(year, month)
        result = await self.db.execute(
            select(Expense.wallet_id, func.sum(Expense.amount).label("total"))
            .where(
                Expense.user_id == user_id,
                Expense.deleted_at.is_(None),
                Expense.source == SOURCE_WALLET,
                Expense.wallet_id.is_not(None),
                Expense.expense_date >= start_date,
                Expense.expense_date < end_date,
            )
            .group_by(Expense.wallet_id)
        )
        return {row.wallet_id: int(row.total) for row in result}
