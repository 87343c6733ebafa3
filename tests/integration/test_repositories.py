"""Integration tests for repository layer."""
from datetime import date
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pocketledger.models.expense import SOURCE_MANUAL, SOURCE_WALLET, Expense
from pocketledger.models.wallet import Wallet
from pocketledger.repositories.budget import BudgetRepository, FxRateRepository, UserSettingsRepository
from pocketledger.repositories.expense import ExpenseRepository, month_bounds
from pocketledger.repositories.wallet import WalletRepository


@pytest.fixture
async def wallet(db_session: AsyncSession, user_id) -> Wallet:
    """Create a linked wallet."""
    return await WalletRepository(db_session).create(
        Wallet(
            user_id=user_id,
            provider="TestProvider",
            wallet_name="First Bank",
            provider_item_id="item-1",
            access_credential="encrypted",
        )
    )


def expense_values(user_id, wallet_id, txn_id: str, amount: int = 1000, day: int = 5) -> dict:
    return {
        "id": uuid4(),
        "user_id": user_id,
        "wallet_id": wallet_id,
        "provider_transaction_id": txn_id,
        "amount": amount,
        "currency_code": "USD",
        "description": "Coffee",
        "category": "Food",
        "date": date(2026, 3, day),
        "source": SOURCE_WALLET,
    }


async def _expense_count(db: AsyncSession, user_id) -> int:
    result = await db.execute(
        select(func.count()).select_from(Expense).where(Expense.user_id == user_id)
    )
    return result.scalar_one()


class TestWalletRepository:
    @pytest.mark.asyncio
    async def test_get_by_user_scopes_to_owner(
        self, db_session: AsyncSession, wallet: Wallet, user_id, another_user_id
    ):
        repo = WalletRepository(db_session)

        assert (await repo.get_by_user(user_id, wallet.id)).id == wallet.id
        assert await repo.get_by_user(another_user_id, wallet.id) is None

    @pytest.mark.asyncio
    async def test_find_by_item(self, db_session: AsyncSession, wallet: Wallet, user_id):
        repo = WalletRepository(db_session)

        found = await repo.find_by_item(user_id, "TestProvider", "item-1")
        assert found.id == wallet.id
        assert await repo.find_by_item(user_id, "Plaid", "item-1") is None

    @pytest.mark.asyncio
    async def test_defaults(self, wallet: Wallet):
        assert wallet.needs_reconnect is False
        assert wallet.last_sync_cursor is None
        assert wallet.last_synced_at is None

    @pytest.mark.asyncio
    async def test_unique_item_per_user(self, db_session: AsyncSession, wallet: Wallet, user_id):
        duplicate = Wallet(
            user_id=user_id,
            provider="TestProvider",
            wallet_name="Again",
            provider_item_id="item-1",
            access_credential="encrypted",
        )

        with pytest.raises(IntegrityError):
            await WalletRepository(db_session).create(duplicate)
        await db_session.rollback()

    @pytest.mark.asyncio
    async def test_get_all_by_user(self, db_session: AsyncSession, wallet: Wallet, user_id, another_user_id):
        repo = WalletRepository(db_session)

        assert [w.id for w in await repo.get_all_by_user(user_id)] == [wallet.id]
        assert await repo.get_all_by_user(another_user_id) == []


class TestExpenseRepository:
    @pytest.mark.asyncio
    async def test_insert_if_absent(self, db_session: AsyncSession, wallet: Wallet, user_id):
        repo = ExpenseRepository(db_session)

        first = await repo.insert_if_absent(expense_values(user_id, wallet.id, "t1"))
        second = await repo.insert_if_absent(expense_values(user_id, wallet.id, "t1"))
        await db_session.commit()

        assert first is not None
        assert second is None
        assert await _expense_count(db_session, user_id) == 1

    @pytest.mark.asyncio
    async def test_same_transaction_id_for_another_user(
        self, db_session: AsyncSession, wallet: Wallet, user_id, another_user_id
    ):
        repo = ExpenseRepository(db_session)

        await repo.insert_if_absent(expense_values(user_id, wallet.id, "t1"))
        other = await repo.insert_if_absent(expense_values(another_user_id, None, "t1"))
        await db_session.commit()

        assert other is not None

    @pytest.mark.asyncio
    async def test_manual_expenses_do_not_collide(self, db_session: AsyncSession, user_id):
        for description in ("Lunch", "Taxi"):
            db_session.add(
                Expense(
                    user_id=user_id,
                    amount=500,
                    description=description,
                    expense_date=date(2026, 3, 1),
                    source=SOURCE_MANUAL,
                )
            )
        await db_session.commit()

        assert await _expense_count(db_session, user_id) == 2

    @pytest.mark.asyncio
    async def test_find_by_provider_transaction_ids(
        self, db_session: AsyncSession, wallet: Wallet, user_id, another_user_id
    ):
        repo = ExpenseRepository(db_session)
        await repo.insert_if_absent(expense_values(user_id, wallet.id, "t1"))
        await repo.insert_if_absent(expense_values(another_user_id, None, "t2"))
        await db_session.commit()

        assert await repo.find_by_provider_transaction_ids(user_id, ["t1", "t2", "t3"]) == {"t1"}
        assert await repo.find_by_provider_transaction_ids(user_id, []) == set()

    @pytest.mark.asyncio
    async def test_wallet_totals_for_month(self, db_session: AsyncSession, wallet: Wallet, user_id):
        repo = ExpenseRepository(db_session)
        await repo.insert_if_absent(expense_values(user_id, wallet.id, "t1", amount=1999, day=1))
        await repo.insert_if_absent(expense_values(user_id, wallet.id, "t2", amount=1, day=31))
        outside = expense_values(user_id, wallet.id, "t3", amount=5000)
        outside["date"] = date(2026, 4, 1)
        await repo.insert_if_absent(outside)
        await db_session.commit()

        totals = await repo.get_wallet_totals_for_month(user_id, 2026, 3)

        assert totals == {wallet.id: 2000}

    @pytest.mark.asyncio
    async def test_disconnect_keeps_expenses(self, db_session: AsyncSession, wallet: Wallet, user_id):
        repo = ExpenseRepository(db_session)
        expense_id = await repo.insert_if_absent(expense_values(user_id, wallet.id, "t1"))
        await db_session.commit()

        await WalletRepository(db_session).delete(wallet)
        db_session.expire_all()

        expense = await repo.get_by_id(expense_id)
        assert expense is not None
        assert expense.wallet_id is None


def test_month_bounds():
    assert month_bounds(2026, 3) == (date(2026, 3, 1), date(2026, 4, 1))
    assert month_bounds(2025, 12) == (date(2025, 12, 1), date(2026, 1, 1))


class TestBudgetRepositories:
    @pytest.mark.asyncio
    async def test_budget_upsert(self, db_session: AsyncSession, user_id):
        repo = BudgetRepository(db_session)

        created = await repo.upsert(user_id, "2026-03", 10000, "EGP")
        updated = await repo.upsert(user_id, "2026-03", 20000, "USD")

        assert updated.id == created.id
        assert (await repo.get_for_month(user_id, "2026-03")).budget_amount == 20000
        assert await repo.get_for_month(user_id, "2026-04") is None

    @pytest.mark.asyncio
    async def test_user_settings_upsert(self, db_session: AsyncSession, user_id):
        repo = UserSettingsRepository(db_session)

        assert await repo.get_for_user(user_id) is None
        await repo.upsert(user_id, "USD")
        await repo.upsert(user_id, "GBP")
        assert (await repo.get_for_user(user_id)).active_currency == "GBP"

    @pytest.mark.asyncio
    async def test_fx_rate_upsert(self, db_session: AsyncSession):
        repo = FxRateRepository(db_session)

        await repo.upsert("USD", "EGP", 48.5)
        await repo.upsert("USD", "EGP", 50.0)

        assert await repo.get_rate("USD", "EGP") == 50.0
        assert await repo.get_rate("EGP", "USD") is None
