"""Unit tests for ExpenseImportService."""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pocketledger.core.exceptions import ValidationFailed, WalletNotFound
from pocketledger.models.expense import SOURCE_WALLET, Expense
from pocketledger.models.wallet import Wallet
from pocketledger.repositories.wallet import WalletRepository
from pocketledger.schemas.expense import StagedTransaction
from pocketledger.services.expense_import import ExpenseImportService


def _staged(txn_id: str, description: str, amount: str, category: str) -> StagedTransaction:
    return StagedTransaction(
        provider_transaction_id=txn_id,
        description=description,
        amount=Decimal(amount),
        category=category,
        transaction_date=date(2026, 3, 14),
    )


@pytest.fixture
async def wallet(db_session: AsyncSession, cipher, user_id) -> Wallet:
    return await WalletRepository(db_session).create(
        Wallet(
            user_id=user_id,
            provider="TestProvider",
            wallet_name="Test Wallet",
            provider_item_id="item-sandbox-x",
            access_credential=cipher.encrypt("access-sandbox-x"),
        )
    )


@pytest.fixture
def staged() -> list[StagedTransaction]:
    return [
        _staged("sandbox-txn-0001", "Spotify", "19.99", "Entertainment"),
        _staged("sandbox-txn-0002", "Coffee Shop", "8.50", "Food"),
        _staged("sandbox-txn-0003", "Online Shopping", "120.00", "Shopping"),
    ]


async def _expenses(db: AsyncSession) -> list[Expense]:
    result = await db.execute(select(Expense).order_by(Expense.provider_transaction_id))
    return list(result.scalars().all())


class TestCommit:
    @pytest.mark.asyncio
    async def test_inserts_with_wallet_source(self, db_session, wallet, user_id, staged):
        result = await ExpenseImportService(db_session).commit(user_id, wallet.id, staged)

        assert (result.inserted, result.skipped) == (3, 0)
        rows = await _expenses(db_session)
        assert [r.amount for r in rows] == [1999, 850, 12000]
        assert all(r.source == SOURCE_WALLET for r in rows)
        assert all(r.wallet_id == wallet.id for r in rows)
        assert all(r.user_id == user_id for r in rows)

    @pytest.mark.asyncio
    async def test_recommit_inserts_nothing(self, db_session, wallet, user_id, staged):
        service = ExpenseImportService(db_session)
        await service.commit(user_id, wallet.id, staged)

        result = await service.commit(user_id, wallet.id, staged)

        assert (result.inserted, result.skipped) == (0, 3)
        assert len(await _expenses(db_session)) == 3

    @pytest.mark.asyncio
    async def test_edits_do_not_defeat_dedup(self, db_session, wallet, user_id, staged):
        service = ExpenseImportService(db_session)
        await service.commit(user_id, wallet.id, staged)

        edited = [
            _staged("sandbox-txn-0002", "Morning coffee", "9.00", "Miscellaneous"),
        ]
        result = await service.commit(user_id, wallet.id, edited)

        assert result.inserted == 0
        rows = await _expenses(db_session)
        coffee = next(r for r in rows if r.provider_transaction_id == "sandbox-txn-0002")
        assert coffee.amount == 850
        assert coffee.description == "Coffee Shop"

    @pytest.mark.asyncio
    async def test_edited_fields_are_stored(self, db_session, wallet, user_id):
        edited = [_staged("sandbox-txn-0002", "Morning coffee", "9.00", "Food")]

        await ExpenseImportService(db_session).commit(user_id, wallet.id, edited)

        (row,) = await _expenses(db_session)
        assert row.amount == 900
        assert row.description == "Morning coffee"
        assert row.provider_transaction_id == "sandbox-txn-0002"
        assert row.expense_date == date(2026, 3, 14)

    @pytest.mark.asyncio
    async def test_duplicates_within_input_collapse(self, db_session, wallet, user_id):
        edited = [
            _staged("t1", "First", "1.00", "Food"),
            _staged("t1", "Second", "2.00", "Food"),
        ]

        result = await ExpenseImportService(db_session).commit(user_id, wallet.id, edited)

        assert (result.inserted, result.skipped) == (1, 1)
        (row,) = await _expenses(db_session)
        assert row.description == "First"

    @pytest.mark.asyncio
    async def test_partial_overlap(self, db_session, wallet, user_id, staged):
        service = ExpenseImportService(db_session)
        await service.commit(user_id, wallet.id, staged[:1])

        result = await service.commit(user_id, wallet.id, staged)

        assert (result.inserted, result.skipped) == (2, 1)

    @pytest.mark.asyncio
    async def test_same_ids_for_another_user_are_not_duplicates(
        self, db_session, cipher, wallet, user_id, another_user_id, staged
    ):
        other_wallet = await WalletRepository(db_session).create(
            Wallet(
                user_id=another_user_id,
                provider="TestProvider",
                wallet_name="Other",
                provider_item_id="item-sandbox-x",
                access_credential=cipher.encrypt("access-sandbox-y"),
            )
        )
        service = ExpenseImportService(db_session)
        await service.commit(user_id, wallet.id, staged)

        result = await service.commit(another_user_id, other_wallet.id, staged)

        assert result.inserted == 3

    @pytest.mark.asyncio
    async def test_concurrent_insert_counted_as_skipped(self, db_session, wallet, user_id, staged):
        """A row that appears between the pre-check and the insert is skipped."""
        service = ExpenseImportService(db_session)
        await service.commit(user_id, wallet.id, staged)

        # Simulate the other request winning after our existence check ran.
        service.expense_repo.find_by_provider_transaction_ids = AsyncMock(return_value=set())
        result = await service.commit(user_id, wallet.id, staged)

        assert (result.inserted, result.skipped) == (0, 3)
        assert len(await _expenses(db_session)) == 3

    @pytest.mark.asyncio
    async def test_empty_list_rejected(self, db_session, wallet, user_id):
        with pytest.raises(ValidationFailed):
            await ExpenseImportService(db_session).commit(user_id, wallet.id, [])

    @pytest.mark.asyncio
    async def test_unknown_category_rejected(self, db_session, wallet, user_id):
        with pytest.raises(ValidationFailed):
            await ExpenseImportService(db_session).commit(
                user_id, wallet.id, [_staged("t1", "X", "1.00", "Gadgets")]
            )
        assert await _expenses(db_session) == []

    @pytest.mark.asyncio
    async def test_other_users_wallet_rejected(
        self, db_session, wallet, another_user_id, staged
    ):
        with pytest.raises(WalletNotFound):
            await ExpenseImportService(db_session).commit(another_user_id, wallet.id, staged)
        assert await _expenses(db_session) == []
