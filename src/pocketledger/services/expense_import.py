"""Review and commit pipeline for imported transactions.

Reviewed transactions are saved as expenses exactly once per provider
transaction id, however many times the same set is committed. The user may
have edited description, amount or category; only the provider transaction
id decides whether a row is a duplicate.
"""

import logging
from dataclasses import dataclass
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from pocketledger.categorization import CATEGORIES, UNCATEGORIZED
from pocketledger.config import settings
from pocketledger.core.exceptions import ValidationFailed, WalletNotFound
from pocketledger.core.money import to_minor_units
from pocketledger.models.base import utcnow
from pocketledger.models.expense import SOURCE_WALLET
from pocketledger.repositories.expense import ExpenseRepository
from pocketledger.repositories.wallet import WalletRepository
from pocketledger.schemas.expense import StagedTransaction

logger = logging.getLogger(__name__)

ALLOWED_CATEGORIES = frozenset((*CATEGORIES, UNCATEGORIZED))


@dataclass
class CommitResult:
    inserted: int
    skipped: int


class ExpenseImportService:
    """Service for committing reviewed wallet transactions as expenses."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.wallet_repo = WalletRepository(db)
        self.expense_repo = ExpenseRepository(db)

    async def commit(
        self, user_id: UUID, wallet_id: UUID, edited: list[StagedTransaction]
    ) -> CommitResult:
        """Insert reviewed transactions that are not already in the ledger.

        Workflow:
        1. Validate the input and wallet ownership
        2. Collapse repeated provider ids within the input (first one wins)
        3. Drop ids the ledger already holds for this user
        4. Insert the rest with a conditional insert, so a concurrent
           commit of the same ids cannot create duplicates
        5. Commit once

        Already-imported transactions are counted as skipped, not reported
        as errors: re-opening a stale review screen is expected.

        Raises:
            ValidationFailed: If the list is empty or a category is unknown
            WalletNotFound: If the wallet does not belong to the user
        """
        if not edited:
            raise ValidationFailed(details={"field": "expenses", "reason": "empty"})

        unknown = sorted({t.category for t in edited} - ALLOWED_CATEGORIES)
        if unknown:
            raise ValidationFailed(details={"field": "category", "values": unknown})

        wallet = await self.wallet_repo.get_by_user(user_id, wallet_id)
        if wallet is None:
            raise WalletNotFound(details={"wallet_id": str(wallet_id)})

        unique: dict[str, StagedTransaction] = {}
        for txn in edited:
            unique.setdefault(txn.provider_transaction_id, txn)

        try:
            existing = await self.expense_repo.find_by_provider_transaction_ids(
                user_id, list(unique)
            )
            to_insert = [t for pid, t in unique.items() if pid not in existing]

            inserted = 0
            now = utcnow()
            for txn in to_insert:
                new_id = await self.expense_repo.insert_if_absent(
                    {
                        "id": uuid4(),
                        "user_id": user_id,
                        "wallet_id": wallet.id,
                        "provider_transaction_id": txn.provider_transaction_id,
                        "amount": to_minor_units(txn.amount),
                        "currency_code": txn.currency_code,
                        "description": txn.description,
                        "category": txn.category,
                        "date": txn.transaction_date,
                        "source": SOURCE_WALLET,
                        "created_at": now,
                        "updated_at": now,
                    }
                )
                if new_id is not None:
                    inserted += 1

            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            if settings.debug:
                logger.exception(
                    "Expense commit failed", extra={"error_type": type(e).__name__}
                )
            raise

        skipped = len(edited) - inserted
        logger.info(
            "Reviewed expenses committed",
            extra={
                "wallet_id": str(wallet.id),
                "submitted": len(edited),
                "inserted": inserted,
                "skipped": skipped,
            },
        )
        return CommitResult(inserted=inserted, skipped=skipped)
