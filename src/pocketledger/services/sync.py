"""Transaction sync engine.

Pulls incremental changes for one wallet from its provider, classifies the
new outflows and returns them as staged transactions for review. Nothing is
written to the expense ledger here.

The stored cursor is advanced only after every page of a sync has been
fetched and mapped. A failure part-way through leaves it where it was, so
the next sync replays the same window.
"""

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from pocketledger.categorization import classify
from pocketledger.core.crypto import CredentialCipher
from pocketledger.core.money import MINOR_UNIT
from pocketledger.core.exceptions import (
    ProviderUnavailable,
    ReauthRequired,
    SyncFailed,
    WalletNotFound,
)
from pocketledger.models.base import utcnow
from pocketledger.models.wallet import Wallet
from pocketledger.providers.base import (
    AggregationProvider,
    ProviderError,
    ProviderRegistry,
    ProviderTransaction,
)
from pocketledger.repositories.wallet import WalletRepository
from pocketledger.schemas.expense import StagedTransaction

logger = logging.getLogger(__name__)

# Plaid asks callers to restart pagination from the original cursor when
# the item changes between pages.
MUTATION_DURING_PAGINATION = "TRANSACTIONS_SYNC_MUTATION_DURING_PAGINATION"
MAX_PAGINATION_RESTARTS = 2


@dataclass
class SyncResult:
    wallet_id: UUID
    added: list[StagedTransaction] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    next_cursor: str | None = None


def staged_amount(txn: ProviderTransaction) -> Decimal:
    """Provider amount rounded to cents."""
    return txn.amount.quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)


def _description(txn: ProviderTransaction) -> str:
    for text in (txn.name, txn.merchant_name):
        if text and text.strip():
            return text.strip()[:500]
    return txn.transaction_id[:500]


def stage_transaction(txn: ProviderTransaction) -> StagedTransaction:
    """Map a provider transaction to a classified staged transaction.

    Raises:
        ValidationError: If the row still cannot be staged, e.g. a
            malformed currency code
    """
    pfc = txn.personal_finance_category
    category = classify(
        txn.merchant_name or txn.name,
        mcc=txn.merchant_category_code,
        provider_category=pfc.primary if pfc else None,
    )
    return StagedTransaction(
        provider_transaction_id=txn.transaction_id,
        description=_description(txn),
        amount=staged_amount(txn),
        category=category,
        transaction_date=txn.date,
        currency_code=txn.iso_currency_code or None,
    )


class SyncService:
    """Service for syncing wallet transactions from providers."""

    def __init__(self, db: AsyncSession, providers: ProviderRegistry, cipher: CredentialCipher):
        self.db = db
        self.providers = providers
        self.cipher = cipher
        self.wallet_repo = WalletRepository(db)

    async def sync(self, user_id: UUID, wallet_id: UUID) -> SyncResult:
        """Fetch everything new since the wallet's stored cursor.

        Only outflows that have posted are staged. Inflows and pending
        transactions are dropped.

        Raises:
            WalletNotFound: If the wallet does not belong to the user
            ReauthRequired: If the wallet needs to be relinked
            SyncFailed: If the provider call failed; the cursor is unchanged
        """
        wallet = await self.wallet_repo.get_by_user(user_id, wallet_id)
        if wallet is None:
            raise WalletNotFound(details={"wallet_id": str(wallet_id)})
        if wallet.needs_reconnect:
            raise ReauthRequired(details={"wallet_id": str(wallet.id)})

        client = self._provider_for(wallet)
        try:
            credential = self.cipher.decrypt(wallet.access_credential)
        except ValueError as e:
            await self._flag_reconnect(wallet, "CREDENTIAL_UNREADABLE")
            raise ReauthRequired(details={"wallet_id": str(wallet.id)}) from e

        try:
            changes, removed, cursor = await self._fetch_all(client, credential, wallet.last_sync_cursor)
        except ProviderError as e:
            if e.requires_reauth:
                await self._flag_reconnect(wallet, e.code)
                raise ReauthRequired(
                    details={"wallet_id": str(wallet.id), "provider_code": e.code}
                ) from e
            logger.warning(
                "Wallet sync failed",
                extra={
                    "wallet_id": str(wallet.id),
                    "provider": wallet.provider,
                    "error_code": e.code,
                    "kind": e.kind.value,
                },
            )
            raise SyncFailed(
                details={"wallet_id": str(wallet.id), "provider_code": e.code}
            ) from e

        staged = []
        for txn in changes:
            # Sub-cent outflows round to zero and are dropped with the inflows.
            if txn.pending or staged_amount(txn) <= 0:
                continue
            try:
                staged.append(stage_transaction(txn))
            except ValidationError as e:
                logger.warning(
                    "Provider transaction could not be staged",
                    extra={"wallet_id": str(wallet.id), "provider": wallet.provider},
                )
                raise SyncFailed(
                    details={
                        "wallet_id": str(wallet.id),
                        "provider_code": "MALFORMED_TRANSACTION",
                    }
                ) from e

        await self.wallet_repo.update(
            wallet, {"last_sync_cursor": cursor, "last_synced_at": utcnow()}
        )

        logger.info(
            "Wallet synced",
            extra={
                "wallet_id": str(wallet.id),
                "provider": wallet.provider,
                "fetched": len(changes),
                "staged": len(staged),
                "removed": len(removed),
            },
        )
        return SyncResult(wallet_id=wallet.id, added=staged, removed=removed, next_cursor=cursor)

    async def list_for_review(self, user_id: UUID, wallet_id: UUID) -> list[StagedTransaction]:
        """Sync the wallet and return the staged set for the review screen."""
        result = await self.sync(user_id, wallet_id)
        return result.added

    async def _fetch_all(
        self, client: AggregationProvider, credential: str, start_cursor: str | None
    ) -> tuple[list[ProviderTransaction], list[str], str | None]:
        """Follow has_more until exhausted.

        Returns:
            (added and modified transactions, removed ids, final cursor)
        """
        restarts = 0
        while True:
            cursor = start_cursor
            changes: dict[str, ProviderTransaction] = {}
            removed: list[str] = []
            try:
                while True:
                    page = await client.fetch_transactions(credential, cursor)
                    for txn in [*page.added, *page.modified]:
                        changes[txn.transaction_id] = txn
                    for gone in page.removed:
                        changes.pop(gone.transaction_id, None)
                        removed.append(gone.transaction_id)
                    cursor = page.next_cursor
                    if not page.has_more:
                        return list(changes.values()), removed, cursor
            except ProviderError as e:
                if e.code != MUTATION_DURING_PAGINATION or restarts >= MAX_PAGINATION_RESTARTS:
                    raise
                restarts += 1
                logger.info("Restarting sync pagination", extra={"restarts": restarts})

    def _provider_for(self, wallet: Wallet) -> AggregationProvider:
        try:
            return self.providers.get(wallet.provider)
        except KeyError as e:
            logger.error(
                "Wallet provider is not configured",
                extra={"wallet_id": str(wallet.id), "provider": wallet.provider},
            )
            raise ProviderUnavailable(details={"provider": wallet.provider}) from e

    async def _flag_reconnect(self, wallet: Wallet, reason: str) -> None:
        """Persist only the reconnect flag; the cursor stays as it was."""
        await self.wallet_repo.update(wallet, {"needs_reconnect": True})
        logger.warning(
            "Wallet needs reconnection",
            extra={"wallet_id": str(wallet.id), "provider": wallet.provider, "reason": reason},
        )
