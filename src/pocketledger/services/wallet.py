"""Wallet management: listing, renaming, disconnecting and monthly totals."""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from pocketledger.core.crypto import CredentialCipher
from pocketledger.core.exceptions import ProviderUnavailable, WalletNotFound
from pocketledger.models.wallet import Wallet
from pocketledger.providers.base import ProviderError, ProviderRegistry
from pocketledger.repositories.expense import ExpenseRepository
from pocketledger.repositories.wallet import WalletRepository
from pocketledger.services.budget import parse_month

logger = logging.getLogger(__name__)


class WalletService:
    """Service for a user's linked wallets."""

    def __init__(self, db: AsyncSession, providers: ProviderRegistry, cipher: CredentialCipher):
        self.db = db
        self.providers = providers
        self.cipher = cipher
        self.wallet_repo = WalletRepository(db)
        self.expense_repo = ExpenseRepository(db)

    async def list_wallets(self, user_id: UUID) -> list[Wallet]:
        return await self.wallet_repo.get_all_by_user(user_id)

    async def get(self, user_id: UUID, wallet_id: UUID) -> Wallet:
        """Get a wallet owned by the user.

        Raises:
            WalletNotFound: If it does not exist or belongs to someone else
        """
        wallet = await self.wallet_repo.get_by_user(user_id, wallet_id)
        if wallet is None:
            raise WalletNotFound(details={"wallet_id": str(wallet_id)})
        return wallet

    async def rename(self, user_id: UUID, wallet_id: UUID, wallet_name: str) -> Wallet:
        wallet = await self.get(user_id, wallet_id)
        return await self.wallet_repo.update(wallet, {"wallet_name": wallet_name.strip()})

    async def disconnect(self, user_id: UUID, wallet_id: UUID) -> None:
        """Revoke the wallet's credential with its provider, then delete it.

        Expenses already imported from the wallet are kept; their wallet
        reference is cleared.

        Raises:
            WalletNotFound: If the wallet does not belong to the user
            ProviderUnavailable: If the revoke call failed transiently; the
                wallet is left in place so the user can retry
        """
        wallet = await self.get(user_id, wallet_id)

        try:
            client = self.providers.get(wallet.provider)
        except KeyError:
            client = None
            logger.warning(
                "Disconnecting wallet of an unconfigured provider without revoking",
                extra={"wallet_id": str(wallet.id), "provider": wallet.provider},
            )

        if client is not None:
            try:
                credential = self.cipher.decrypt(wallet.access_credential)
                await client.remove_item(credential)
            except ValueError:
                logger.warning(
                    "Stored credential unreadable; deleting without revoking",
                    extra={"wallet_id": str(wallet.id)},
                )
            except ProviderError as e:
                if e.is_transient:
                    raise ProviderUnavailable(
                        details={"wallet_id": str(wallet.id), "provider_code": e.code}
                    ) from e
                # Already revoked or unknown to the provider: nothing left to revoke.
                logger.info(
                    "Provider rejected revoke; deleting wallet",
                    extra={"wallet_id": str(wallet.id), "error_code": e.code},
                )

        await self.wallet_repo.delete(wallet)
        logger.info(
            "Wallet disconnected",
            extra={"wallet_id": str(wallet_id), "provider": wallet.provider},
        )

    async def monthly_totals(self, user_id: UUID, month: str) -> list[tuple[Wallet, int]]:
        """Imported spend per wallet for ``month`` (``YYYY-MM``), in minor units.

        Every current wallet is listed, with 0 when nothing was imported.

        Raises:
            ValidationFailed: If month is not YYYY-MM
        """
        year, month_num = parse_month(month)
        wallets = await self.wallet_repo.get_all_by_user(user_id)
        totals = await self.expense_repo.get_wallet_totals_for_month(user_id, year, month_num)
        return [(wallet, totals.get(wallet.id, 0)) for wallet in wallets]
