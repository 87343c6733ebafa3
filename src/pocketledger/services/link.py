"""Wallet link flow.

Linking runs in two steps:
1. Request a short-lived link token for the provider's link UI
2. Exchange the single-use public token the UI returns for a long-lived
   credential, and store it on the user's wallet

The wallet is found or created on (user, provider, provider item id), so
relinking the same bank account updates the existing wallet instead of
adding a second one.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pocketledger.config import settings
from pocketledger.core.crypto import CredentialCipher
from pocketledger.core.exceptions import (
    ExchangeFailed,
    ProviderUnavailable,
    ValidationFailed,
)
from pocketledger.models.wallet import Wallet
from pocketledger.providers.base import AggregationProvider, ProviderError, ProviderRegistry
from pocketledger.repositories.wallet import WalletRepository

logger = logging.getLogger(__name__)

LINK_PENDING = "pending"
LINK_EXCHANGED = "exchanged"
LINK_FAILED = "failed"


@dataclass
class LinkSession:
    """An in-progress link attempt.

    Moves from ``pending`` to ``exchanged`` or ``failed`` exactly once. A
    failed session cannot be reused; the user has to request a new token.
    """

    user_id: UUID
    provider: str
    link_token: str
    expiration: datetime | None = None
    state: str = LINK_PENDING


def get_provider(providers: ProviderRegistry, name: str | None) -> AggregationProvider:
    """Resolve a provider name, rejecting ones this deployment does not offer."""
    try:
        return providers.get(name)
    except KeyError as e:
        raise ValidationFailed(
            "VAL_001", {"field": "provider", "available": providers.names()}
        ) from e


class LinkService:
    """Service for linking wallets through an aggregation provider."""

    def __init__(self, db: AsyncSession, providers: ProviderRegistry, cipher: CredentialCipher):
        self.db = db
        self.providers = providers
        self.cipher = cipher
        self.wallet_repo = WalletRepository(db)

    async def request_link_token(self, user_id: UUID, provider: str | None = None) -> LinkSession:
        """Start a link attempt.

        Raises:
            ProviderUnavailable: If the provider could not issue a token
            ValidationFailed: If the provider is unknown
        """
        client = get_provider(self.providers, provider)
        try:
            payload = await client.create_link_token(str(user_id))
        except ProviderError as e:
            logger.warning(
                "Link token request failed",
                extra={"provider": client.name, "error_code": e.code, "kind": e.kind.value},
            )
            raise ProviderUnavailable(
                details={"provider": client.name, "provider_code": e.code}
            ) from e

        logger.info("Link token issued", extra={"provider": client.name})
        return LinkSession(
            user_id=user_id,
            provider=client.name,
            link_token=payload.link_token,
            expiration=payload.expiration,
        )

    async def exchange_public_token(
        self,
        user_id: UUID,
        public_token: str,
        provider: str | None = None,
        wallet_name: str | None = None,
        session: LinkSession | None = None,
    ) -> Wallet:
        """Exchange a public token and persist the resulting wallet.

        Args:
            user_id: Owner of the wallet
            public_token: Single-use token from the provider's link UI
            provider: Provider name (defaults to the session's, then the server default)
            wallet_name: Display name; derived from the provider when omitted
            session: Link session to advance, if the caller tracks one

        Returns:
            The created or updated wallet

        Raises:
            ExchangeFailed: If the token is invalid, expired or already used
            ProviderUnavailable: If the provider could not be reached
        """
        if session is not None and session.state != LINK_PENDING:
            raise ExchangeFailed(details={"reason": "session_not_pending", "state": session.state})

        client = get_provider(self.providers, provider or (session.provider if session else None))

        try:
            payload = await client.exchange_public_token(public_token)
        except ProviderError as e:
            if session is not None:
                session.state = LINK_FAILED
            logger.warning(
                "Public token exchange failed",
                extra={"provider": client.name, "error_code": e.code, "kind": e.kind.value},
            )
            details = {"provider": client.name, "provider_code": e.code}
            if e.is_transient:
                raise ProviderUnavailable(details=details) from e
            raise ExchangeFailed(details=details) from e

        name = wallet_name or await client.describe_item(payload.access_token)
        encrypted = self.cipher.encrypt(payload.access_token)

        try:
            wallet = await self._store_wallet(
                user_id, client.name, payload.item_id, encrypted, name, wallet_name is not None
            )
        except IntegrityError:
            # A concurrent exchange inserted the same item first; update that row.
            await self.db.rollback()
            existing = await self.wallet_repo.find_by_item(user_id, client.name, payload.item_id)
            if existing is None:
                raise
            wallet = await self._relink(existing, encrypted, name, wallet_name is not None)
        except Exception as e:
            await self.db.rollback()
            if settings.debug:
                logger.exception(
                    "Failed to store linked wallet", extra={"error_type": type(e).__name__}
                )
            raise

        if session is not None:
            session.state = LINK_EXCHANGED

        logger.info(
            "Wallet linked",
            extra={"wallet_id": str(wallet.id), "provider": client.name},
        )
        return wallet

    async def _store_wallet(
        self,
        user_id: UUID,
        provider: str,
        item_id: str,
        encrypted: str,
        name: str,
        rename: bool,
    ) -> Wallet:
        existing = await self.wallet_repo.find_by_item(user_id, provider, item_id)
        if existing is not None:
            return await self._relink(existing, encrypted, name, rename)
        return await self.wallet_repo.create(
            Wallet(
                user_id=user_id,
                provider=provider,
                provider_item_id=item_id,
                access_credential=encrypted,
                wallet_name=name,
            )
        )

    async def _relink(self, wallet: Wallet, encrypted: str, name: str, rename: bool) -> Wallet:
        """Overwrite the credential of an existing wallet and clear its reconnect flag.

        The wallet keeps its user-chosen name unless a new one was given.
        """
        data = {"access_credential": encrypted, "needs_reconnect": False}
        if rename:
            data["wallet_name"] = name
        return await self.wallet_repo.update(wallet, data)
