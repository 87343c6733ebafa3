"""In-process test provider.

Lets the link, review and commit flow run end to end without bank
credentials. It replays the same fixture transactions on every sync, so a
repeated import exercises deduplication.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable

from pocketledger.providers.base import (
    AggregationProvider,
    ExchangePayload,
    LinkTokenPayload,
    ProviderError,
    ProviderErrorKind,
    ProviderTransaction,
    TransactionsSyncPayload,
)

PUBLIC_TOKEN_PREFIX = "public-sandbox-"
LINK_TOKEN_TTL = timedelta(minutes=30)

# (transaction id, name, amount, days before today)
FIXTURE_TRANSACTIONS: list[tuple[str, str, str, int]] = [
    ("sandbox-txn-0001", "Spotify", "19.99", 1),
    ("sandbox-txn-0002", "Coffee Shop", "8.50", 2),
    ("sandbox-txn-0003", "Online Shopping", "120.00", 3),
]


class SandboxProvider(AggregationProvider):
    """Deterministic stand-in for a real aggregation provider.

    Public tokens look like ``public-sandbox-<institution>[-<nonce>]``. The
    institution part becomes the item id, so relinking the same institution
    yields the same item. Each public token can be exchanged once.
    """

    name = "TestProvider"

    def __init__(self, today: Callable[[], date] = date.today):
        self._today = today
        self._used_public_tokens: set[str] = set()
        self._revoked: set[str] = set()
        self._sync_count = 0

    async def create_link_token(self, user_id: str) -> LinkTokenPayload:
        return LinkTokenPayload(
            link_token=f"link-sandbox-{uuid.uuid4()}",
            expiration=datetime.now(timezone.utc) + LINK_TOKEN_TTL,
        )

    async def exchange_public_token(self, public_token: str) -> ExchangePayload:
        if not public_token.startswith(PUBLIC_TOKEN_PREFIX):
            raise ProviderError(
                "INVALID_PUBLIC_TOKEN", "malformed public token", ProviderErrorKind.INVALID
            )
        if public_token in self._used_public_tokens:
            raise ProviderError(
                "INVALID_PUBLIC_TOKEN", "public token already used", ProviderErrorKind.INVALID
            )
        self._used_public_tokens.add(public_token)

        institution = public_token[len(PUBLIC_TOKEN_PREFIX):].split("-", 1)[0] or "default"
        return ExchangePayload(
            access_token=f"access-sandbox-{uuid.uuid4()}",
            item_id=f"item-sandbox-{institution}",
        )

    async def fetch_transactions(
        self, access_credential: str, cursor: str | None = None
    ) -> TransactionsSyncPayload:
        if access_credential in self._revoked:
            raise ProviderError(
                "INVALID_ACCESS_TOKEN", "access token was revoked", ProviderErrorKind.REAUTH
            )
        self._sync_count += 1
        today = self._today()
        added = [
            ProviderTransaction(
                transaction_id=txn_id,
                amount=Decimal(amount),
                name=name,
                date=today - timedelta(days=days_ago),
            )
            for txn_id, name, amount, days_ago in FIXTURE_TRANSACTIONS
        ]
        return TransactionsSyncPayload(
            added=added,
            next_cursor=f"sandbox-cursor-{self._sync_count}",
            has_more=False,
        )

    async def describe_item(self, access_credential: str) -> str:
        return "Test Wallet"

    async def remove_item(self, access_credential: str) -> None:
        self._revoked.add(access_credential)
