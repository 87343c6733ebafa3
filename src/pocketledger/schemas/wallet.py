"""Pydantic schemas for wallet linking and management."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class WalletResponse(BaseModel):
    """Wallet as shown to its owner. The access credential is never included."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Wallet ID")
    provider: str = Field(description="Aggregation provider name")
    wallet_name: str = Field(description="Display name")
    needs_reconnect: bool = Field(description="True when the user must relink this wallet")
    last_synced_at: datetime | None = Field(None, description="Time of the last successful sync")
    created_at: datetime = Field(description="When the wallet was first linked")


class WalletListResponse(BaseModel):
    wallets: list[WalletResponse]


class LinkTokenRequest(BaseModel):
    provider: str | None = Field(None, description="Provider name; server default when omitted")


class LinkTokenResponse(BaseModel):
    """Short-lived token the client hands to the provider's link UI."""

    link_token: str
    expiration: datetime | None = None
    provider: str
    state: str = Field(description="Link session state")


class ExchangeRequest(BaseModel):
    """Public token returned by the provider's link UI."""

    public_token: str = Field(..., min_length=1, description="Single-use public token")
    provider: str | None = Field(None, description="Provider name; server default when omitted")
    wallet_name: str | None = Field(None, max_length=255, description="Optional display name")


class WalletRenameRequest(BaseModel):
    wallet_name: str = Field(..., min_length=1, max_length=255)


class WalletTotal(BaseModel):
    wallet_id: UUID
    wallet_name: str
    total: Decimal = Field(description="Imported spend in the month")


class WalletTotalsResponse(BaseModel):
    """Imported spend per wallet for one month."""

    month: str = Field(description="Month in YYYY-MM format")
    totals: list[WalletTotal]
