"""Aggregation provider contract and validated payload types.

Provider responses are parsed into explicit pydantic models. A body that
does not fit the expected shape fails fast as a ``ProviderError`` with code
``MALFORMED_RESPONSE`` rather than leaking missing fields downstream.
"""

from __future__ import annotations

import abc
import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class ProviderErrorKind(str, Enum):
    """How a caller should react to a provider failure."""

    TRANSIENT = "transient"  # network, outage, rate limit: retry later
    REAUTH = "reauth"  # credential revoked or expired: user must relink
    INVALID = "invalid"  # request rejected: retrying will not help


class ProviderError(Exception):
    """Failure reported by (or while talking to) an aggregation provider."""

    def __init__(self, code: str, message: str, kind: ProviderErrorKind):
        self.code = code
        self.message = message
        self.kind = kind
        super().__init__(f"[{code}] {message}")

    @property
    def is_transient(self) -> bool:
        return self.kind is ProviderErrorKind.TRANSIENT

    @property
    def requires_reauth(self) -> bool:
        return self.kind is ProviderErrorKind.REAUTH


class ProviderErrorPayload(BaseModel):
    """Error body returned by the provider."""

    model_config = ConfigDict(extra="ignore")

    error_type: str
    error_code: str
    error_message: str = ""
    display_message: str | None = None


class LinkTokenPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    link_token: str = Field(min_length=1)
    expiration: dt.datetime | None = None


class ExchangePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(min_length=1)
    item_id: str = Field(min_length=1)


class ProviderAccount(BaseModel):
    model_config = ConfigDict(extra="ignore")

    account_id: str
    name: str
    mask: str | None = None


class AccountsPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    accounts: list[ProviderAccount] = Field(default_factory=list)


class PersonalFinanceCategory(BaseModel):
    model_config = ConfigDict(extra="ignore")

    primary: str
    detailed: str | None = None


class ProviderTransaction(BaseModel):
    """One transaction as reported by the provider.

    Positive amounts are money leaving the account.
    """

    model_config = ConfigDict(extra="ignore")

    transaction_id: str = Field(min_length=1)
    amount: Decimal
    name: str
    date: dt.date
    merchant_name: str | None = None
    iso_currency_code: str | None = None
    merchant_category_code: int | None = None
    personal_finance_category: PersonalFinanceCategory | None = None
    pending: bool = False

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_from_float(cls, value: Any) -> Any:
        # Go through str so 19.99 stays 19.99 rather than its binary expansion.
        if isinstance(value, float):
            return str(value)
        return value


class RemovedTransaction(BaseModel):
    model_config = ConfigDict(extra="ignore")

    transaction_id: str


class TransactionsSyncPayload(BaseModel):
    """One page of incremental changes."""

    model_config = ConfigDict(extra="ignore")

    added: list[ProviderTransaction] = Field(default_factory=list)
    modified: list[ProviderTransaction] = Field(default_factory=list)
    removed: list[RemovedTransaction] = Field(default_factory=list)
    next_cursor: str
    has_more: bool = False


P = TypeVar("P", bound=BaseModel)


def parse_payload(model: type[P], data: Any) -> P:
    """Validate a provider response body into ``model``."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ProviderError(
            "MALFORMED_RESPONSE",
            f"Provider response did not match {model.__name__} ({e.error_count()} errors)",
            ProviderErrorKind.INVALID,
        ) from e


class AggregationProvider(abc.ABC):
    """Account-aggregation service used for wallet linking and sync."""

    #: Name stored on Wallet.provider.
    name: str

    @abc.abstractmethod
    async def create_link_token(self, user_id: str) -> LinkTokenPayload:
        """Ask the provider for a short-lived link token scoped to the user."""

    @abc.abstractmethod
    async def exchange_public_token(self, public_token: str) -> ExchangePayload:
        """Exchange a single-use public token for a long-lived credential."""

    @abc.abstractmethod
    async def fetch_transactions(
        self, access_credential: str, cursor: str | None = None
    ) -> TransactionsSyncPayload:
        """Fetch one page of changes after ``cursor`` (from the start when None)."""

    @abc.abstractmethod
    async def remove_item(self, access_credential: str) -> None:
        """Revoke the credential with the provider."""

    async def describe_item(self, access_credential: str) -> str:
        """Display name for a newly linked item."""
        return f"{self.name} Wallet"

    async def close(self) -> None:
        """Release network resources."""


class ProviderRegistry:
    """Providers available to this process, keyed by name.

    Built once at application startup and handed to services explicitly.
    """

    def __init__(self, providers: list[AggregationProvider], default: str):
        self._providers = {p.name: p for p in providers}
        if default not in self._providers:
            raise ValueError(f"Default provider {default!r} is not configured")
        self.default = default

    def get(self, name: str | None = None) -> AggregationProvider:
        """Look up a provider by name (the default when ``name`` is None).

        Raises:
            KeyError: If no provider with that name is configured.
        """
        return self._providers[name or self.default]

    def names(self) -> list[str]:
        return sorted(self._providers)

    async def close(self) -> None:
        for provider in self._providers.values():
            await provider.close()
