"""Plaid aggregation provider over Plaid's REST API.

Endpoints used:
  /link/token/create           start the Link flow
  /item/public_token/exchange  public_token -> access_token + item_id
  /transactions/sync           cursor-based incremental changes
  /item/remove                 revoke an access_token
  /accounts/get                account name and mask for the wallet label
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from pocketledger.providers.base import (
    AccountsPayload,
    AggregationProvider,
    ExchangePayload,
    LinkTokenPayload,
    ProviderError,
    ProviderErrorKind,
    ProviderErrorPayload,
    TransactionsSyncPayload,
    parse_payload,
)

logger = logging.getLogger(__name__)

PLAID_ENVIRONMENTS = {
    "sandbox": "https://sandbox.plaid.com",
    "development": "https://development.plaid.com",
    "production": "https://production.plaid.com",
}

# Plaid error_type values that indicate a temporary condition.
_TRANSIENT_ERROR_TYPES = {"RATE_LIMIT_EXCEEDED", "API_ERROR", "INSTITUTION_ERROR"}
# Plaid error_code values meaning the access_token no longer works.
_REAUTH_ERROR_CODES = {
    "ITEM_LOGIN_REQUIRED",
    "INVALID_ACCESS_TOKEN",
    "ACCESS_NOT_GRANTED",
    "ITEM_NOT_FOUND",
    "USER_PERMISSION_REVOKED",
}

SYNC_PAGE_SIZE = 100


def classify_plaid_error(error: ProviderErrorPayload) -> ProviderErrorKind:
    """Map a Plaid error body to how the caller should react."""
    if error.error_type in _TRANSIENT_ERROR_TYPES:
        return ProviderErrorKind.TRANSIENT
    if error.error_code in _REAUTH_ERROR_CODES:
        return ProviderErrorKind.REAUTH
    return ProviderErrorKind.INVALID


class PlaidProvider(AggregationProvider):
    """Plaid client for the link, exchange, sync and remove calls."""

    name = "Plaid"

    def __init__(
        self,
        client_id: str,
        secret: str,
        *,
        environment: str = "sandbox",
        client_name: str = "Pocket Ledger",
        country_codes: list[str] | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if environment not in PLAID_ENVIRONMENTS:
            raise ValueError(f"Unknown Plaid environment: {environment}")
        self.client_id = client_id
        self.secret = secret
        self.environment = environment
        self.client_name = client_name
        self.country_codes = country_codes or ["US"]
        self._http = httpx.AsyncClient(
            base_url=PLAID_ENVIRONMENTS[environment],
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def close(self) -> None:
        if not self._http.is_closed:
            await self._http.aclose()

    async def create_link_token(self, user_id: str) -> LinkTokenPayload:
        data = await self._api_post(
            "/link/token/create",
            {
                "user": {"client_user_id": user_id},
                "client_name": self.client_name,
                "products": ["transactions"],
                "country_codes": self.country_codes,
                "language": "en",
            },
        )
        return parse_payload(LinkTokenPayload, data)

    async def exchange_public_token(self, public_token: str) -> ExchangePayload:
        data = await self._api_post(
            "/item/public_token/exchange", {"public_token": public_token}
        )
        return parse_payload(ExchangePayload, data)

    async def fetch_transactions(
        self, access_credential: str, cursor: str | None = None
    ) -> TransactionsSyncPayload:
        payload: dict[str, Any] = {
            "access_token": access_credential,
            "count": SYNC_PAGE_SIZE,
            "options": {"include_personal_finance_category": True},
        }
        # Omit the cursor entirely on the first sync.
        if cursor:
            payload["cursor"] = cursor
        data = await self._api_post("/transactions/sync", payload)
        return parse_payload(TransactionsSyncPayload, data)

    async def remove_item(self, access_credential: str) -> None:
        await self._api_post("/item/remove", {"access_token": access_credential})

    async def describe_item(self, access_credential: str) -> str:
        """Label the wallet "<account name> (<mask>)" from the first account."""
        try:
            data = await self._api_post("/accounts/get", {"access_token": access_credential})
            accounts = parse_payload(AccountsPayload, data).accounts
        except ProviderError as e:
            logger.warning(
                "Could not fetch account details for wallet name",
                extra={"error_code": e.code},
            )
            return await super().describe_item(access_credential)
        if not accounts:
            return await super().describe_item(access_credential)
        account = accounts[0]
        return f"{account.name} ({account.mask})" if account.mask else account.name

    async def _api_post(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Make an authenticated POST request to the Plaid API.

        Raises:
            ProviderError: On transport failures, error bodies, or non-JSON bodies.
        """
        body = {"client_id": self.client_id, "secret": self.secret, **payload}

        try:
            resp = await self._http.post(endpoint, json=body)
        except httpx.TimeoutException as e:
            raise ProviderError(
                "TIMEOUT", f"Plaid {endpoint} timed out", ProviderErrorKind.TRANSIENT
            ) from e
        except httpx.TransportError as e:
            raise ProviderError(
                "NETWORK_ERROR",
                f"Plaid {endpoint} unreachable ({type(e).__name__})",
                ProviderErrorKind.TRANSIENT,
            ) from e

        try:
            data = resp.json()
        except ValueError as e:
            kind = (
                ProviderErrorKind.TRANSIENT
                if resp.status_code >= 500
                else ProviderErrorKind.INVALID
            )
            raise ProviderError(
                "MALFORMED_RESPONSE",
                f"Plaid {endpoint} returned a non-JSON body (HTTP {resp.status_code})",
                kind,
            ) from e

        # Plaid returns errors as 4xx/5xx with a JSON error body.
        if resp.status_code >= 400:
            try:
                error = parse_payload(ProviderErrorPayload, data)
            except ProviderError as e:
                # JSON from a gateway or proxy rather than Plaid itself.
                if resp.status_code < 500:
                    raise
                raise ProviderError(
                    e.code,
                    f"Plaid {endpoint} returned HTTP {resp.status_code} without an error body",
                    ProviderErrorKind.TRANSIENT,
                ) from e
            kind = classify_plaid_error(error)
            logger.warning(
                "Plaid API error",
                extra={
                    "endpoint": endpoint,
                    "status_code": resp.status_code,
                    "error_code": error.error_code,
                    "error_type": error.error_type,
                },
            )
            raise ProviderError(error.error_code, error.error_message, kind)

        return data
