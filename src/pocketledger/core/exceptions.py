"""Custom exception classes for wallet import and budgeting.

Every exception carries an error_code that maps to the catalog in errors.py
and the HTTP status the API layer should answer with. None of them is fatal
to the process; each is scoped to the request that raised it.
"""

from typing import Any


class LedgerError(Exception):
    """Base exception for all domain errors.

    Attributes:
        error_code: Code from the error catalog (e.g., "WAL_003")
        details: Additional context about the error (for logging only)
        http_status: HTTP status code to return
    """

    default_code = "SYS_001"
    default_status = 500

    def __init__(
        self,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
        http_status: int | None = None,
    ):
        self.error_code = error_code or self.default_code
        self.details = details or {}
        self.http_status = http_status or self.default_status
        super().__init__(self.error_code)


class ProviderUnavailable(LedgerError):
    """Transient network/provider outage. Retryable; no state was mutated."""

    default_code = "WAL_001"
    default_status = 503


class ExchangeFailed(LedgerError):
    """Public token invalid, expired or already used.

    The link session is discarded; the user has to restart linking.
    """

    default_code = "WAL_002"
    default_status = 400


class SyncFailed(LedgerError):
    """Provider call during sync errored. The stored cursor is unchanged."""

    default_code = "WAL_003"
    default_status = 502


class ReauthRequired(LedgerError):
    """Provider reports the credential revoked or expired.

    The wallet is flagged for reconnection and must not be synced again
    until the user relinks it.
    """

    default_code = "WAL_004"
    default_status = 409


class WalletNotFound(LedgerError):
    """Wallet does not exist or belongs to another user."""

    default_code = "WAL_005"
    default_status = 404


class Unauthorized(LedgerError):
    """Caller identity cannot be established."""

    default_code = "AUTH_001"
    default_status = 401


class ValidationFailed(LedgerError):
    """Malformed input, e.g. an empty expense list on commit."""

    default_code = "VAL_001"
    default_status = 422
