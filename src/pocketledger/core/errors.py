"""Error codes and user-friendly messages.

This module defines the error catalog for wallet linking, transaction import
and budget queries. Each error has:
- code: Unique identifier
- message: Technical description (for logs)
- user_message: User-friendly explanation
- suggestion: Actionable guidance for the user
- retry_allowed: Whether the error is retryable
"""

ERROR_CATALOG: dict[str, dict] = {
    "WAL_001": {
        "code": "WAL_001",
        "message": "Aggregation provider unavailable",
        "user_message": "We couldn't reach your bank connection service right now.",
        "suggestion": "Please try again in a few moments.",
        "retry_allowed": True,
    },
    "WAL_002": {
        "code": "WAL_002",
        "message": "Public token exchange rejected by provider",
        "user_message": "We couldn't finish connecting your wallet.",
        "suggestion": "Please restart the connection and complete the bank sign-in again.",
        "retry_allowed": False,
    },
    "WAL_003": {
        "code": "WAL_003",
        "message": "Transaction sync failed",
        "user_message": "We couldn't fetch new transactions from your bank.",
        "suggestion": "Please try again. Nothing was lost; the next sync picks up where this one stopped.",
        "retry_allowed": True,
    },
    "WAL_004": {
        "code": "WAL_004",
        "message": "Provider credential revoked or expired",
        "user_message": "Your bank connection needs to be renewed.",
        "suggestion": "Reconnect this wallet to resume importing transactions.",
        "retry_allowed": False,
    },
    "WAL_005": {
        "code": "WAL_005",
        "message": "Wallet not found",
        "user_message": "We couldn't find this wallet.",
        "suggestion": "Please refresh your wallet list and try again.",
        "retry_allowed": False,
    },
    "AUTH_001": {
        "code": "AUTH_001",
        "message": "Caller identity could not be established",
        "user_message": "You need to be signed in to do that.",
        "suggestion": "Please sign in again.",
        "retry_allowed": False,
    },
    "VAL_001": {
        "code": "VAL_001",
        "message": "Request data failed validation",
        "user_message": "Some of the information provided is missing or invalid.",
        "suggestion": "Please check your input and try again.",
        "retry_allowed": False,
    },
    "DB_001": {
        "code": "DB_001",
        "message": "Database operation failed",
        "user_message": "A database error occurred.",
        "suggestion": "Please try again later.",
        "retry_allowed": True,
    },
    "DB_002": {
        "code": "DB_002",
        "message": "Resource already exists",
        "user_message": "This record already exists.",
        "suggestion": "Please check if the record was already created.",
        "retry_allowed": False,
    },
    "SYS_001": {
        "code": "SYS_001",
        "message": "Internal server error",
        "user_message": "An unexpected error occurred.",
        "suggestion": "Please try again later or contact support.",
        "retry_allowed": True,
    },
}


def get_error(error_code: str) -> dict:
    """Get error definition by code.

    Args:
        error_code: Error code from the catalog

    Returns:
        Dict with error details. Unknown codes get a generic definition.
    """
    if error_code not in ERROR_CATALOG:
        return {
            "code": "UNKNOWN",
            "message": f"Unknown error code: {error_code}",
            "user_message": "An unexpected error occurred.",
            "suggestion": "Please try again. Contact support if the problem persists.",
            "retry_allowed": True,
        }
    return ERROR_CATALOG[error_code]


def get_user_message(error_code: str) -> str:
    """Get user-friendly message for an error code."""
    return get_error(error_code)["user_message"]


def is_retryable(error_code: str) -> bool:
    """Check if an error is retryable."""
    return get_error(error_code)["retry_allowed"]
