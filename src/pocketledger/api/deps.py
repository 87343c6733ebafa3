"""FastAPI dependency injection for authentication, database and services."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from pocketledger.core.crypto import CredentialCipher
from pocketledger.core.exceptions import Unauthorized
from pocketledger.core.security import get_user_id_from_token
from pocketledger.db.session import get_db
from pocketledger.providers.base import ProviderRegistry
from pocketledger.services.budget import BudgetService
from pocketledger.services.expense_import import ExpenseImportService
from pocketledger.services.link import LinkService
from pocketledger.services.settings import SettingsService
from pocketledger.services.sync import SyncService
from pocketledger.services.wallet import WalletService

# Missing credentials are reported through Unauthorized, not FastAPI's default.
security = HTTPBearer(auto_error=False)


async def get_current_user_id(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> UUID:
    """
    Extract the caller's user id from the bearer JWT.

    Runs before any handler touches the database.

    Raises:
        Unauthorized: If the token is missing, invalid, expired, or has no UUID subject
    """
    if credentials is None:
        raise Unauthorized(details={"reason": "missing_token"})
    try:
        user_id = get_user_id_from_token(credentials.credentials)
    except JWTError as e:
        raise Unauthorized(details={"reason": "invalid_token"}) from e
    except ValueError as e:
        raise Unauthorized(details={"reason": "invalid_subject"}) from e

    request.state.user_id = user_id
    return user_id


def get_providers(request: Request) -> ProviderRegistry:
    """Provider registry built at startup."""
    return request.app.state.providers


def get_cipher(request: Request) -> CredentialCipher:
    return request.app.state.cipher


async def get_link_service(
    db: AsyncSession = Depends(get_db),
    providers: ProviderRegistry = Depends(get_providers),
    cipher: CredentialCipher = Depends(get_cipher),
) -> LinkService:
    return LinkService(db, providers, cipher)


async def get_wallet_service(
    db: AsyncSession = Depends(get_db),
    providers: ProviderRegistry = Depends(get_providers),
    cipher: CredentialCipher = Depends(get_cipher),
) -> WalletService:
    return WalletService(db, providers, cipher)


async def get_sync_service(
    db: AsyncSession = Depends(get_db),
    providers: ProviderRegistry = Depends(get_providers),
    cipher: CredentialCipher = Depends(get_cipher),
) -> SyncService:
    return SyncService(db, providers, cipher)


async def get_expense_import_service(
    db: AsyncSession = Depends(get_db),
) -> ExpenseImportService:
    return ExpenseImportService(db)


async def get_budget_service(db: AsyncSession = Depends(get_db)) -> BudgetService:
    return BudgetService(db)


async def get_settings_service(db: AsyncSession = Depends(get_db)) -> SettingsService:
    return SettingsService(db)


CurrentUserId = Annotated[UUID, Depends(get_current_user_id)]
