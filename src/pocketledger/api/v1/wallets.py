"""Wallet linking, sync and import endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from pocketledger.api.deps import (
    CurrentUserId,
    get_expense_import_service,
    get_link_service,
    get_sync_service,
    get_wallet_service,
)
from pocketledger.core.money import from_minor_units
from pocketledger.schemas.expense import (
    CommitRequest,
    CommitResponse,
    ReviewResponse,
    SyncResponse,
)
from pocketledger.schemas.wallet import (
    ExchangeRequest,
    LinkTokenRequest,
    LinkTokenResponse,
    WalletListResponse,
    WalletRenameRequest,
    WalletResponse,
    WalletTotal,
    WalletTotalsResponse,
)
from pocketledger.services.expense_import import ExpenseImportService
from pocketledger.services.link import LinkService
from pocketledger.services.sync import SyncService
from pocketledger.services.wallet import WalletService

router = APIRouter(prefix="/wallets", tags=["wallets"])


@router.get(
    "",
    response_model=WalletListResponse,
    summary="List linked wallets",
)
async def list_wallets(
    user_id: CurrentUserId,
    service: WalletService = Depends(get_wallet_service),
) -> WalletListResponse:
    wallets = await service.list_wallets(user_id)
    return WalletListResponse(wallets=[WalletResponse.model_validate(w) for w in wallets])


@router.get(
    "/totals",
    response_model=WalletTotalsResponse,
    summary="Imported spend per wallet",
    description="""
    Sum of expenses imported from each wallet during a month.

    Wallets with nothing imported are listed with a total of 0.
    """,
    responses={422: {"description": "Month is not YYYY-MM"}},
)
async def wallet_totals(
    user_id: CurrentUserId,
    month: str = Query(..., description="Month in YYYY-MM format"),
    service: WalletService = Depends(get_wallet_service),
) -> WalletTotalsResponse:
    rows = await service.monthly_totals(user_id, month)
    return WalletTotalsResponse(
        month=month,
        totals=[
            WalletTotal(wallet_id=w.id, wallet_name=w.wallet_name, total=from_minor_units(total))
            for w, total in rows
        ],
    )


@router.post(
    "/link-token",
    response_model=LinkTokenResponse,
    summary="Start linking a wallet",
    description="""
    Issue a short-lived link token for the provider's link UI.

    The UI returns a single-use public token, which is then sent to
    `POST /wallets/exchange`.
    """,
    responses={503: {"description": "Provider unavailable"}},
)
async def create_link_token(
    user_id: CurrentUserId,
    body: LinkTokenRequest | None = None,
    service: LinkService = Depends(get_link_service),
) -> LinkTokenResponse:
    session = await service.request_link_token(user_id, body.provider if body else None)
    return LinkTokenResponse(
        link_token=session.link_token,
        expiration=session.expiration,
        provider=session.provider,
        state=session.state,
    )


@router.post(
    "/exchange",
    response_model=WalletResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Finish linking a wallet",
    description="""
    Exchange the public token from the link UI for a stored credential.

    Relinking an account that is already connected updates that wallet
    instead of creating a new one.
    """,
    responses={
        400: {"description": "Public token rejected"},
        503: {"description": "Provider unavailable"},
    },
)
async def exchange_public_token(
    user_id: CurrentUserId,
    body: ExchangeRequest,
    service: LinkService = Depends(get_link_service),
) -> WalletResponse:
    wallet = await service.exchange_public_token(
        user_id, body.public_token, provider=body.provider, wallet_name=body.wallet_name
    )
    return WalletResponse.model_validate(wallet)


@router.patch(
    "/{wallet_id}",
    response_model=WalletResponse,
    summary="Rename a wallet",
    responses={404: {"description": "Wallet not found"}},
)
async def rename_wallet(
    user_id: CurrentUserId,
    wallet_id: UUID,
    body: WalletRenameRequest,
    service: WalletService = Depends(get_wallet_service),
) -> WalletResponse:
    wallet = await service.rename(user_id, wallet_id, body.wallet_name)
    return WalletResponse.model_validate(wallet)


@router.delete(
    "/{wallet_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Disconnect a wallet",
    description="""
    Revoke the wallet's access with its provider and delete it.

    Expenses already imported from the wallet are kept.
    """,
    responses={
        404: {"description": "Wallet not found"},
        503: {"description": "Provider unavailable; wallet kept"},
    },
)
async def disconnect_wallet(
    user_id: CurrentUserId,
    wallet_id: UUID,
    service: WalletService = Depends(get_wallet_service),
) -> None:
    await service.disconnect(user_id, wallet_id)


@router.post(
    "/{wallet_id}/sync",
    response_model=SyncResponse,
    summary="Sync wallet transactions",
    responses={
        404: {"description": "Wallet not found"},
        409: {"description": "Wallet must be reconnected"},
        502: {"description": "Provider sync failed"},
    },
)
async def sync_wallet(
    user_id: CurrentUserId,
    wallet_id: UUID,
    service: SyncService = Depends(get_sync_service),
) -> SyncResponse:
    result = await service.sync(user_id, wallet_id)
    return SyncResponse(wallet_id=result.wallet_id, added=result.added, removed=result.removed)


@router.post(
    "/{wallet_id}/review",
    response_model=ReviewResponse,
    summary="Fetch transactions for review",
    description="""
    Sync the wallet and return the staged transactions for the review
    screen. Nothing is saved as an expense until the reviewed list is
    committed.
    """,
    responses={
        404: {"description": "Wallet not found"},
        409: {"description": "Wallet must be reconnected"},
        502: {"description": "Provider sync failed"},
    },
)
async def review_wallet_transactions(
    user_id: CurrentUserId,
    wallet_id: UUID,
    service: SyncService = Depends(get_sync_service),
) -> ReviewResponse:
    staged = await service.list_for_review(user_id, wallet_id)
    return ReviewResponse(transactions=staged)


@router.post(
    "/{wallet_id}/expenses",
    response_model=CommitResponse,
    summary="Save reviewed transactions as expenses",
    description="""
    Commit reviewed transactions. Transactions already imported (matched
    by provider transaction id) are skipped, so committing the same list
    twice inserts nothing the second time.
    """,
    responses={
        404: {"description": "Wallet not found"},
        422: {"description": "Empty list or invalid transaction"},
    },
)
async def commit_expenses(
    user_id: CurrentUserId,
    wallet_id: UUID,
    body: CommitRequest,
    service: ExpenseImportService = Depends(get_expense_import_service),
) -> CommitResponse:
    result = await service.commit(user_id, wallet_id, body.expenses)
    return CommitResponse(inserted=result.inserted, skipped=result.skipped)
