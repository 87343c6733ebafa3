"""Monthly budget endpoints."""

from fastapi import APIRouter, Depends

from pocketledger.api.deps import CurrentUserId, get_budget_service
from pocketledger.core.money import to_minor_units
from pocketledger.schemas.budget import BudgetStatus, BudgetUpdateRequest
from pocketledger.services.budget import BudgetService

router = APIRouter(prefix="/budget", tags=["budget"])


@router.get(
    "/{month}",
    response_model=BudgetStatus,
    summary="Budget status for a month",
    description="""
    Budget, spend, remaining and percent used for a month.

    Expenses in other currencies are converted with stored exchange
    rates. Remaining never goes below zero.
    """,
    responses={422: {"description": "Month is not YYYY-MM"}},
)
async def get_budget_status(
    user_id: CurrentUserId,
    month: str,
    service: BudgetService = Depends(get_budget_service),
) -> BudgetStatus:
    return await service.get_budget_status(user_id, month)


@router.put(
    "/{month}",
    response_model=BudgetStatus,
    summary="Set the budget for a month",
    responses={422: {"description": "Invalid month or amount"}},
)
async def set_budget(
    user_id: CurrentUserId,
    month: str,
    body: BudgetUpdateRequest,
    service: BudgetService = Depends(get_budget_service),
) -> BudgetStatus:
    await service.set_budget(user_id, month, to_minor_units(body.amount), body.currency)
    return await service.get_budget_status(user_id, month)
