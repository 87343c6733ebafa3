"""User preference endpoints."""

from fastapi import APIRouter, Depends

from pocketledger.api.deps import CurrentUserId, get_settings_service
from pocketledger.schemas.settings import UserSettingsResponse, UserSettingsUpdateRequest
from pocketledger.services.settings import SettingsService

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=UserSettingsResponse, summary="Get user settings")
async def get_user_settings(
    user_id: CurrentUserId,
    service: SettingsService = Depends(get_settings_service),
) -> UserSettingsResponse:
    return UserSettingsResponse(active_currency=await service.get_active_currency(user_id))


@router.put(
    "",
    response_model=UserSettingsResponse,
    summary="Update user settings",
    description="""
    Set the active currency. Months without a budget report in it, and
    budgets set without an explicit currency use it.
    """,
    responses={422: {"description": "Currency is not a three-letter code"}},
)
async def update_user_settings(
    user_id: CurrentUserId,
    body: UserSettingsUpdateRequest,
    service: SettingsService = Depends(get_settings_service),
) -> UserSettingsResponse:
    code = await service.set_active_currency(user_id, body.active_currency)
    return UserSettingsResponse(active_currency=code)
