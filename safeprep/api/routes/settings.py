from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from safeprep.api.deps import CurrentUser
from safeprep.db.session import get_db
from safeprep.schemas.admin_settings import AdminSettingListResponse
from safeprep.schemas.settings import UserSettingsOut, UserSettingsUpdate
from safeprep.services.admin_settings_service import list_admin_settings, setting_out
from safeprep.services.user_settings_service import get_or_create_settings, reset_settings, update_settings

router = APIRouter(prefix="/v1/settings", tags=["settings"])


@router.get("", response_model=UserSettingsOut)
async def get_settings_for_user(current_user: CurrentUser, db: AsyncSession = Depends(get_db)) -> UserSettingsOut:
    row = await get_or_create_settings(db, current_user.id)
    return UserSettingsOut.model_validate(row)


@router.patch("", response_model=UserSettingsOut)
async def patch_settings(
    payload: UserSettingsUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> UserSettingsOut:
    row = await update_settings(db, current_user.id, payload)
    return UserSettingsOut.model_validate(row)


@router.post("/reset", response_model=UserSettingsOut)
async def post_reset(current_user: CurrentUser, db: AsyncSession = Depends(get_db)) -> UserSettingsOut:
    row = await reset_settings(db, current_user.id)
    return UserSettingsOut.model_validate(row)


@router.get("/public", response_model=AdminSettingListResponse)
async def get_public_settings(db: AsyncSession = Depends(get_db)) -> AdminSettingListResponse:
    rows = await list_admin_settings(db, public_only=True)
    return AdminSettingListResponse(settings=[setting_out(row) for row in rows], total=len(rows))
