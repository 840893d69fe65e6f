from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from safeprep.api.admin_auth import CurrentAdmin, require_admin
from safeprep.db.session import get_db
from safeprep.schemas.admin_settings import AdminSettingListResponse, AdminSettingOut, AdminSettingUpdateRequest
from safeprep.services.admin_settings_service import list_admin_settings, set_admin_setting, setting_out

router = APIRouter(prefix="/v1/admin/settings", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("", response_model=AdminSettingListResponse)
async def list_settings(db: AsyncSession = Depends(get_db)) -> AdminSettingListResponse:
    rows = await list_admin_settings(db)
    return AdminSettingListResponse(settings=[setting_out(row) for row in rows], total=len(rows))


@router.put("/{setting_key}", response_model=AdminSettingOut)
async def put_setting(
    setting_key: str,
    payload: AdminSettingUpdateRequest,
    admin: CurrentAdmin,
    db: AsyncSession = Depends(get_db),
) -> AdminSettingOut:
    row = await set_admin_setting(db, setting_key, payload.value, updated_by=admin.id)
    return setting_out(row)
