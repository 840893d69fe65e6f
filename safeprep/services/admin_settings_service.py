import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from safeprep.core.error_codes import ErrorCode
from safeprep.core.errors import ApiError
from safeprep.models import AdminSetting
from safeprep.schemas.admin_settings import (
    AdminSettingOut,
    DocumentShape,
    FlagShape,
    ScalarShape,
    ThresholdShape,
    ToggleBundleShape,
)

TOGGLE_KEYS = ("weather", "emergency", "system")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def classify_setting_value(value: Any):
    """Map a stored setting document onto one of the known editor shapes.

    Documents that match no shape fall back to ``DocumentShape`` and are
    edited as opaque JSON.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return ScalarShape(value=value)
    if not isinstance(value, dict):
        return DocumentShape()

    if isinstance(value.get("enabled"), bool):
        message = value.get("message")
        frequency = value.get("frequency")
        return FlagShape(
            enabled=value["enabled"],
            message=message if isinstance(message, str) else None,
            frequency=frequency if isinstance(frequency, str) else None,
        )
    if any(key in value for key in TOGGLE_KEYS) and all(isinstance(v, bool) for v in value.values()):
        return ToggleBundleShape(toggles=dict(value))
    if _is_number(value.get("value")):
        unit = value.get("unit")
        return ThresholdShape(value=value["value"], unit=unit if isinstance(unit, str) else None)
    return DocumentShape()


def setting_out(row: AdminSetting) -> AdminSettingOut:
    return AdminSettingOut(
        id=row.id,
        setting_key=row.setting_key,
        setting_value=row.setting_value,
        setting_type=row.setting_type,
        description=row.description,
        is_public=row.is_public,
        updated_at=row.updated_at,
        shape=classify_setting_value(row.setting_value),
    )


async def list_admin_settings(db: AsyncSession, *, public_only: bool = False) -> list[AdminSetting]:
    stmt = select(AdminSetting).order_by(AdminSetting.setting_type.asc(), AdminSetting.setting_key.asc())
    if public_only:
        stmt = stmt.where(AdminSetting.is_public.is_(True))
    return list((await db.execute(stmt)).scalars().all())


async def get_admin_setting(db: AsyncSession, setting_key: str) -> AdminSetting:
    row = (await db.execute(select(AdminSetting).where(AdminSetting.setting_key == setting_key))).scalars().first()
    if not row:
        raise ApiError(status_code=404, code=ErrorCode.SETTING_NOT_FOUND, message="Setting not found")
    return row


async def set_admin_setting(
    db: AsyncSession, setting_key: str, value: Any, updated_by: uuid.UUID | None = None
) -> AdminSetting:
    row = await get_admin_setting(db, setting_key)
    row.setting_value = value
    row.updated_by = updated_by
    await db.commit()
    await db.refresh(row)
    return row
