import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from safeprep.models import UserSettings
from safeprep.schemas.settings import DEFAULT_USER_SETTINGS, UserSettingsUpdate

logger = logging.getLogger(__name__)


async def _find_settings(db: AsyncSession, user_id: uuid.UUID) -> UserSettings | None:
    return (await db.execute(select(UserSettings).where(UserSettings.user_id == user_id))).scalars().first()


async def get_or_create_settings(db: AsyncSession, user_id: uuid.UUID) -> UserSettings:
    row = await _find_settings(db, user_id)
    if row:
        return row

    row = UserSettings(user_id=user_id, **DEFAULT_USER_SETTINGS.model_dump())
    db.add(row)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        existing = await _find_settings(db, user_id)
        if existing is None:
            raise
        return existing
    logger.info("created default settings for %s", user_id)
    await db.refresh(row)
    return row


async def update_settings(db: AsyncSession, user_id: uuid.UUID, changes: UserSettingsUpdate) -> UserSettings:
    row = await get_or_create_settings(db, user_id)
    for field, value in changes.model_dump(exclude_none=True).items():
        setattr(row, field, value)
    await db.commit()
    await db.refresh(row)
    return row


async def reset_settings(db: AsyncSession, user_id: uuid.UUID) -> UserSettings:
    return await update_settings(db, user_id, DEFAULT_USER_SETTINGS)
