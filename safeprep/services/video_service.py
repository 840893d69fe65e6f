import uuid

from sqlalchemy import select
from sqlalchemy import update as sql_update
from sqlalchemy.ext.asyncio import AsyncSession

from safeprep.core.error_codes import ErrorCode
from safeprep.core.errors import ApiError
from safeprep.models import VideoTutorial
from safeprep.schemas.videos import VideoCreateRequest, VideoUpdateRequest

_TEXT_FIELDS = ("title", "description", "video_id", "duration", "category")


async def list_videos(db: AsyncSession, *, include_inactive: bool = True) -> list[VideoTutorial]:
    stmt = select(VideoTutorial).order_by(VideoTutorial.order_index.asc(), VideoTutorial.created_at.asc())
    if not include_inactive:
        stmt = stmt.where(VideoTutorial.is_active.is_(True))
    return list((await db.execute(stmt)).scalars().all())


async def get_video_or_404(db: AsyncSession, video_id: uuid.UUID) -> VideoTutorial:
    video = await db.get(VideoTutorial, video_id)
    if not video:
        raise ApiError(status_code=404, code=ErrorCode.VIDEO_NOT_FOUND, message="Video not found")
    return video


async def create_video(db: AsyncSession, payload: VideoCreateRequest) -> VideoTutorial:
    video = VideoTutorial(
        title=payload.title.strip(),
        description=payload.description.strip(),
        video_id=payload.video_id.strip(),
        duration=payload.duration.strip(),
        category=payload.category.strip() or "general",
        thumbnail_url=payload.thumbnail_url,
        hover_content=payload.hover_content,
        order_index=payload.order_index,
        is_active=True,
        views=0,
    )
    db.add(video)
    await db.commit()
    await db.refresh(video)
    return video


async def update_video(db: AsyncSession, video_id: uuid.UUID, payload: VideoUpdateRequest) -> VideoTutorial:
    video = await get_video_or_404(db, video_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if field in _TEXT_FIELDS and isinstance(value, str):
            value = value.strip()
        setattr(video, field, value)
    await db.commit()
    await db.refresh(video)
    return video


async def set_video_active(db: AsyncSession, video_id: uuid.UUID, is_active: bool) -> VideoTutorial:
    video = await get_video_or_404(db, video_id)
    video.is_active = is_active
    await db.commit()
    await db.refresh(video)
    return video


async def delete_video(db: AsyncSession, video_id: uuid.UUID) -> None:
    video = await get_video_or_404(db, video_id)
    await db.delete(video)
    await db.commit()


async def record_video_view(db: AsyncSession, video_id: uuid.UUID) -> VideoTutorial:
    video = await get_video_or_404(db, video_id)
    await db.execute(
        sql_update(VideoTutorial).where(VideoTutorial.id == video.id).values(views=VideoTutorial.views + 1)
    )
    await db.commit()
    await db.refresh(video)
    return video
