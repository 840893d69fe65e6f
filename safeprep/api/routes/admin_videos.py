import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from safeprep.api.admin_auth import require_admin
from safeprep.db.session import get_db
from safeprep.schemas.videos import (
    VideoActiveRequest,
    VideoCreateRequest,
    VideoDeleteResponse,
    VideoListResponse,
    VideoOut,
    VideoUpdateRequest,
)
from safeprep.services.video_service import create_video, delete_video, list_videos, set_video_active, update_video

router = APIRouter(prefix="/v1/admin/videos", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("", response_model=VideoListResponse)
async def get_videos(db: AsyncSession = Depends(get_db)) -> VideoListResponse:
    videos = await list_videos(db)
    return VideoListResponse(videos=[VideoOut.model_validate(video) for video in videos], total=len(videos))


@router.post("", response_model=VideoOut, status_code=status.HTTP_201_CREATED)
async def post_video(payload: VideoCreateRequest, db: AsyncSession = Depends(get_db)) -> VideoOut:
    return VideoOut.model_validate(await create_video(db, payload))


@router.patch("/{video_id}", response_model=VideoOut)
async def patch_video(video_id: uuid.UUID, payload: VideoUpdateRequest, db: AsyncSession = Depends(get_db)) -> VideoOut:
    return VideoOut.model_validate(await update_video(db, video_id, payload))


@router.patch("/{video_id}/active", response_model=VideoOut)
async def patch_video_active(
    video_id: uuid.UUID, payload: VideoActiveRequest, db: AsyncSession = Depends(get_db)
) -> VideoOut:
    return VideoOut.model_validate(await set_video_active(db, video_id, payload.is_active))


@router.delete("/{video_id}", response_model=VideoDeleteResponse)
async def remove_video(video_id: uuid.UUID, db: AsyncSession = Depends(get_db)) -> VideoDeleteResponse:
    await delete_video(db, video_id)
    return VideoDeleteResponse(deleted=True)
