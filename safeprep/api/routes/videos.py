import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from safeprep.api.deps import CurrentUser
from safeprep.db.session import get_db
from safeprep.schemas.videos import VideoListResponse, VideoOut
from safeprep.services.video_service import list_videos, record_video_view

router = APIRouter(prefix="/v1/videos", tags=["videos"])


@router.get("", response_model=VideoListResponse)
async def get_active_videos(_: CurrentUser, db: AsyncSession = Depends(get_db)) -> VideoListResponse:
    videos = await list_videos(db, include_inactive=False)
    return VideoListResponse(videos=[VideoOut.model_validate(video) for video in videos], total=len(videos))


@router.post("/{video_id}/view", response_model=VideoOut)
async def post_view(video_id: uuid.UUID, _: CurrentUser, db: AsyncSession = Depends(get_db)) -> VideoOut:
    return VideoOut.model_validate(await record_video_view(db, video_id))
