import logging
import uuid

from safeprep.db.session import SessionFactory
from safeprep.schemas.videos import VideoCreateRequest, VideoOut, VideoUpdateRequest
from safeprep.services import video_service
from safeprep.stores.base import BACKEND_ERRORS, MutationResult, Notifier, Store, describe_error

logger = logging.getLogger(__name__)


class VideoStore(Store[list[VideoOut]]):
    """Administrator view of every tutorial, active or not.

    After each successful mutation the local list holds exactly the row the
    database returned; a failed mutation leaves the list untouched.
    """

    def __init__(self, sessions: SessionFactory, notifier: Notifier | None = None):
        super().__init__(notifier)
        self._sessions = sessions

    @property
    def videos(self) -> list[VideoOut]:
        return self.data or []

    async def _fetch(self) -> list[VideoOut]:
        async with self._sessions() as db:
            rows = await video_service.list_videos(db, include_inactive=True)
            return [VideoOut.model_validate(row) for row in rows]

    async def load(self) -> list[VideoOut] | None:
        return await self._run_load(self._fetch)

    def on_load_error(self, message: str) -> None:
        self.notify("Error", "Failed to load videos.", variant="destructive")

    def _fail(self, action: str, exc: Exception) -> MutationResult[VideoOut]:
        message = describe_error(exc)
        logger.error("video %s failed: %s", action, message)
        self.notify("Error", f"Failed to {action} video.", variant="destructive")
        return MutationResult(error=message)

    def _replace(self, saved: VideoOut) -> None:
        self.data = [saved if video.id == saved.id else video for video in self.videos]

    async def create(self, payload: VideoCreateRequest) -> MutationResult[VideoOut]:
        try:
            async with self._sessions() as db:
                saved = VideoOut.model_validate(await video_service.create_video(db, payload))
        except BACKEND_ERRORS as exc:
            return self._fail("create", exc)

        def append() -> None:
            self.data = sorted([*self.videos, saved], key=lambda video: video.order_index)

        if self._apply(append):
            self.notify("Success", "Video created successfully.")
        return MutationResult(data=saved)

    async def update(self, video_id: uuid.UUID, payload: VideoUpdateRequest) -> MutationResult[VideoOut]:
        try:
            async with self._sessions() as db:
                saved = VideoOut.model_validate(await video_service.update_video(db, video_id, payload))
        except BACKEND_ERRORS as exc:
            return self._fail("update", exc)

        if self._apply(lambda: self._replace(saved)):
            self.notify("Success", "Video updated successfully.")
        return MutationResult(data=saved)

    async def set_active(self, video_id: uuid.UUID, is_active: bool) -> MutationResult[VideoOut]:
        try:
            async with self._sessions() as db:
                saved = VideoOut.model_validate(await video_service.set_video_active(db, video_id, is_active))
        except BACKEND_ERRORS as exc:
            return self._fail("update", exc)

        if self._apply(lambda: self._replace(saved)):
            state = "activated" if saved.is_active else "deactivated"
            self.notify("Success", f"Video {state} successfully.")
        return MutationResult(data=saved)

    async def delete(self, video_id: uuid.UUID) -> MutationResult[VideoOut]:
        try:
            async with self._sessions() as db:
                await video_service.delete_video(db, video_id)
        except BACKEND_ERRORS as exc:
            return self._fail("delete", exc)

        # Removal is by id only, so another video sharing the title stays.
        def remove() -> None:
            self.data = [video for video in self.videos if video.id != video_id]

        if self._apply(remove):
            self.notify("Success", "Video deleted successfully.")
        return MutationResult()
