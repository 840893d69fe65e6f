import logging
import uuid

from safeprep.db.session import SessionFactory
from safeprep.schemas.settings import DEFAULT_USER_SETTINGS, UserSettingsOut, UserSettingsUpdate
from safeprep.services import user_settings_service
from safeprep.stores.base import BACKEND_ERRORS, MutationResult, Notifier, Store, describe_error

logger = logging.getLogger(__name__)


class UserSettingsStore(Store[UserSettingsOut]):
    def __init__(self, sessions: SessionFactory, user_id: uuid.UUID, notifier: Notifier | None = None):
        super().__init__(notifier)
        self._sessions = sessions
        self.user_id = user_id

    async def _fetch(self) -> UserSettingsOut:
        async with self._sessions() as db:
            row = await user_settings_service.get_or_create_settings(db, self.user_id)
            return UserSettingsOut.model_validate(row)

    async def load(self) -> UserSettingsOut | None:
        return await self._run_load(self._fetch)

    refetch = load

    async def update(self, changes: UserSettingsUpdate | dict) -> MutationResult[UserSettingsOut] | None:
        """Persist a partial change and adopt the row the database returns.

        Returns ``None`` without writing when nothing has been loaded yet.
        """
        if self.data is None:
            return None
        try:
            if isinstance(changes, dict):
                changes = UserSettingsUpdate(**changes)
            async with self._sessions() as db:
                row = await user_settings_service.update_settings(db, self.user_id, changes)
                saved = UserSettingsOut.model_validate(row)
        except BACKEND_ERRORS as exc:
            message = describe_error(exc)
            logger.error("updating settings failed: %s", message)
            self.error = message
            self.notify("Error", "Failed to update settings. Please try again.", variant="destructive")
            return MutationResult(error=message)

        if self._apply(lambda: setattr(self, "data", saved)):
            self.notify("Settings Updated", "Your preferences have been saved successfully.")
        return MutationResult(data=saved)

    async def reset_to_defaults(self) -> MutationResult[UserSettingsOut] | None:
        return await self.update(DEFAULT_USER_SETTINGS)
