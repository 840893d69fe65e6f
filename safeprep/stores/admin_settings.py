import copy
import logging
import uuid
from itertools import groupby
from typing import Any

from safeprep.db.session import SessionFactory
from safeprep.schemas.admin_settings import AdminSettingOut
from safeprep.services import admin_settings_service
from safeprep.stores.base import BACKEND_ERRORS, MutationResult, Notifier, Store, describe_error

logger = logging.getLogger(__name__)


class AdminSettingsStore(Store[list[AdminSettingOut]]):
    """Editor state for system-wide settings.

    Edits are staged per key in ``pending`` and written only by ``save``.
    A staged value is dropped once its save succeeds and kept on failure.
    """

    def __init__(self, sessions: SessionFactory, updated_by: uuid.UUID | None = None, notifier: Notifier | None = None):
        super().__init__(notifier)
        self._sessions = sessions
        self.updated_by = updated_by
        self.pending: dict[str, Any] = {}

    @property
    def settings(self) -> list[AdminSettingOut]:
        return self.data or []

    async def _fetch(self) -> list[AdminSettingOut]:
        async with self._sessions() as db:
            rows = await admin_settings_service.list_admin_settings(db)
            return [admin_settings_service.setting_out(row) for row in rows]

    async def load(self) -> list[AdminSettingOut] | None:
        return await self._run_load(self._fetch)

    def on_load_error(self, message: str) -> None:
        self.notify("Error", "Failed to load admin settings.", variant="destructive")

    def _stored(self, key: str) -> AdminSettingOut | None:
        for setting in self.settings:
            if setting.setting_key == key:
                return setting
        return None

    def current_value(self, key: str) -> Any:
        if key in self.pending:
            return self.pending[key]
        stored = self._stored(key)
        return stored.setting_value if stored else None

    def stage(self, key: str, value: Any) -> None:
        self.pending[key] = value

    def stage_field(self, key: str, field: str, value: Any) -> None:
        """Stage one field of a document-valued setting, keeping its other fields."""
        base = self.current_value(key)
        document = copy.deepcopy(base) if isinstance(base, dict) else {}
        document[field] = value
        self.pending[key] = document

    def has_unsaved_changes(self, key: str | None = None) -> bool:
        if key is None:
            return bool(self.pending)
        return key in self.pending

    def discard(self, key: str | None = None) -> None:
        if key is None:
            self.pending.clear()
        else:
            self.pending.pop(key, None)

    async def save(self, key: str) -> MutationResult[AdminSettingOut]:
        value = self.current_value(key)
        try:
            async with self._sessions() as db:
                row = await admin_settings_service.set_admin_setting(db, key, value, updated_by=self.updated_by)
                saved = admin_settings_service.setting_out(row)
        except BACKEND_ERRORS as exc:
            message = describe_error(exc)
            logger.error("saving setting %s failed: %s", key, message)
            self.notify("Error", f"Failed to update {key}.", variant="destructive")
            return MutationResult(error=message)

        def adopt() -> None:
            self.data = [saved if setting.setting_key == key else setting for setting in self.settings]
            self.pending.pop(key, None)

        if self._apply(adopt):
            self.notify("Success", f"{key} updated successfully.")
        return MutationResult(data=saved)

    def grouped(self) -> dict[str, list[AdminSettingOut]]:
        ordered = sorted(self.settings, key=lambda setting: (setting.setting_type, setting.setting_key))
        return {kind: list(items) for kind, items in groupby(ordered, key=lambda setting: setting.setting_type)}
