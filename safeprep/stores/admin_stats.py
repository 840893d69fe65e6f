from safeprep.db.session import SessionFactory
from safeprep.schemas.admin import AdminData
from safeprep.services.admin_stats_service import load_admin_stats
from safeprep.stores.base import Notifier, Store


class AdminStatsStore(Store[AdminData]):
    def __init__(self, sessions: SessionFactory, notifier: Notifier | None = None):
        super().__init__(notifier)
        self._sessions = sessions

    async def load(self) -> AdminData | None:
        return await self._run_load(lambda: load_admin_stats(self._sessions))

    def on_load_error(self, message: str) -> None:
        self.notify("Error", "Failed to load admin data. Please try again.", variant="destructive")
