import logging
import uuid

from safeprep.db.session import SessionFactory
from safeprep.schemas.dashboard import DashboardData
from safeprep.services import dashboard_service
from safeprep.stores.base import BACKEND_ERRORS, MutationResult, Notifier, Store, describe_error

logger = logging.getLogger(__name__)


class DashboardStore(Store[DashboardData]):
    """Dashboard view model for one identity.

    Mutators write, then reload everything; nothing is patched in place.
    """

    def __init__(self, sessions: SessionFactory, user_id: uuid.UUID, notifier: Notifier | None = None):
        super().__init__(notifier)
        self._sessions = sessions
        self.user_id = user_id

    async def load(self) -> DashboardData | None:
        return await self._run_load(lambda: dashboard_service.load_dashboard(self._sessions, self.user_id))

    refetch = load

    async def update_module_progress(self, module_id: uuid.UUID, progress: int) -> MutationResult:
        try:
            async with self._sessions() as db:
                row = await dashboard_service.update_module_progress(db, self.user_id, module_id, progress)
        except BACKEND_ERRORS as exc:
            logger.error("updating module progress failed: %s", exc)
            return MutationResult(error=describe_error(exc))

        await self.load()
        return MutationResult(data=row)

    async def complete_game(self, game_id: uuid.UUID, score: int) -> MutationResult:
        try:
            async with self._sessions() as db:
                row = await dashboard_service.complete_game(db, self.user_id, game_id, score)
        except BACKEND_ERRORS as exc:
            logger.error("completing game failed: %s", exc)
            return MutationResult(error=describe_error(exc))

        await self.load()
        return MutationResult(data=row)

    @property
    def learning_modules(self):
        return self.data.learning_modules if self.data else []

    @property
    def safety_games(self):
        return self.data.safety_games if self.data else []

    @property
    def user_progress(self):
        return self.data.progress if self.data else None
