"""Current identity, session and role for one client."""

import logging
import uuid
from dataclasses import dataclass

from safeprep.db.session import SessionFactory
from safeprep.schemas.auth import AuthResponse, Role, StandardRole, UserOut
from safeprep.services import auth_service
from safeprep.stores.base import BACKEND_ERRORS, Notice, Notifier, describe_error, log_notifier

logger = logging.getLogger(__name__)


@dataclass
class AuthOutcome:
    ok: bool
    error: str | None = None


class SessionStore:
    """Tracks who is signed in and whether they are an administrator.

    ``role`` is resolved again after every sign-in, sign-up and restore.
    Each role lookup carries the session generation it was started under,
    so a lookup that finishes after ``sign_out`` leaves the role standard.
    """

    def __init__(self, sessions: SessionFactory, notifier: Notifier | None = None):
        self._sessions = sessions
        self._notify = notifier or log_notifier
        self.user: UserOut | None = None
        self.access_token: str | None = None
        self.role: Role = StandardRole()
        self.loading = False
        self._generation = 0

    @property
    def is_admin(self) -> bool:
        return self.role.is_admin

    @property
    def is_student(self) -> bool:
        return self.role.is_student

    @property
    def user_id(self) -> uuid.UUID | None:
        return uuid.UUID(self.user.id) if self.user else None

    def _toast(self, title: str, description: str, variant: str = "default") -> None:
        self._notify(Notice(title=title, description=description, variant=variant))

    def _adopt(self, response: AuthResponse) -> None:
        self._generation += 1
        self.user = response.user
        self.access_token = response.access_token
        self.role = response.role

    async def sign_up(self, email: str, password: str, display_name: str | None = None) -> AuthOutcome:
        self.loading = True
        try:
            async with self._sessions() as db:
                response = await auth_service.sign_up(db, email, password, display_name)
        except BACKEND_ERRORS as exc:
            message = describe_error(exc)
            logger.warning("sign-up failed for %s: %s", email, message)
            self._toast("Sign Up Failed", message, variant="destructive")
            return AuthOutcome(ok=False, error=message)
        finally:
            self.loading = False

        self._adopt(response)
        self._toast("Welcome!", "Your account has been created.")
        return AuthOutcome(ok=True)

    async def sign_in(self, email: str, password: str) -> AuthOutcome:
        self.loading = True
        try:
            async with self._sessions() as db:
                response = await auth_service.sign_in(db, email, password)
        except BACKEND_ERRORS as exc:
            message = describe_error(exc)
            logger.warning("sign-in failed for %s: %s", email, message)
            self._toast("Sign In Failed", message, variant="destructive")
            return AuthOutcome(ok=False, error=message)
        finally:
            self.loading = False

        self._adopt(response)
        self._toast("Welcome back!", "You have been signed in.")
        return AuthOutcome(ok=True)

    async def restore(self, access_token: str) -> bool:
        """Re-attach to an existing session token, as on application start."""
        self.loading = True
        try:
            async with self._sessions() as db:
                identity = await auth_service.authenticate(db, access_token)
                role = await auth_service.resolve_role(db, identity.user.id)
        except BACKEND_ERRORS as exc:
            logger.info("session restore failed: %s", describe_error(exc))
            self._clear()
            return False
        finally:
            self.loading = False

        self._generation += 1
        self.user = auth_service.user_out(identity.user)
        self.access_token = access_token
        self.role = role
        return True

    async def refresh_role(self) -> Role:
        if self.user is None:
            self.role = StandardRole()
            return self.role

        generation = self._generation
        user_id = self.user_id
        try:
            async with self._sessions() as db:
                role = await auth_service.resolve_role(db, user_id)
        except BACKEND_ERRORS as exc:
            logger.error("role lookup failed for %s: %s", user_id, describe_error(exc))
            role = StandardRole()

        if generation == self._generation and self.user is not None:
            self.role = role
        return self.role

    def _clear(self) -> None:
        self._generation += 1
        self.user = None
        self.access_token = None
        self.role = StandardRole()

    async def sign_out(self) -> AuthOutcome:
        token = self.access_token
        self._clear()
        if token is None:
            return AuthOutcome(ok=True)

        try:
            async with self._sessions() as db:
                await auth_service.sign_out(db, token)
        except BACKEND_ERRORS as exc:
            message = describe_error(exc)
            logger.error("sign-out failed: %s", message)
            self._toast("Error", message, variant="destructive")
            return AuthOutcome(ok=False, error=message)

        self._toast("Signed out", "You have been signed out successfully.")
        return AuthOutcome(ok=True)
