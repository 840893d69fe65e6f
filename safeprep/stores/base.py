"""Stateful view models shared by every store.

A store owns ``data``, ``loading`` and ``error`` for one view. Each ``load``
takes the next generation number; a result is applied only while its
generation is still the newest one issued and the store has not been closed,
so a slow earlier load can never overwrite a newer one.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from safeprep.core.errors import ApiError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Failures a store records instead of raising.
BACKEND_ERRORS = (ApiError, SQLAlchemyError, ValidationError)


@dataclass(frozen=True)
class Notice:
    title: str
    description: str
    variant: str = "default"


Notifier = Callable[[Notice], None]


def log_notifier(notice: Notice) -> None:
    level = logging.WARNING if notice.variant == "destructive" else logging.INFO
    logger.log(level, "%s: %s", notice.title, notice.description)


@dataclass
class MutationResult(Generic[T]):
    data: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def describe_error(exc: Exception) -> str:
    if isinstance(exc, ApiError):
        return exc.message
    if isinstance(exc, ValidationError):
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        return f"{field}: {first['msg']}" if field else first["msg"]
    return str(exc) or exc.__class__.__name__


class Store(Generic[T]):
    def __init__(self, notifier: Notifier | None = None):
        self.data: T | None = None
        self.loading = False
        self.error: str | None = None
        self._notify = notifier or log_notifier
        self._generation = 0
        self._alive = True

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def closed(self) -> bool:
        return not self._alive

    def close(self) -> None:
        self._alive = False

    def _is_current(self, generation: int) -> bool:
        return self._alive and generation == self._generation

    def notify(self, title: str, description: str, variant: str = "default") -> None:
        self._notify(Notice(title=title, description=description, variant=variant))

    def on_load_error(self, message: str) -> None:
        pass

    async def _run_load(self, fetch: Callable[[], Awaitable[T]]) -> T | None:
        self._generation += 1
        generation = self._generation
        self.loading = True
        self.error = None

        try:
            result = await fetch()
        except BACKEND_ERRORS as exc:
            if not self._is_current(generation):
                return None
            # Previous data stays in place.
            self.error = describe_error(exc)
            logger.error("%s load failed: %s", type(self).__name__, self.error)
            self.on_load_error(self.error)
            return None
        finally:
            if self._is_current(generation):
                self.loading = False

        if not self._is_current(generation):
            logger.debug("%s dropped stale load %d", type(self).__name__, generation)
            return None
        self.data = result
        return result

    def _apply(self, update: Callable[[], Any]) -> bool:
        """Apply a local state change unless the store has been closed."""
        if not self._alive:
            return False
        update()
        return True
