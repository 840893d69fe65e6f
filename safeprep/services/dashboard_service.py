"""Catalog + progress aggregation for the identity-facing dashboard.

``load_dashboard`` issues every independent read concurrently, each in its own
session, and merges per-identity progress onto the catalog rows. Mutations
write a single row and roll the identity's progress record forward; callers
reload afterwards instead of patching a previous result.
"""

import logging
import uuid
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from safeprep.core.config import get_settings
from safeprep.core.error_codes import ErrorCode
from safeprep.core.errors import ApiError
from safeprep.core.security import now_utc
from safeprep.db.session import SessionFactory, gather_reads
from safeprep.models import (
    Achievement,
    LearningModule,
    SafetyAlert,
    SafetyGame,
    UserAchievement,
    UserGameScore,
    UserModuleProgress,
    UserProgress,
    VideoTutorial,
)
from safeprep.schemas.dashboard import (
    AlertOut,
    DashboardData,
    EarnedAchievement,
    GameView,
    ModuleView,
    ProgressOut,
    XpSummary,
)
from safeprep.schemas.videos import VideoOut

logger = logging.getLogger(__name__)

COMPLETION_THRESHOLD = 100
UPSERT_ATTEMPTS = 2

T = TypeVar("T")


async def get_or_create_progress(db: AsyncSession, user_id: uuid.UUID) -> UserProgress:
    row = (await db.execute(select(UserProgress).where(UserProgress.user_id == user_id))).scalars().first()
    if row:
        return row

    row = UserProgress(user_id=user_id)
    db.add(row)
    try:
        await db.commit()
    except IntegrityError:
        # A concurrent load created it first.
        await db.rollback()
        return (await db.execute(select(UserProgress).where(UserProgress.user_id == user_id))).scalars().one()
    logger.info("created default progress record for %s", user_id)
    return row


async def _active_modules(db: AsyncSession) -> list[LearningModule]:
    stmt = select(LearningModule).where(LearningModule.is_active.is_(True)).order_by(LearningModule.order_index.asc())
    return list((await db.execute(stmt)).scalars().all())


async def _module_progress_rows(db: AsyncSession, user_id: uuid.UUID) -> list[UserModuleProgress]:
    stmt = select(UserModuleProgress).where(UserModuleProgress.user_id == user_id)
    return list((await db.execute(stmt)).scalars().all())


async def _active_games(db: AsyncSession) -> list[SafetyGame]:
    stmt = select(SafetyGame).where(SafetyGame.is_active.is_(True)).order_by(SafetyGame.order_index.asc())
    return list((await db.execute(stmt)).scalars().all())


async def _game_score_rows(db: AsyncSession, user_id: uuid.UUID) -> list[UserGameScore]:
    stmt = select(UserGameScore).where(UserGameScore.user_id == user_id)
    return list((await db.execute(stmt)).scalars().all())


async def _active_alerts(db: AsyncSession, limit: int) -> list[SafetyAlert]:
    stmt = (
        select(SafetyAlert)
        .where(
            SafetyAlert.is_active.is_(True),
            or_(SafetyAlert.expires_at.is_(None), SafetyAlert.expires_at > now_utc()),
        )
        .order_by(SafetyAlert.created_at.desc())
        .limit(limit)
    )
    return list((await db.execute(stmt)).scalars().all())


async def _active_videos(db: AsyncSession, limit: int) -> list[VideoTutorial]:
    stmt = (
        select(VideoTutorial)
        .where(VideoTutorial.is_active.is_(True))
        .order_by(VideoTutorial.order_index.asc())
        .limit(limit)
    )
    return list((await db.execute(stmt)).scalars().all())


async def _earned_achievements(db: AsyncSession, user_id: uuid.UUID) -> list[tuple[Achievement, UserAchievement]]:
    stmt = (
        select(Achievement, UserAchievement)
        .join(UserAchievement, UserAchievement.achievement_id == Achievement.id)
        .where(UserAchievement.user_id == user_id)
        .order_by(UserAchievement.earned_at.desc())
    )
    return [(row[0], row[1]) for row in (await db.execute(stmt)).all()]


def merge_modules(modules: list[LearningModule], progress_rows: list[UserModuleProgress]) -> list[ModuleView]:
    by_module = {row.module_id: row for row in progress_rows}
    merged = []
    for module in modules:
        entry = by_module.get(module.id)
        merged.append(
            ModuleView(
                id=module.id,
                title=module.title,
                description=module.description,
                icon=module.icon,
                xp_reward=module.xp_reward,
                difficulty=module.difficulty,
                hover_content=module.hover_content,
                order_index=module.order_index,
                progress=entry.progress if entry else 0,
                is_completed=entry.is_completed if entry else False,
                completed_at=entry.completed_at if entry else None,
            )
        )
    return merged


def merge_games(games: list[SafetyGame], score_rows: list[UserGameScore]) -> list[GameView]:
    by_game = {row.game_id: row for row in score_rows}
    merged = []
    for game in games:
        entry = by_game.get(game.id)
        merged.append(
            GameView(
                id=game.id,
                title=game.title,
                description=game.description,
                icon=game.icon,
                xp_reward=game.xp_reward,
                difficulty=game.difficulty,
                hover_content=game.hover_content,
                game_url=game.game_url,
                order_index=game.order_index,
                score=entry.score if entry else 0,
                is_completed=entry.is_completed if entry else False,
            )
        )
    return merged


def filter_alerts_for_region(alerts: list[SafetyAlert], region: str | None, limit: int) -> list[SafetyAlert]:
    """Keep global alerts plus those scoped to the identity's region.

    An identity without a home region sees every alert.
    """
    if region is None:
        return alerts[:limit]
    wanted = region.strip().lower()
    scoped = [alert for alert in alerts if alert.region is None or alert.region.strip().lower() == wanted]
    return scoped[:limit]


def level_for_xp(current_xp: int) -> int:
    return 1 + max(current_xp, 0) // get_settings().xp_per_level


def xp_summary(current_xp: int, current_level: int) -> XpSummary:
    per_level = get_settings().xp_per_level
    floor_xp = (current_level - 1) * per_level
    next_xp = current_level * per_level
    gained = min(max(current_xp - floor_xp, 0), per_level)
    return XpSummary(
        current_xp=current_xp,
        current_level=current_level,
        level_floor_xp=floor_xp,
        next_level_xp=next_xp,
        xp_to_next_level=max(0, next_xp - current_xp),
        percent_to_next_level=round(gained * 100 / per_level, 1),
    )


async def load_dashboard(sessions: SessionFactory, user_id: uuid.UUID) -> DashboardData:
    settings = get_settings()
    (
        progress,
        modules,
        module_rows,
        games,
        score_rows,
        alerts,
        videos,
        earned,
    ) = await gather_reads(
        sessions,
        lambda db: get_or_create_progress(db, user_id),
        _active_modules,
        lambda db: _module_progress_rows(db, user_id),
        _active_games,
        lambda db: _game_score_rows(db, user_id),
        lambda db: _active_alerts(db, settings.alert_scan_limit),
        lambda db: _active_videos(db, settings.dashboard_video_limit),
        lambda db: _earned_achievements(db, user_id),
    )

    return DashboardData(
        progress=ProgressOut.model_validate(progress),
        xp=xp_summary(progress.current_xp, progress.current_level),
        learning_modules=merge_modules(modules, module_rows),
        safety_games=merge_games(games, score_rows),
        safety_alerts=[
            AlertOut.model_validate(alert)
            for alert in filter_alerts_for_region(alerts, progress.region, settings.dashboard_alert_limit)
        ],
        video_tutorials=[VideoOut.model_validate(video) for video in videos],
        achievements=[
            EarnedAchievement(
                id=achievement.id,
                title=achievement.title,
                description=achievement.description,
                icon=achievement.icon,
                xp_reward=achievement.xp_reward,
                earned_at=link.earned_at,
            )
            for achievement, link in earned
        ],
    )


async def _roll_up_progress(db: AsyncSession, user_id: uuid.UUID, xp_gained: int) -> UserProgress:
    progress = (await db.execute(select(UserProgress).where(UserProgress.user_id == user_id))).scalars().first()
    if not progress:
        progress = UserProgress(user_id=user_id, current_xp=0, current_level=1)
        db.add(progress)

    completed_modules = (
        await db.execute(
            select(func.count())
            .select_from(UserModuleProgress)
            .where(UserModuleProgress.user_id == user_id, UserModuleProgress.is_completed.is_(True))
        )
    ).scalar_one()
    total_score = (
        await db.execute(select(func.coalesce(func.sum(UserGameScore.score), 0)).where(UserGameScore.user_id == user_id))
    ).scalar_one()

    progress.completed_modules = int(completed_modules)
    progress.total_game_score = int(total_score)
    if xp_gained:
        progress.current_xp += xp_gained
        progress.current_level = level_for_xp(progress.current_xp)
    return progress


async def _find_module_progress(db: AsyncSession, user_id: uuid.UUID, module_id: uuid.UUID) -> UserModuleProgress | None:
    stmt = select(UserModuleProgress).where(
        UserModuleProgress.user_id == user_id,
        UserModuleProgress.module_id == module_id,
    )
    return (await db.execute(stmt)).scalars().first()


async def _find_game_score(db: AsyncSession, user_id: uuid.UUID, game_id: uuid.UUID) -> UserGameScore | None:
    stmt = select(UserGameScore).where(UserGameScore.user_id == user_id, UserGameScore.game_id == game_id)
    return (await db.execute(stmt)).scalars().first()


async def _commit_upsert(db: AsyncSession, write: Callable[[], Awaitable[T]]) -> T:
    """Run a create-or-update write, retrying once if a concurrent writer inserted the row first."""
    attempt = 1
    while True:
        try:
            row = await write()
            await db.commit()
            return row
        except IntegrityError as exc:
            await db.rollback()
            if attempt >= UPSERT_ATTEMPTS:
                raise ApiError(
                    status_code=409,
                    code=ErrorCode.PROGRESS_CONFLICT,
                    message="Progress was updated concurrently",
                ) from exc
            attempt += 1
            logger.info("progress row created concurrently, retrying as update")


async def update_module_progress(
    db: AsyncSession, user_id: uuid.UUID, module_id: uuid.UUID, progress: int
) -> UserModuleProgress:
    if progress < 0:
        raise ApiError(status_code=422, code=ErrorCode.VALIDATION_ERROR, message="Progress must not be negative")

    module = await db.get(LearningModule, module_id)
    if not module:
        raise ApiError(status_code=404, code=ErrorCode.MODULE_NOT_FOUND, message="Module not found")
    xp_reward = module.xp_reward

    async def write() -> UserModuleProgress:
        row = await _find_module_progress(db, user_id, module_id)
        was_completed = bool(row and row.is_completed)
        if not row:
            row = UserModuleProgress(user_id=user_id, module_id=module_id)
            db.add(row)

        completed = progress >= COMPLETION_THRESHOLD
        row.progress = min(progress, COMPLETION_THRESHOLD)
        row.is_completed = completed
        if completed and not was_completed:
            row.completed_at = now_utc()
        elif not completed:
            row.completed_at = None
        await db.flush()

        await _roll_up_progress(db, user_id, xp_reward if completed and not was_completed else 0)
        return row

    row = await _commit_upsert(db, write)
    await db.refresh(row)
    return row


async def complete_game(db: AsyncSession, user_id: uuid.UUID, game_id: uuid.UUID, score: int) -> UserGameScore:
    game = await db.get(SafetyGame, game_id)
    if not game:
        raise ApiError(status_code=404, code=ErrorCode.GAME_NOT_FOUND, message="Game not found")
    xp_reward = game.xp_reward

    async def write() -> UserGameScore:
        row = await _find_game_score(db, user_id, game_id)
        first_completion = not (row and row.is_completed)
        if not row:
            row = UserGameScore(user_id=user_id, game_id=game_id)
            db.add(row)

        row.score = score
        row.is_completed = True
        if first_completion:
            row.completed_at = now_utc()
        await db.flush()

        await _roll_up_progress(db, user_id, xp_reward if first_completion else 0)
        return row

    row = await _commit_upsert(db, write)
    await db.refresh(row)
    return row


async def set_region(db: AsyncSession, user_id: uuid.UUID, region: str | None) -> UserProgress:
    progress = await get_or_create_progress(db, user_id)
    progress.region = (region or "").strip() or None
    await db.commit()
    await db.refresh(progress)
    return progress
