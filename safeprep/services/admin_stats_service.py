import math
from collections.abc import Iterable
from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from safeprep.core.config import get_settings
from safeprep.core.security import now_utc
from safeprep.db.session import SessionFactory, gather_reads
from safeprep.models import DisasterDrill, Profile, School, UserProgress
from safeprep.schemas.admin import AdminData, AdminStats, RegionalStat, SchoolActivity

DRILL_COMPLETED = "completed"
UNLINKED_SCHOOL_NAME = "All Schools"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def mean_or_zero(values: Iterable[float]) -> int:
    samples = list(values)
    if not samples:
        return 0
    return round_half_up(sum(samples) / len(samples))


async def _count_profiles(db: AsyncSession) -> int:
    return int((await db.execute(select(func.count()).select_from(Profile))).scalar_one())


async def _count_active_schools(db: AsyncSession) -> int:
    stmt = select(func.count()).select_from(School).where(School.is_active.is_(True))
    return int((await db.execute(stmt)).scalar_one())


async def _all_xp(db: AsyncSession) -> list[int]:
    return [xp or 0 for xp in (await db.execute(select(UserProgress.current_xp))).scalars().all()]


async def _count_active_users(db: AsyncSession, since: datetime) -> int:
    stmt = select(func.count()).select_from(UserProgress).where(UserProgress.updated_at >= since)
    return int((await db.execute(stmt)).scalar_one())


async def _count_completed_drills(db: AsyncSession) -> int:
    stmt = select(func.count()).select_from(DisasterDrill).where(DisasterDrill.status == DRILL_COMPLETED)
    return int((await db.execute(stmt)).scalar_one())


async def _students_by_state(db: AsyncSession) -> dict[str, int]:
    rows = (await db.execute(select(School.state, School.total_students).where(School.is_active.is_(True)))).all()
    region_students: dict[str, int] = {}
    for state, students in rows:
        region_students[state] = region_students.get(state, 0) + (students or 0)
    return region_students


async def _completion_samples_by_state(db: AsyncSession, states: Iterable[str]) -> dict[str, list[float]]:
    samples: dict[str, list[float]] = {state: [] for state in states}
    rows = (
        await db.execute(
            select(DisasterDrill.completion_rate, School.state)
            .join(School, School.id == DisasterDrill.school_id)
            .where(DisasterDrill.status == DRILL_COMPLETED)
        )
    ).all()
    for rate, state in rows:
        # Zero and missing rates are not samples.
        if state in samples and rate:
            samples[state].append(rate)
    return samples


async def _recent_activity(db: AsyncSession, limit: int) -> list[SchoolActivity]:
    rows = (
        await db.execute(
            select(DisasterDrill, School.name, School.total_students)
            .outerjoin(School, School.id == DisasterDrill.school_id)
            .where(DisasterDrill.status == DRILL_COMPLETED)
            .order_by(DisasterDrill.updated_at.desc())
            .limit(limit)
        )
    ).all()
    return [
        SchoolActivity(
            school=school_name or UNLINKED_SCHOOL_NAME,
            users=drill.participants_count or school_students or 0,
            completion=round_half_up(drill.completion_rate or 0),
            date=drill.updated_at.date(),
        )
        for drill, school_name, school_students in rows
    ]


async def load_admin_stats(sessions: SessionFactory, now: datetime | None = None) -> AdminData:
    settings = get_settings()
    active_since = (now or now_utc()) - timedelta(days=settings.admin_active_window_days)

    total_users, schools_registered, xp_values, active_users, completed_drills = await gather_reads(
        sessions,
        _count_profiles,
        _count_active_schools,
        _all_xp,
        lambda db: _count_active_users(db, active_since),
        _count_completed_drills,
    )

    async with sessions() as db:
        region_students = await _students_by_state(db)
        samples = await _completion_samples_by_state(db, region_students.keys())
        recent = await _recent_activity(db, settings.admin_recent_activity_limit)

    regional_stats = [
        RegionalStat(region=region, users=students, completion=mean_or_zero(samples[region]))
        for region, students in region_students.items()
    ]

    return AdminData(
        stats=AdminStats(
            total_users=total_users,
            active_users=active_users,
            schools_registered=schools_registered,
            completed_drills=completed_drills,
            average_xp=mean_or_zero(xp_values),
        ),
        regional_stats=regional_stats,
        recent_activity=recent,
    )
