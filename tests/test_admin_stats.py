from datetime import timedelta

from sqlalchemy.exc import OperationalError

from safeprep.core.security import now_utc
from safeprep.models import DisasterDrill, School, UserProgress
from safeprep.services.admin_stats_service import load_admin_stats, mean_or_zero, round_half_up
from safeprep.stores import admin_stats as admin_stats_store
from safeprep.stores.admin_stats import AdminStatsStore


def test_round_half_up():
    assert round_half_up(12.5) == 13
    assert round_half_up(12.49) == 12
    assert round_half_up(0.5) == 1
    assert mean_or_zero([]) == 0
    assert mean_or_zero([80, 85]) == 83


async def test_empty_database(sessions):
    data = await load_admin_stats(sessions)
    assert data.stats.total_users == 0
    assert data.stats.average_xp == 0
    assert data.regional_stats == []
    assert data.recent_activity == []


async def test_headline_counts(sessions, make_user, add_rows):
    now = now_utc()
    fresh = await make_user("fresh@example.com")
    stale = await make_user("stale@example.com")
    await make_user("idle@example.com")
    await add_rows(
        UserProgress(user_id=fresh.id, current_xp=10, updated_at=now - timedelta(days=2)),
        UserProgress(user_id=stale.id, current_xp=15, updated_at=now - timedelta(days=90)),
        School(name="Open School", code="S1", state="Gujarat", total_students=100),
        School(name="Closed School", code="S2", state="Gujarat", total_students=40, is_active=False),
        DisasterDrill(title="Fire", drill_type="fire", status="completed", completion_rate=90, scheduled_date=now),
        DisasterDrill(title="Quake", drill_type="earthquake", status="scheduled", scheduled_date=now),
    )

    stats = (await load_admin_stats(sessions, now=now)).stats
    assert stats.total_users == 3
    assert stats.active_users == 1
    assert stats.schools_registered == 1
    assert stats.completed_drills == 1
    assert stats.average_xp == 13


async def test_regional_breakdown(sessions, add_rows):
    now = now_utc()
    north, south, quiet = await add_rows(
        School(name="North High", code="N1", state="Gujarat", total_students=300),
        School(name="South High", code="S1", state="Gujarat", total_students=200),
        School(name="Hill School", code="H1", state="Rajasthan", total_students=150),
    )
    await add_rows(
        DisasterDrill(title="a", drill_type="fire", status="completed", completion_rate=80, scheduled_date=now, school_id=north.id),
        DisasterDrill(title="b", drill_type="fire", status="completed", completion_rate=85, scheduled_date=now, school_id=south.id),
        DisasterDrill(title="c", drill_type="fire", status="completed", completion_rate=0, scheduled_date=now, school_id=south.id),
        DisasterDrill(title="d", drill_type="fire", status="scheduled", completion_rate=99, scheduled_date=now, school_id=quiet.id),
    )

    regions = {r.region: r for r in (await load_admin_stats(sessions)).regional_stats}
    assert regions["Gujarat"].users == 500
    assert regions["Gujarat"].completion == 83
    # No completed drills means zero, not an error.
    assert regions["Rajasthan"].users == 150
    assert regions["Rajasthan"].completion == 0


async def test_recent_activity(sessions, add_rows):
    now = now_utc()
    school = await add_rows(School(name="River School", code="R1", state="Assam", total_students=220))
    await add_rows(
        DisasterDrill(
            title="Flood",
            drill_type="flood",
            status="completed",
            completion_rate=72.5,
            participants_count=None,
            scheduled_date=now,
            school_id=school.id,
            updated_at=now - timedelta(days=1),
        ),
        DisasterDrill(
            title="District",
            drill_type="fire",
            status="completed",
            completion_rate=64,
            participants_count=45,
            scheduled_date=now,
            updated_at=now,
        ),
    )

    activity = (await load_admin_stats(sessions)).recent_activity
    assert [a.school for a in activity] == ["All Schools", "River School"]
    assert activity[0].users == 45
    assert activity[1].users == 220
    assert activity[1].completion == 73


async def test_store_notifies_on_failure(sessions, monkeypatch):
    notices = []
    store = AdminStatsStore(sessions, notifier=notices.append)
    await store.load()
    assert store.data is not None
    previous = store.data

    async def broken(_sessions):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(admin_stats_store, "load_admin_stats", broken)
    assert await store.load() is None
    assert store.data is previous
    assert store.error
    assert notices[-1].description == "Failed to load admin data. Please try again."
    assert notices[-1].variant == "destructive"
