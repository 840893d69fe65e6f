import asyncio
from datetime import timedelta

import pytest
from sqlalchemy import func, select

from safeprep.core.errors import ApiError
from safeprep.core.security import now_utc
from safeprep.db.session import gather_reads
from safeprep.models import (
    LearningModule,
    SafetyAlert,
    SafetyGame,
    UserGameScore,
    UserModuleProgress,
    UserProgress,
    VideoTutorial,
)
from safeprep.services import dashboard_service
from safeprep.stores.base import Store
from safeprep.stores.dashboard import DashboardStore


@pytest.fixture
async def catalog(add_rows):
    quake, flood = await add_rows(
        LearningModule(title="Earthquake Safety", xp_reward=50, order_index=1),
        LearningModule(title="Flood Preparedness", xp_reward=30, order_index=2),
    )
    await add_rows(LearningModule(title="Retired Module", xp_reward=10, order_index=3, is_active=False))
    game = await add_rows(SafetyGame(title="Earthquake Escape", xp_reward=40, order_index=1))
    return {"quake": quake, "flood": flood, "game": game}


async def test_first_load_creates_default_progress(sessions, make_user, catalog):
    user = await make_user("fresh@example.com")
    data = await dashboard_service.load_dashboard(sessions, user.id)

    assert data.progress.current_xp == 0
    assert data.progress.current_level == 1
    assert data.xp.next_level_xp == 100
    assert [m.title for m in data.learning_modules] == ["Earthquake Safety", "Flood Preparedness"]
    assert all(m.progress == 0 and not m.is_completed for m in data.learning_modules)
    assert data.safety_games[0].score == 0


async def test_completing_a_module(sessions, make_user, catalog):
    user = await make_user("learner@example.com")
    quake = catalog["quake"]

    async with sessions() as db:
        row = await dashboard_service.update_module_progress(db, user.id, quake.id, 100)
    assert row.is_completed
    assert row.completed_at is not None

    data = await dashboard_service.load_dashboard(sessions, user.id)
    merged = next(m for m in data.learning_modules if m.id == quake.id)
    assert merged.progress == 100
    assert merged.is_completed
    assert data.progress.current_xp == 50
    assert data.progress.completed_modules == 1

    # Reporting completion again does not pay the reward twice.
    async with sessions() as db:
        await dashboard_service.update_module_progress(db, user.id, quake.id, 100)
    data = await dashboard_service.load_dashboard(sessions, user.id)
    assert data.progress.current_xp == 50


async def test_partial_progress_is_not_completion(sessions, make_user, catalog):
    user = await make_user("halfway@example.com")
    async with sessions() as db:
        row = await dashboard_service.update_module_progress(db, user.id, catalog["flood"].id, 50)
    assert row.progress == 50
    assert not row.is_completed
    assert row.completed_at is None


async def test_progress_bounds(sessions, make_user, catalog):
    user = await make_user("bounds@example.com")
    async with sessions() as db:
        row = await dashboard_service.update_module_progress(db, user.id, catalog["flood"].id, 140)
        assert row.progress == 100
        with pytest.raises(ApiError) as err:
            await dashboard_service.update_module_progress(db, user.id, catalog["flood"].id, -5)
    assert err.value.status_code == 422


async def test_unknown_module(sessions, make_user, catalog):
    user = await make_user("lost@example.com")
    async with sessions() as db:
        with pytest.raises(ApiError) as err:
            await dashboard_service.update_module_progress(db, user.id, catalog["game"].id, 10)
    assert err.value.code == "MODULE_NOT_FOUND"


async def test_progress_is_isolated_per_identity(sessions, make_user, catalog):
    first = await make_user("first@example.com")
    second = await make_user("second@example.com")
    async with sessions() as db:
        await dashboard_service.update_module_progress(db, first.id, catalog["quake"].id, 100)

    other = await dashboard_service.load_dashboard(sessions, second.id)
    assert other.progress.current_xp == 0
    assert not any(m.is_completed for m in other.learning_modules)


async def test_game_completion_rolls_up_score_and_xp(sessions, make_user, catalog):
    user = await make_user("gamer@example.com")
    async with sessions() as db:
        await dashboard_service.complete_game(db, user.id, catalog["game"].id, 80)
        await dashboard_service.complete_game(db, user.id, catalog["game"].id, 95)

    data = await dashboard_service.load_dashboard(sessions, user.id)
    assert data.safety_games[0].score == 95
    assert data.safety_games[0].is_completed
    assert data.progress.total_game_score == 95
    assert data.progress.current_xp == 40


async def test_alerts_scoped_to_region_and_unexpired(sessions, make_user, add_rows):
    user = await make_user("coastal@example.com")
    now = now_utc()
    await add_rows(
        UserProgress(user_id=user.id, region="Gujarat"),
        SafetyAlert(type="weather", severity="high", message="Cyclone warning", region="Gujarat", created_at=now),
        SafetyAlert(type="weather", severity="low", message="Snowfall", region="Himachal", created_at=now),
        SafetyAlert(type="system", severity="low", message="Drill week", created_at=now - timedelta(hours=1)),
        SafetyAlert(
            type="weather",
            severity="medium",
            message="Old flood watch",
            created_at=now - timedelta(days=3),
            expires_at=now - timedelta(days=1),
        ),
    )

    data = await dashboard_service.load_dashboard(sessions, user.id)
    assert [a.message for a in data.safety_alerts] == ["Cyclone warning", "Drill week"]


async def test_alert_and_video_limits(sessions, make_user, add_rows):
    user = await make_user("busy@example.com")
    now = now_utc()
    await add_rows(
        *[SafetyAlert(type="system", severity="low", message=f"a{i}", created_at=now - timedelta(minutes=i)) for i in range(8)],
        *[VideoTutorial(title=f"v{i}", video_id=f"vid{i}", order_index=i) for i in range(8)],
        VideoTutorial(title="hidden", video_id="gone", order_index=-1, is_active=False),
    )

    data = await dashboard_service.load_dashboard(sessions, user.id)
    assert [a.message for a in data.safety_alerts] == ["a0", "a1", "a2", "a3", "a4"]
    assert [v.title for v in data.video_tutorials] == ["v0", "v1", "v2", "v3", "v4", "v5"]


async def test_xp_summary_levels():
    assert dashboard_service.level_for_xp(0) == 1
    assert dashboard_service.level_for_xp(99) == 1
    assert dashboard_service.level_for_xp(250) == 3
    summary = dashboard_service.xp_summary(250, 3)
    assert summary.xp_to_next_level == 50
    assert summary.percent_to_next_level == 50.0


async def test_dashboard_over_http(api, login, catalog):
    headers = await login("web@example.com")
    quake = catalog["quake"]

    resp = await api.put(f"/v1/modules/{quake.id}/progress", headers=headers, json={"progress": 100})
    assert resp.status_code == 200, resp.text
    module = next(m for m in resp.json()["learning_modules"] if m["id"] == str(quake.id))
    assert module["progress"] == 100
    assert module["is_completed"] is True

    bad = await api.put(f"/v1/modules/{quake.id}/progress", headers=headers, json={"progress": -1})
    assert bad.status_code == 422

    region = await api.put("/v1/progress/region", headers=headers, json={"region": " Gujarat "})
    assert region.json()["region"] == "Gujarat"


async def test_store_reloads_after_mutation(sessions, make_user, catalog):
    user = await make_user("store@example.com")
    store = DashboardStore(sessions, user.id)
    await store.load()
    assert store.user_progress.current_xp == 0

    result = await store.update_module_progress(catalog["quake"].id, 100)
    assert result.ok
    assert store.learning_modules[0].is_completed
    assert store.user_progress.current_xp == 50

    missing = await store.complete_game(catalog["quake"].id, 10)
    assert missing.error == "Game not found"
    assert store.user_progress.current_xp == 50


async def test_stale_load_does_not_overwrite_newer_result():
    store = Store()
    slow_started = asyncio.Event()
    release_slow = asyncio.Event()

    async def slow():
        slow_started.set()
        await release_slow.wait()
        return "first"

    async def fast():
        return "second"

    first = asyncio.create_task(store._run_load(slow))
    await slow_started.wait()
    await store._run_load(fast)
    release_slow.set()

    assert await first is None
    assert store.data == "second"
    assert not store.loading


async def test_load_after_close_is_dropped():
    store = Store()

    async def fetch():
        store.close()
        return "late"

    assert await store._run_load(fetch) is None
    assert store.data is None


async def test_failed_load_keeps_previous_data():
    store = Store()

    async def ok():
        return ["kept"]

    async def broken():
        raise ApiError(status_code=500, code="BOOM", message="backend down")

    await store._run_load(ok)
    await store._run_load(broken)
    assert store.data == ["kept"]
    assert store.error == "backend down"
    assert not store.loading


async def test_unexpected_load_error_clears_loading():
    store = Store()

    async def unreachable():
        raise OSError("connection refused")

    with pytest.raises(OSError):
        await store._run_load(unreachable)
    assert not store.loading
    assert store.data is None


async def test_module_progress_retries_when_row_created_concurrently(sessions, make_user, add_rows, catalog, monkeypatch):
    user = await make_user("racer@example.com")
    quake = catalog["quake"]
    existing = await add_rows(UserModuleProgress(user_id=user.id, module_id=quake.id, progress=40))

    find = dashboard_service._find_module_progress
    calls = []

    async def miss_once(db, user_id, module_id):
        # The first lookup runs before the other writer's insert is visible.
        calls.append(module_id)
        if len(calls) == 1:
            return None
        return await find(db, user_id, module_id)

    monkeypatch.setattr(dashboard_service, "_find_module_progress", miss_once)
    async with sessions() as db:
        row = await dashboard_service.update_module_progress(db, user.id, quake.id, 100)

    assert len(calls) == 2
    assert row.id == existing.id
    assert row.is_completed
    async with sessions() as db:
        count = (
            await db.execute(
                select(func.count()).select_from(UserModuleProgress).where(UserModuleProgress.user_id == user.id)
            )
        ).scalar_one()
    assert count == 1

    data = await dashboard_service.load_dashboard(sessions, user.id)
    assert data.progress.current_xp == 50
    assert data.progress.completed_modules == 1


async def test_persistent_progress_conflict_is_409(sessions, make_user, add_rows, catalog, monkeypatch):
    user = await make_user("loser@example.com")
    game = catalog["game"]
    await add_rows(UserGameScore(user_id=user.id, game_id=game.id, score=10, is_completed=True))

    async def always_miss(db, user_id, game_id):
        return None

    monkeypatch.setattr(dashboard_service, "_find_game_score", always_miss)
    async with sessions() as db:
        with pytest.raises(ApiError) as err:
            await dashboard_service.complete_game(db, user.id, game.id, 90)
    assert err.value.status_code == 409
    assert err.value.code == "PROGRESS_CONFLICT"

    data = await dashboard_service.load_dashboard(sessions, user.id)
    assert data.safety_games[0].score == 10


async def test_gather_reads_keeps_order(sessions):
    async def one(db):
        return 1

    async def two(db):
        await asyncio.sleep(0)
        return 2

    assert await gather_reads(sessions, two, one) == [2, 1]


async def test_failed_read_cancels_sibling_reads(sessions):
    cancelled = asyncio.Event()

    async def slow(db):
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise
        return "late"

    async def broken(db):
        raise ApiError(status_code=500, code="BOOM", message="backend down")

    with pytest.raises(ApiError) as err:
        await gather_reads(sessions, slow, broken)
    assert err.value.message == "backend down"
    assert cancelled.is_set()
