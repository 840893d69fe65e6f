import pytest
from sqlalchemy import func, select

from safeprep.core.errors import ApiError
from safeprep.models import AdminSetting, UserSettings
from safeprep.services import admin_settings_service, user_settings_service
from safeprep.services.admin_settings_service import classify_setting_value
from safeprep.stores.admin_settings import AdminSettingsStore
from safeprep.stores.user_settings import UserSettingsStore


async def test_settings_created_with_defaults_once(sessions, make_user):
    user = await make_user("prefs@example.com")
    async with sessions() as db:
        first = await user_settings_service.get_or_create_settings(db, user.id)
    async with sessions() as db:
        second = await user_settings_service.get_or_create_settings(db, user.id)

    assert first.id == second.id
    assert first.theme == "system"
    assert first.language == "en"
    assert first.privacy_level == "friends"
    assert first.notifications_enabled and first.sound_effects


async def test_user_settings_over_http(api, login):
    headers = await login("http-prefs@example.com")
    resp = await api.patch("/v1/settings", headers=headers, json={"theme": "dark", "language": "hi"})
    assert resp.status_code == 200, resp.text
    assert resp.json()["theme"] == "dark"
    assert resp.json()["auto_save"] is True

    assert (await api.patch("/v1/settings", headers=headers, json={"theme": "neon"})).status_code == 422

    reset = await api.post("/v1/settings/reset", headers=headers)
    assert reset.json()["theme"] == "system"
    assert reset.json()["language"] == "en"


async def test_user_settings_store(sessions, make_user):
    notices = []
    user = await make_user("store-prefs@example.com")
    store = UserSettingsStore(sessions, user.id, notifier=notices.append)

    assert await store.update({"theme": "dark"}) is None

    await store.load()
    result = await store.update({"theme": "dark", "sound_effects": False})
    assert result.ok
    assert store.data.theme == "dark"
    assert store.data.sound_effects is False
    assert notices[-1].title == "Settings Updated"

    await store.reset_to_defaults()
    assert store.data.theme == "system"
    assert store.data.sound_effects is True


async def test_invalid_change_is_reported_not_raised(sessions, make_user):
    notices = []
    user = await make_user("typo-prefs@example.com")
    store = UserSettingsStore(sessions, user.id, notifier=notices.append)
    await store.load()

    result = await store.update({"theme": "neon"})
    assert not result.ok
    assert result.error.startswith("theme: ")
    assert store.error == result.error
    assert store.data.theme == "system"
    assert notices[-1].variant == "destructive"


async def test_repeated_store_loads_create_one_row(sessions, make_user):
    user = await make_user("reload-prefs@example.com")
    store = UserSettingsStore(sessions, user.id)
    for _ in range(3):
        await store.load()

    async with sessions() as db:
        count = (
            await db.execute(select(func.count()).select_from(UserSettings).where(UserSettings.user_id == user.id))
        ).scalar_one()
    assert count == 1
    assert store.data.theme == "system"
    assert store.data.auto_save is True


@pytest.mark.parametrize(
    ("value", "kind"),
    [
        ({"enabled": False, "message": "System under maintenance"}, "flag"),
        ({"weather": True, "emergency": True, "system": False}, "toggles"),
        ({"value": 30, "unit": "minutes"}, "threshold"),
        (True, "scalar"),
        ({"nested": {"a": [1, 2]}}, "document"),
        ([1, 2, 3], "document"),
    ],
)
def test_classify_setting_value(value, kind):
    assert classify_setting_value(value).kind == kind


@pytest.fixture
async def admin_settings(add_rows):
    return await add_rows(
        AdminSetting(
            setting_key="maintenance_mode",
            setting_value={"enabled": False, "message": "System under maintenance"},
            setting_type="system",
        ),
        AdminSetting(setting_key="leaderboard_enabled", setting_value=True, setting_type="feature", is_public=True),
    )


async def test_document_round_trips_unchanged(sessions, admin_settings):
    document = {"enabled": True, "windows": [{"day": "sat", "hours": [1, 2]}], "note": None, "ratio": 0.25}
    async with sessions() as db:
        await admin_settings_service.set_admin_setting(db, "maintenance_mode", document)
    async with sessions() as db:
        row = await admin_settings_service.get_admin_setting(db, "maintenance_mode")
    assert row.setting_value == document


async def test_admin_settings_store_staging(sessions, admin_settings):
    store = AdminSettingsStore(sessions)
    await store.load()
    assert list(store.grouped()) == ["feature", "system"]

    store.stage_field("maintenance_mode", "enabled", True)
    assert store.has_unsaved_changes("maintenance_mode")
    assert store.current_value("maintenance_mode") == {"enabled": True, "message": "System under maintenance"}
    # The loaded value is untouched until saved.
    assert store.settings[1].setting_value["enabled"] is False

    result = await store.save("maintenance_mode")
    assert result.ok
    assert not store.has_unsaved_changes()
    saved = next(s for s in store.settings if s.setting_key == "maintenance_mode")
    assert saved.setting_value == {"enabled": True, "message": "System under maintenance"}
    assert saved.shape.kind == "flag"


async def test_failed_save_keeps_pending_value(sessions, admin_settings):
    notices = []
    store = AdminSettingsStore(sessions, notifier=notices.append)
    await store.load()
    store.stage("does_not_exist", 5)

    result = await store.save("does_not_exist")
    assert result.error == "Setting not found"
    assert store.pending == {"does_not_exist": 5}
    assert notices[-1].variant == "destructive"

    store.discard()
    assert not store.has_unsaved_changes()


async def test_admin_settings_over_http(api, login, admin_settings):
    student = await login("curious@example.com")
    admin = await login("ops@example.com", admin_level="admin")

    assert (await api.get("/v1/admin/settings", headers=student)).status_code == 403

    listing = await api.get("/v1/admin/settings", headers=admin)
    assert listing.json()["total"] == 2

    resp = await api.put("/v1/admin/settings/leaderboard_enabled", headers=admin, json={"value": False})
    assert resp.status_code == 200, resp.text
    assert resp.json()["setting_value"] is False
    assert resp.json()["shape"] == {"kind": "scalar", "value": False}

    missing = await api.put("/v1/admin/settings/nope", headers=admin, json={"value": 1})
    assert missing.status_code == 404

    public = await api.get("/v1/settings/public")
    assert [s["setting_key"] for s in public.json()["settings"]] == ["leaderboard_enabled"]


async def test_unknown_setting(sessions):
    async with sessions() as db:
        with pytest.raises(ApiError) as err:
            await admin_settings_service.get_admin_setting(db, "missing")
    assert err.value.code == "SETTING_NOT_FOUND"
