import uuid

import pytest
from pydantic import ValidationError

from safeprep.models import VideoTutorial
from safeprep.schemas.videos import VideoCreateRequest, VideoUpdateRequest
from safeprep.stores.videos import VideoStore


async def test_store_mutations_follow_server_rows(sessions, add_rows):
    await add_rows(VideoTutorial(title="Kit Basics", video_id="kit", order_index=5))
    store = VideoStore(sessions)
    await store.load()

    created = await store.create(VideoCreateRequest(title="  Drop and Cover ", video_id="drop", order_index=1))
    assert created.ok
    assert created.data.title == "Drop and Cover"
    assert [v.title for v in store.videos] == ["Drop and Cover", "Kit Basics"]

    updated = await store.update(created.data.id, VideoUpdateRequest(duration="3:12"))
    assert updated.data.duration == "3:12"
    assert store.videos[0].duration == "3:12"

    toggled = await store.set_active(created.data.id, False)
    assert toggled.data.is_active is False
    assert store.videos[0].is_active is False
    assert store.videos[0].updated_at == toggled.data.updated_at


async def test_delete_removes_only_that_video(sessions, add_rows):
    first, second = await add_rows(
        VideoTutorial(title="Fire Drill", video_id="one", order_index=1),
        VideoTutorial(title="Fire Drill", video_id="two", order_index=2),
    )
    store = VideoStore(sessions)
    await store.load()

    result = await store.delete(first.id)
    assert result.ok
    assert [v.id for v in store.videos] == [second.id]

    await store.load()
    assert [v.id for v in store.videos] == [second.id]


async def test_failed_mutation_leaves_list_unchanged(sessions, add_rows):
    notices = []
    await add_rows(VideoTutorial(title="Only", video_id="only"))
    store = VideoStore(sessions, notifier=notices.append)
    await store.load()
    before = list(store.videos)

    result = await store.update(uuid.uuid4(), VideoUpdateRequest(title="Renamed"))
    assert result.error == "Video not found"
    assert store.videos == before
    assert notices[-1].variant == "destructive"

    assert (await store.delete(uuid.uuid4())).error == "Video not found"
    assert store.videos == before


async def test_admin_video_endpoints(api, login):
    admin = await login("cms@example.com", admin_level="admin")
    student = await login("viewer@example.com")

    resp = await api.post(
        "/v1/admin/videos",
        headers=admin,
        json={"title": "Cyclone Shelter", "video_id": "cyc", "category": "cyclone", "order_index": 2},
    )
    assert resp.status_code == 201, resp.text
    video_id = resp.json()["id"]

    assert (await api.get("/v1/admin/videos", headers=student)).status_code == 403
    assert (await api.get("/v1/videos", headers=student)).json()["total"] == 1

    viewed = await api.post(f"/v1/videos/{video_id}/view", headers=student)
    assert viewed.json()["views"] == 1

    off = await api.patch(f"/v1/admin/videos/{video_id}/active", headers=admin, json={"is_active": False})
    assert off.json()["is_active"] is False
    assert (await api.get("/v1/videos", headers=student)).json()["total"] == 0
    assert (await api.get("/v1/admin/videos", headers=admin)).json()["total"] == 1

    deleted = await api.delete(f"/v1/admin/videos/{video_id}", headers=admin)
    assert deleted.json() == {"deleted": True}
    assert (await api.delete(f"/v1/admin/videos/{video_id}", headers=admin)).status_code == 404


def test_update_rejects_explicit_null_for_required_columns():
    with pytest.raises(ValidationError, match="title cannot be null"):
        VideoUpdateRequest(title=None)
    with pytest.raises(ValidationError, match="order_index cannot be null"):
        VideoUpdateRequest.model_validate({"order_index": None})

    # Nullable columns may still be cleared.
    cleared = VideoUpdateRequest(thumbnail_url=None, hover_content=None)
    assert cleared.model_dump(exclude_unset=True) == {"thumbnail_url": None, "hover_content": None}
    assert VideoUpdateRequest().model_dump(exclude_unset=True) == {}


async def test_patch_with_null_title_is_422(api, login, add_rows):
    admin = await login("nulls@example.com", admin_level="admin")
    video = await add_rows(VideoTutorial(title="Evacuation Routes", video_id="evac", order_index=1))

    resp = await api.patch(f"/v1/admin/videos/{video.id}", headers=admin, json={"title": None})
    assert resp.status_code == 422

    listed = (await api.get("/v1/admin/videos", headers=admin)).json()["videos"]
    assert [v["title"] for v in listed] == ["Evacuation Routes"]
