import pytest

from safeprep.core.errors import ApiError
from safeprep.services.emergency_contacts import search_contacts


def test_filter_by_type_and_query():
    fire = search_contacts("Gujarat", contact_type="fire")
    assert fire and all(c.type == "fire" for c in fire)

    by_name = search_contacts("Gujarat", query="ahmedabad")
    assert {c.name for c in by_name} == {"Ahmedabad Fire Station", "Civil Hospital Ahmedabad"}

    by_number = search_contacts("Gujarat", query="1077")
    assert [c.name for c in by_number] == ["Disaster Management Cell"]


def test_unknown_state():
    with pytest.raises(ApiError) as err:
        search_contacts("Atlantis")
    assert err.value.status_code == 404


async def test_contacts_endpoint(api):
    resp = await api.get("/v1/contacts")
    assert resp.status_code == 200
    body = resp.json()
    assert body["state"] == "Gujarat"
    assert [c["number"] for c in body["national"]] == ["100", "101", "108", "1077"]
    assert "Maharashtra" in body["states"]

    assert (await api.get("/v1/contacts", params={"type": "pizza"})).status_code == 422
    missing = await api.get("/v1/contacts", params={"state": "Atlantis"})
    assert missing.json()["error"]["code"] == "REGION_NOT_FOUND"
