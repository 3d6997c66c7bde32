"""Setlists, items and ordering."""

import pytest


def shift_items(db, params):
    for item in db.rows("setlist_items"):
        if item["setlist_id"] == params["p_setlist_id"] and item["position"] >= params["p_from_position"]:
            item["position"] += params["p_shift_amount"]


def reorder_items(db, params):
    items = sorted(
        (i for i in db.rows("setlist_items") if i["setlist_id"] == params["p_setlist_id"]),
        key=lambda i: i["position"],
    )
    for index, item in enumerate(items, start=1):
        item["position"] = index


@pytest.fixture
def setlist(client, auth_headers, db):
    db.rpc_handlers["shift_setlist_items"] = shift_items
    db.rpc_handlers["reorder_setlist_items"] = reorder_items
    response = client.post(
        "/api/v1/setlists", headers=auth_headers, json={"name": "Concert de juin", "concert_date": "2026-06-21"}
    )
    assert response.status_code == 201
    return response.json()


def add_item(client, headers, setlist_id, **item):
    response = client.post(f"/api/v1/setlists/{setlist_id}/items", headers=headers, json=item)
    assert response.status_code == 201
    return response.json()


def test_create_personal_setlist(setlist, auth_headers, db):
    assert setlist["is_personal"] is True
    assert setlist["user_id"] == auth_headers.user_id
    activity = db.rows("activities")[0]
    assert activity["type"] == "setlist_created"
    assert activity["metadata"] == {"name": "Concert de juin", "is_band": False}


def test_band_setlist_requires_membership(client, auth_headers):
    response = client.post("/api/v1/setlists", headers=auth_headers, json={"name": "Répète", "band_id": "b1"})
    assert response.status_code == 403


def test_totals(client, auth_headers, setlist):
    """Test totals add durations and transitions, and only songs are counted."""
    add_item(client, auth_headers, setlist["id"], item_type="song", song_title="Hey Joe",
             duration_seconds=200, transition_seconds=10)
    add_item(client, auth_headers, setlist["id"], item_type="section", section_name="Rappel")
    add_item(client, auth_headers, setlist["id"], item_type="song", song_title="Creep", duration_seconds=240)

    detail = client.get(f"/api/v1/setlists/{setlist['id']}", headers=auth_headers).json()

    assert detail["total_duration_seconds"] == 450
    assert detail["song_count"] == 2
    assert [i["position"] for i in detail["items"]] == [1, 2, 3]

    listed = client.get("/api/v1/setlists", headers=auth_headers).json()
    assert listed[0]["song_count"] == 2


def test_insert_at_position_shifts_items(client, auth_headers, setlist, db):
    add_item(client, auth_headers, setlist["id"], item_type="song", song_title="A")
    add_item(client, auth_headers, setlist["id"], item_type="song", song_title="B")

    inserted = add_item(client, auth_headers, setlist["id"], item_type="song", song_title="C", position=1)

    assert inserted["position"] == 1
    assert ("shift_setlist_items", {
        "p_setlist_id": setlist["id"], "p_from_position": 1, "p_shift_amount": 1,
    }) in db.rpc_calls
    detail = client.get(f"/api/v1/setlists/{setlist['id']}", headers=auth_headers).json()
    assert [i["song_title"] for i in detail["items"]] == ["C", "A", "B"]


def test_append_does_not_shift(client, auth_headers, setlist, db):
    add_item(client, auth_headers, setlist["id"], item_type="song", song_title="A")
    add_item(client, auth_headers, setlist["id"], item_type="song", song_title="B", position=5)
    assert db.rpc_calls == []


def test_delete_item_closes_gap(client, auth_headers, setlist, db):
    first = add_item(client, auth_headers, setlist["id"], item_type="song", song_title="A")
    add_item(client, auth_headers, setlist["id"], item_type="song", song_title="B")

    response = client.delete(f"/api/v1/setlists/items/{first['id']}", headers=auth_headers)

    assert response.status_code == 204
    assert db.rpc_calls[-1] == ("reorder_setlist_items", {"p_setlist_id": setlist["id"]})
    assert [(i["song_title"], i["position"]) for i in db.rows("setlist_items")] == [("B", 1)]


def test_move_item(client, auth_headers, setlist, db):
    item = add_item(client, auth_headers, setlist["id"], item_type="song", song_title="A")
    add_item(client, auth_headers, setlist["id"], item_type="song", song_title="B")

    response = client.post(
        f"/api/v1/setlists/{setlist['id']}/items/{item['id']}/move", headers=auth_headers, json={"position": 2}
    )

    assert response.json() == {"success": True}
    assert db.rpc_calls[-1] == ("move_setlist_item", {
        "p_setlist_id": setlist["id"], "p_item_id": item["id"], "p_old_position": 1, "p_new_position": 2,
    })


def test_move_to_same_position_is_noop(client, auth_headers, setlist, db):
    item = add_item(client, auth_headers, setlist["id"], item_type="song", song_title="A")

    client.post(f"/api/v1/setlists/{setlist['id']}/items/{item['id']}/move", headers=auth_headers, json={"position": 1})

    assert db.rpc_calls == []


def test_duplicate(client, auth_headers, setlist, db):
    add_item(client, auth_headers, setlist["id"], item_type="song", song_title="A", notes="capo 2")
    add_item(client, auth_headers, setlist["id"], item_type="section", section_name="Pause")

    response = client.post(f"/api/v1/setlists/{setlist['id']}/duplicate", headers=auth_headers)

    assert response.status_code == 201
    copy = response.json()
    assert copy["name"] == "Concert de juin (copie)"
    assert copy["concert_date"] is None
    copied = [i for i in db.rows("setlist_items") if i["setlist_id"] == copy["id"]]
    assert sorted((i["position"], i["item_type"], i["notes"]) for i in copied) == [
        (1, "song", "capo 2"), (2, "section", None),
    ]


def test_duplicate_with_name(client, auth_headers, setlist):
    response = client.post(
        f"/api/v1/setlists/{setlist['id']}/duplicate", headers=auth_headers, json={"name": "Tournée"}
    )
    assert response.json()["name"] == "Tournée"


def test_duplicate_rolls_back_when_items_fail(client, auth_headers, setlist, db):
    add_item(client, auth_headers, setlist["id"], item_type="song", song_title="A")
    db.fail_tables["setlist_items"] = "insert"

    response = client.post(f"/api/v1/setlists/{setlist['id']}/duplicate", headers=auth_headers)

    assert response.status_code == 500
    assert [s["id"] for s in db.rows("setlists")] == [setlist["id"]]


def test_other_users_setlist_is_hidden(client, setlist, make_user):
    response = client.get(f"/api/v1/setlists/{setlist['id']}", headers=make_user())
    assert response.status_code == 404


def test_band_members_share_setlists(client, make_user, db):
    owner = make_user(plan="band")
    member = make_user()
    band = db.seed("bands", {"name": "Les Riffs", "owner_id": owner.user_id})
    db.seed(
        "band_members",
        {"band_id": band["id"], "user_id": owner.user_id, "role": "owner"},
        {"band_id": band["id"], "user_id": member.user_id, "role": "member"},
    )
    created = client.post(
        "/api/v1/setlists", headers=owner, json={"name": "Festival", "band_id": band["id"]}
    ).json()

    listed = client.get("/api/v1/setlists", headers=member).json()

    assert [s["id"] for s in listed] == [created["id"]]
    assert listed[0]["band"]["name"] == "Les Riffs"
    assert created["is_personal"] is False
