"""Bands: creation, invitations and membership."""


def create_band(client, headers, name="Les Riffs"):
    return client.post("/api/v1/bands", headers=headers, json={"name": name})


def test_create_band_adds_owner(client, band_headers, db):
    response = create_band(client, band_headers)

    assert response.status_code == 201
    band = response.json()
    assert [(m["user_id"], m["role"]) for m in db.rows("band_members")] == [(band_headers.user_id, "owner")]
    assert db.rows("activities")[0]["type"] == "band_created"

    listed = client.get("/api/v1/bands", headers=band_headers).json()
    assert listed[0]["members"][0]["profile"]["id"] == band_headers.user_id


def test_create_band_requires_band_plan(client, pro_headers):
    response = create_band(client, pro_headers)
    assert response.status_code == 403
    assert response.json()["error"] == "Tu dois avoir le plan Band pour creer un groupe"


def test_invitation_flow(client, band_headers, make_user, db):
    band = create_band(client, band_headers).json()
    guest = make_user(username="batteur")

    invited = client.post(
        f"/api/v1/bands/{band['id']}/invitations", headers=band_headers, json={"invitee_id": guest.user_id}
    )
    again = client.post(
        f"/api/v1/bands/{band['id']}/invitations", headers=band_headers, json={"invitee_id": guest.user_id}
    )

    assert invited.status_code == 201
    assert again.json()["error"] == "Une invitation est deja en attente"

    pending = client.get("/api/v1/bands/invitations/pending", headers=guest).json()
    assert pending[0]["band"]["name"] == "Les Riffs"

    accepted = client.post(f"/api/v1/bands/invitations/{invited.json()['id']}/accept", headers=guest)
    assert accepted.json()["role"] == "member"
    assert db.rows("activities")[-1]["metadata"] == {"band_name": "Les Riffs"}
    assert client.get(f"/api/v1/bands/{band['id']}", headers=guest).status_code == 200


def test_invite_existing_member(client, band_headers):
    band = create_band(client, band_headers).json()
    response = client.post(
        f"/api/v1/bands/{band['id']}/invitations", headers=band_headers, json={"invitee_id": band_headers.user_id}
    )
    assert response.status_code == 400


def test_non_member_cannot_view(client, band_headers, make_user):
    band = create_band(client, band_headers).json()
    response = client.get(f"/api/v1/bands/{band['id']}", headers=make_user())
    assert response.status_code == 403
    assert response.json()["error"] == "Tu n'es pas membre de ce groupe"


def test_owner_cannot_leave(client, band_headers):
    band = create_band(client, band_headers).json()
    response = client.post(f"/api/v1/bands/{band['id']}/leave", headers=band_headers)
    assert response.status_code == 400


def test_remove_member(client, band_headers, make_user, db):
    band = create_band(client, band_headers).json()
    member = make_user()
    db.seed("band_members", {"band_id": band["id"], "user_id": member.user_id, "role": "member"})

    forbidden = client.delete(f"/api/v1/bands/{band['id']}/members/{band_headers.user_id}", headers=member)
    removed = client.delete(f"/api/v1/bands/{band['id']}/members/{member.user_id}", headers=band_headers)

    assert forbidden.status_code == 403
    assert removed.status_code == 204
    assert [m["user_id"] for m in db.rows("band_members")] == [band_headers.user_id]


def test_members_songs(client, band_headers, make_user, db):
    band = create_band(client, band_headers).json()
    member = make_user()
    db.seed("band_members", {"band_id": band["id"], "user_id": member.user_id, "role": "member"})
    db.seed("songs", {"user_id": member.user_id, "title": "Creep", "artist": "Radiohead"})

    libraries = client.get(f"/api/v1/bands/{band['id']}/songs", headers=band_headers).json()

    by_member = {entry["member"]["id"]: [s["title"] for s in entry["songs"]] for entry in libraries}
    assert by_member == {band_headers.user_id: [], member.user_id: ["Creep"]}


def test_invite_search_excludes_members(client, band_headers, make_user):
    band = create_band(client, band_headers).json()
    make_user(username="guitar_hero")
    client.put("/api/v1/profiles/me", headers=band_headers, json={"username": "guitar_boss"})

    results = client.get(f"/api/v1/bands/{band['id']}/invite-search?q=guitar", headers=band_headers).json()

    assert [p["username"] for p in results] == ["guitar_hero"]
