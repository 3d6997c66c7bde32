"""Profiles, avatars, favourites and visibility rules."""

import pytest


def test_my_profile_with_stats(client, auth_headers, db):
    song = db.seed("songs", {"user_id": auth_headers.user_id, "title": "A", "artist": "B", "status": "mastered"})
    db.seed("songs", {"user_id": auth_headers.user_id, "title": "C", "artist": "D", "status": "learning"})
    db.seed("friendships", {"requester_id": "other", "addressee_id": auth_headers.user_id, "status": "accepted"})
    db.seed("favorite_songs", {"user_id": auth_headers.user_id, "song_id": song["id"], "position": 1})

    profile = client.get("/api/v1/profiles/me", headers=auth_headers).json()

    assert profile["stats"] == {"totalSongs": 2, "masteredSongs": 1, "totalCovers": 0, "friendsCount": 1}
    assert profile["favorite_songs"][0]["song"]["title"] == "A"
    assert profile["favorite_albums"] == []


def test_bio_limit(client, auth_headers):
    response = client.put("/api/v1/profiles/me", headers=auth_headers, json={"bio": "x" * 161})
    assert response.status_code == 400
    assert response.json()["error"] == "La bio ne peut pas dépasser 160 caractères"

    ok = client.put("/api/v1/profiles/me", headers=auth_headers, json={"bio": "x" * 160})
    assert ok.json()["bio"] == "x" * 160


def test_username_taken(client, make_user):
    make_user(username="slash")
    headers = make_user()

    response = client.put("/api/v1/profiles/me", headers=headers, json={"username": "slash"})

    assert response.status_code == 400
    assert response.json()["error"] == "Ce nom d'utilisateur est déjà pris"


def test_keeping_own_username(client, make_user):
    headers = make_user(username="slash")
    response = client.put("/api/v1/profiles/me", headers=headers, json={"username": "slash", "display_name": "Slash"})
    assert response.json()["display_name"] == "Slash"


def test_avatar_upload_replaces_previous(client, auth_headers, db):
    bucket = db.storage.from_("avatars")
    bucket.upload(f"{auth_headers.user_id}/avatar.jpg", b"old")

    response = client.post(
        "/api/v1/profiles/me/avatar",
        headers=auth_headers,
        files={"avatar": ("me.png", b"\x89PNG", "image/png")},
    )

    assert response.status_code == 200
    url = response.json()["url"]
    assert url.endswith(f"/avatars/{auth_headers.user_id}/avatar.png")
    assert list(db.storage.files["avatars"]) == [f"{auth_headers.user_id}/avatar.png"]
    profile = next(p for p in db.rows("profiles") if p["id"] == auth_headers.user_id)
    assert profile["avatar_url"] == url


@pytest.mark.parametrize("files,message", [
    (None, "Aucun fichier fourni"),
    ({"avatar": ("notes.txt", b"hello", "text/plain")}, "Le fichier doit être une image"),
    ({"avatar": ("big.png", b"0" * (2 * 1024 * 1024 + 1), "image/png")}, "L'image ne doit pas dépasser 2MB"),
])
def test_avatar_validation(client, auth_headers, files, message):
    response = client.post("/api/v1/profiles/me/avatar", headers=auth_headers, files=files)
    assert response.status_code == 400
    assert response.json()["error"] == message


def test_favorite_song_slots(client, auth_headers, db):
    first = db.seed("songs", {"user_id": auth_headers.user_id, "title": "A", "artist": "B"})
    second = db.seed("songs", {"user_id": auth_headers.user_id, "title": "C", "artist": "D"})

    client.put("/api/v1/profiles/me/favorite-songs", headers=auth_headers, json={"song_id": first["id"], "position": 2})
    client.put("/api/v1/profiles/me/favorite-songs", headers=auth_headers, json={"song_id": second["id"], "position": 2})

    favorites = db.rows("favorite_songs")
    assert [(f["song_id"], f["position"]) for f in favorites] == [(second["id"], 2)]

    assert client.delete("/api/v1/profiles/me/favorite-songs/2", headers=auth_headers).status_code == 204
    assert client.delete("/api/v1/profiles/me/favorite-songs/2", headers=auth_headers).status_code == 404
    assert client.delete("/api/v1/profiles/me/favorite-songs/5", headers=auth_headers).status_code == 400


def test_favorite_song_must_be_owned(client, auth_headers, db):
    foreign = db.seed("songs", {"user_id": "someone-else", "title": "A", "artist": "B"})
    response = client.put(
        "/api/v1/profiles/me/favorite-songs", headers=auth_headers, json={"song_id": foreign["id"], "position": 1}
    )
    assert response.status_code == 404


def test_favorite_album(client, auth_headers, db):
    response = client.put(
        "/api/v1/profiles/me/favorite-albums",
        headers=auth_headers,
        json={"album_name": "Rumours", "artist_name": "Fleetwood Mac", "position": 1},
    )
    assert response.json()["album_name"] == "Rumours"
    assert db.rows("favorite_albums")[0]["user_id"] == auth_headers.user_id


@pytest.fixture
def private_owner(make_user, db):
    owner = make_user(username="private", is_private=True)
    song = db.seed("songs", {"user_id": owner.user_id, "title": "A", "artist": "B"})
    db.seed(
        "covers",
        {"user_id": owner.user_id, "song_id": song["id"], "visibility": "public"},
        {"user_id": owner.user_id, "song_id": song["id"], "visibility": "friends"},
        {"user_id": owner.user_id, "song_id": song["id"], "visibility": "private"},
    )
    return owner


def test_private_profile_for_stranger(client, private_owner, make_user):
    """Test a stranger only sees public covers and no library on a private profile."""
    profile = client.get(f"/api/v1/profiles/{private_owner.user_id}", headers=make_user()).json()

    assert profile["friendship_status"] == "none"
    assert profile["recent_songs"] is None
    assert profile["favorite_songs"] is None
    assert profile["stats"]["totalSongs"] is None
    assert [c["visibility"] for c in profile["recent_covers"]] == ["public"]
    assert profile["recent_covers"][0]["song"]["title"] == "A"


def test_private_profile_for_friend(client, private_owner, make_user, db):
    friend = make_user()
    db.seed("friendships", {"requester_id": friend.user_id, "addressee_id": private_owner.user_id, "status": "accepted"})

    profile = client.get(f"/api/v1/profiles/{private_owner.user_id}", headers=friend).json()

    assert profile["is_friend"] is True
    assert profile["stats"]["totalSongs"] == 1
    assert profile["stats"]["totalCovers"] == 2
    assert len(profile["recent_songs"]) == 1


def test_own_profile_shows_everything(client, private_owner):
    profile = client.get(f"/api/v1/profiles/{private_owner.user_id}", headers=private_owner).json()
    assert profile["friendship_status"] == "self"
    assert profile["stats"]["totalCovers"] == 3


def test_unknown_profile(client, auth_headers):
    assert client.get("/api/v1/profiles/nobody", headers=auth_headers).status_code == 404
