"""Activity feed."""


def test_feed_shows_friends_only(client, make_user, db):
    me = make_user()
    friend = make_user(username="hendrix")
    stranger = make_user()
    db.seed("friendships", {"requester_id": me.user_id, "addressee_id": friend.user_id, "status": "accepted"})
    song = db.seed("songs", {"user_id": friend.user_id, "title": "Little Wing", "artist": "Hendrix"})
    db.seed(
        "activities",
        {"user_id": friend.user_id, "type": "song_added", "reference_id": song["id"], "metadata": {}},
        {"user_id": stranger.user_id, "type": "song_added", "metadata": {}},
        {"user_id": friend.user_id, "type": "song_mastered", "reference_id": song["id"], "metadata": {}},
    )

    feed = client.get("/api/v1/feed", headers=me).json()

    assert [a["type"] for a in feed] == ["song_mastered", "song_added"]
    assert feed[0]["user"]["username"] == "hendrix"
    assert feed[0]["song"]["title"] == "Little Wing"


def test_private_covers_are_not_attached(client, make_user, db):
    me = make_user()
    friend = make_user()
    db.seed("friendships", {"requester_id": friend.user_id, "addressee_id": me.user_id, "status": "accepted"})
    cover = db.seed("covers", {"user_id": friend.user_id, "song_id": "s", "visibility": "private"})
    db.seed("activities", {"user_id": friend.user_id, "type": "cover_posted", "reference_id": cover["id"], "metadata": {}})

    feed = client.get("/api/v1/feed", headers=me).json()

    assert feed[0]["cover"] is None


def test_empty_feed_without_friends(client, auth_headers):
    assert client.get("/api/v1/feed", headers=auth_headers).json() == []


def test_friend_recent_activities(client, make_user, db):
    me = make_user()
    friend = make_user()
    db.seed("activities", {"user_id": friend.user_id, "type": "song_added", "metadata": {}})

    assert client.get(f"/api/v1/feed/friends/{friend.user_id}", headers=me).json() == []

    db.seed("friendships", {"requester_id": me.user_id, "addressee_id": friend.user_id, "status": "accepted"})
    recent = client.get(f"/api/v1/feed/friends/{friend.user_id}", headers=me).json()
    assert [a["type"] for a in recent] == ["song_added"]
