"""Friend requests, search, limits and blocking."""


def send_request(client, headers, addressee_id):
    return client.post("/api/v1/friends/requests", headers=headers, json={"addressee_id": addressee_id})


def test_request_accept_flow(client, make_user, db):
    alice = make_user(username="alice")
    bob = make_user(username="bob")

    sent = send_request(client, alice, bob.user_id)
    assert sent.status_code == 201

    pending = client.get("/api/v1/friends/requests/pending", headers=bob).json()
    assert [r["requester"]["username"] for r in pending] == ["alice"]
    assert client.get("/api/v1/friends/requests/pending/count", headers=bob).json() == {"count": 1}

    accepted = client.post(f"/api/v1/friends/requests/{sent.json()['id']}/accept", headers=bob)
    assert accepted.json()["status"] == "accepted"

    friends = client.get("/api/v1/friends", headers=alice).json()
    assert [f["profile"]["username"] for f in friends] == ["bob"]
    activity = db.rows("activities")[0]
    assert activity["type"] == "friend_added"
    assert activity["metadata"] == {"friend_username": "alice"}


def test_cannot_add_self(client, auth_headers):
    response = send_request(client, auth_headers, auth_headers.user_id)
    assert response.status_code == 400
    assert response.json()["error"] == "Tu ne peux pas t'ajouter toi-même"


def test_duplicate_request(client, make_user):
    alice = make_user()
    bob = make_user()
    send_request(client, alice, bob.user_id)

    response = send_request(client, bob, alice.user_id)

    assert response.status_code == 400
    assert response.json()["error"] == "Une demande est déjà en attente"


def test_only_addressee_can_accept(client, make_user):
    alice = make_user()
    bob = make_user()
    request_id = send_request(client, alice, bob.user_id).json()["id"]

    response = client.post(f"/api/v1/friends/requests/{request_id}/accept", headers=alice)

    assert response.status_code == 404


def test_free_plan_friend_limit(client, make_user, db):
    """Test a free user with five friends cannot send another request."""
    alice = make_user()
    for i in range(5):
        db.seed("friendships", {"requester_id": alice.user_id, "addressee_id": f"friend-{i}", "status": "accepted"})

    response = send_request(client, alice, make_user().user_id)

    assert response.status_code == 403
    assert response.json()["error"] == "Tu as atteint la limite de 5 amis. Passe en Pro pour en ajouter plus !"
    limit = client.get("/api/v1/friends/limit", headers=alice).json()
    assert limit == {"isLimited": True, "current": 5, "limit": 5}


def test_paid_plan_is_unlimited(client, make_user, db):
    alice = make_user(plan="pro")
    for i in range(5):
        db.seed("friendships", {"requester_id": alice.user_id, "addressee_id": f"friend-{i}", "status": "accepted"})

    assert send_request(client, alice, make_user().user_id).status_code == 201
    assert client.get("/api/v1/friends/limit", headers=alice).json() == {"isLimited": False, "current": 5, "limit": None}


def test_search_reports_relation(client, make_user):
    alice = make_user(username="alice")
    make_user(username="alicia")
    bob = make_user(username="alibob")
    send_request(client, alice, bob.user_id)

    results = client.get("/api/v1/friends/search?q=ali", headers=alice).json()

    statuses = {r["username"]: r["friendshipStatus"] for r in results}
    assert statuses == {"alice": "self", "alicia": "none", "alibob": "pending"}


def test_blank_search(client, auth_headers):
    assert client.get("/api/v1/friends/search?q=%20", headers=auth_headers).json() == []


def test_reject_and_remove(client, make_user, db):
    alice = make_user()
    bob = make_user()
    request_id = send_request(client, alice, bob.user_id).json()["id"]
    assert client.post(f"/api/v1/friends/requests/{request_id}/reject", headers=bob).status_code == 204
    assert db.rows("friendships") == []

    friendship = db.seed("friendships", {"requester_id": alice.user_id, "addressee_id": bob.user_id, "status": "accepted"})
    assert client.delete(f"/api/v1/friends/{friendship['id']}", headers=bob).status_code == 204
    assert db.rows("friendships") == []


def test_block_replaces_friendship(client, make_user, db):
    alice = make_user()
    bob = make_user()
    db.seed("friendships", {"requester_id": bob.user_id, "addressee_id": alice.user_id, "status": "accepted"})

    response = client.post("/api/v1/friends/block", headers=alice, json={"user_id": bob.user_id})

    assert response.status_code == 201
    rows = db.rows("friendships")
    assert len(rows) == 1
    assert (rows[0]["requester_id"], rows[0]["status"]) == (alice.user_id, "blocked")
    assert send_request(client, bob, alice.user_id).json()["error"] == "Impossible d'envoyer une demande"


def test_friend_profile(client, make_user, db):
    alice = make_user()
    bob = make_user(username="bob")
    db.seed("friendships", {"requester_id": alice.user_id, "addressee_id": bob.user_id, "status": "accepted"})
    song = db.seed("songs", {"user_id": bob.user_id, "title": "Layla", "artist": "Derek", "status": "mastered"})
    db.seed(
        "covers",
        {"user_id": bob.user_id, "song_id": song["id"], "visibility": "friends"},
        {"user_id": bob.user_id, "song_id": song["id"], "visibility": "private"},
    )

    profile = client.get(f"/api/v1/friends/{bob.user_id}/profile", headers=alice).json()

    assert profile["profile"]["username"] == "bob"
    assert profile["stats"] == {"totalSongs": 1, "masteredSongs": 1, "totalCovers": 1}
    assert profile["covers"][0]["song"]["title"] == "Layla"


def test_non_friend_profile_is_404(client, make_user):
    response = client.get(f"/api/v1/friends/{make_user().user_id}/profile", headers=make_user())
    assert response.status_code == 404
