"""Plan gating and error body shape."""

import pytest


PAID_ENDPOINTS = [
    ("post", "/api/v1/audio/identify", "Fonctionnalité réservée aux plans Pro et Band"),
    ("get", "/api/v1/tabs/search", "Fonctionnalité Pro/Band uniquement"),
    ("get", "/api/v1/tabs/search?title=One&artist=Metallica", "Fonctionnalité Pro/Band uniquement"),
    ("get", "/api/v1/spotify/auth", "Fonctionnalité Pro/Band uniquement"),
    ("get", "/api/v1/spotify/playlists", "Fonctionnalité Pro/Band uniquement"),
    ("get", "/api/v1/spotify/recently-played", "Fonctionnalité Pro/Band uniquement"),
    ("get", "/api/v1/spotify/audio-features", "Fonctionnalité Pro/Band uniquement"),
    ("post", "/api/v1/spotify/songs/song-1/audio-features", "Fonctionnalité réservée aux plans Pro et Band"),
]


@pytest.mark.parametrize("method,url,message", PAID_ENDPOINTS)
def test_free_plan_is_rejected(client, auth_headers, method, url, message):
    """Test a free profile gets 403 on paid features whatever the payload."""
    response = getattr(client, method)(url, headers=auth_headers)
    assert response.status_code == 403
    assert response.json() == {"error": message}


def test_free_plan_rejected_before_body_validation(client, auth_headers):
    """Test an invalid import payload still yields 403 for a free profile."""
    response = client.post(
        "/api/v1/spotify/playlists/pl1/import",
        headers=auth_headers,
        json={"track_ids": "not-a-list"},
    )
    assert response.status_code == 403


def test_band_features_require_band_plan(client, pro_headers):
    """Test bands and jam sessions are reserved to the Band plan."""
    response = client.post("/api/v1/bands", headers=pro_headers, json={})
    assert response.status_code == 403
    assert response.json()["error"] == "Tu dois avoir le plan Band pour creer un groupe"

    response = client.post("/api/v1/jam-sessions", headers=pro_headers, json={"band_id": "b1"})
    assert response.status_code == 403
    assert response.json()["error"] == "Tu dois avoir le plan Band pour demarrer une Jam"


def test_missing_profile_counts_as_free(client, db):
    """Test a user without a profile row is treated as free."""
    db.add_user("orphan-token", "orphan")
    response = client.get(
        "/api/v1/tabs/search?title=One&artist=Metallica",
        headers={"Authorization": "Bearer orphan-token"},
    )
    assert response.status_code == 403


def test_unauthenticated_request(client):
    """Test a request without token gets a 401 error body."""
    response = client.get("/api/v1/songs")
    assert response.status_code == 401
    assert response.json() == {"error": "Non authentifié"}


def test_invalid_token(client):
    response = client.get("/api/v1/songs", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401


def test_session_cookie_is_accepted(client, auth_headers):
    """Test the access_token cookie authenticates like the bearer header."""
    token = auth_headers["Authorization"].split(" ", 1)[1]
    client.cookies.set("access_token", token)
    response = client.get("/api/v1/songs")
    assert response.status_code == 200


def test_validation_error_shape(client, auth_headers):
    """Test request validation errors are reported as 400 with details."""
    response = client.post("/api/v1/songs", headers=auth_headers, json={"title": ""})
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Requête invalide"
    assert body["details"]


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Frame-Options"] == "DENY"
