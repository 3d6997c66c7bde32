"""Song identification through AudD."""

import httpx
import pytest

from app.config.settings import settings


@pytest.fixture
def audd_token(monkeypatch):
    monkeypatch.setattr(settings, "audd_api_token", "audd-token")


def identify(client, headers, content=b"fake-webm"):
    return client.post(
        "/api/v1/audio/identify",
        headers=headers,
        files={"audio": ("recording.webm", content, "audio/webm")},
    )


def test_identify_match(client, pro_headers, http_stub, audd_token):
    """Test a match is mapped with Spotify album data as fallback."""
    http_stub.handler = lambda request: httpx.Response(200, json={
        "status": "success",
        "result": {
            "title": "Wish You Were Here",
            "artist": "Pink Floyd",
            "album": None,
            "release_date": "1975-09-12",
            "spotify": {
                "id": "sp123",
                "preview_url": "https://p.scdn.co/preview",
                "album": {"name": "Wish You Were Here", "images": [{"url": "https://i.scdn.co/cover"}]},
            },
        },
    })

    response = identify(client, pro_headers)

    assert response.status_code == 200
    assert response.json()["result"] == {
        "title": "Wish You Were Here",
        "artist": "Pink Floyd",
        "album": "Wish You Were Here",
        "release_date": "1975-09-12",
        "cover_url": "https://i.scdn.co/cover",
        "spotify_id": "sp123",
        "preview_url": "https://p.scdn.co/preview",
    }
    sent = http_stub.requests[0]
    assert str(sent.url) == "https://api.audd.io/"
    assert b"audd-token" in sent.content
    assert b"recording.webm" in sent.content


def test_identify_no_match(client, pro_headers, http_stub, audd_token):
    http_stub.handler = lambda request: httpx.Response(200, json={"status": "success", "result": None})

    response = identify(client, pro_headers)

    assert response.status_code == 200
    assert response.json() == {"result": None, "message": "Morceau non reconnu"}


def test_identify_defaults_unknown_fields(client, pro_headers, http_stub, audd_token):
    http_stub.handler = lambda request: httpx.Response(200, json={"status": "success", "result": {}})

    response = identify(client, pro_headers)

    result = response.json()["result"]
    assert result["title"] == "Inconnu"
    assert result["artist"] == "Inconnu"


@pytest.mark.parametrize("upstream", [
    httpx.Response(500),
    httpx.Response(200, json={"status": "error", "error": {"error_code": 900}}),
])
def test_identify_upstream_error(client, pro_headers, http_stub, audd_token, upstream):
    """Test AudD failures become a 502."""
    http_stub.handler = lambda request: upstream

    response = identify(client, pro_headers)

    assert response.status_code == 502
    assert response.json()["error"] == "Erreur du service de reconnaissance"


def test_identify_requires_file(client, pro_headers, audd_token):
    response = client.post("/api/v1/audio/identify", headers=pro_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "Aucun fichier audio fourni"


def test_identify_without_token(client, pro_headers, monkeypatch):
    monkeypatch.setattr(settings, "audd_api_token", None)
    response = identify(client, pro_headers)
    assert response.status_code == 500
    assert response.json()["error"] == "Service de reconnaissance non configuré"
