"""Tab search across Songsterr and Ultimate Guitar."""

import httpx


def songsterr_results(count):
    return [
        {"id": 100 + i, "title": f"One {i}", "artist": {"name": "Metallica"}}
        for i in range(count)
    ]


def test_search_combines_sources(client, pro_headers, http_stub):
    """Test Songsterr results come first, capped at 10, then the Ultimate Guitar link."""
    http_stub.handler = lambda request: httpx.Response(200, json=songsterr_results(12))

    response = client.get("/api/v1/tabs/search?title=One&artist=Metallica", headers=pro_headers)

    assert response.status_code == 200
    sources = response.json()["sources"]
    assert len(sources) == 11
    assert all(s["source"] == "songsterr" for s in sources[:10])
    assert sources[0] == {
        "source": "songsterr",
        "title": "One 0",
        "artist": "Metallica",
        "url": "https://www.songsterr.com/a/wsa/100",
    }
    assert sources[-1] == {
        "source": "ultimate_guitar",
        "title": "One - Metallica",
        "artist": "Metallica",
        "url": "https://www.ultimate-guitar.com/search.php?search_type=title&value=Metallica%20One",
        "type": "Tabs & Chords",
    }
    assert http_stub.requests[0].url.params["pattern"] == "Metallica One"


def test_songsterr_failure_yields_only_ultimate_guitar(client, pro_headers, http_stub):
    """Test an upstream error on Songsterr is not surfaced."""
    http_stub.handler = lambda request: httpx.Response(503)

    response = client.get("/api/v1/tabs/search?title=One&artist=Metallica", headers=pro_headers)

    assert response.status_code == 200
    sources = response.json()["sources"]
    assert [s["source"] for s in sources] == ["ultimate_guitar"]


def test_search_requires_title_and_artist(client, pro_headers):
    response = client.get("/api/v1/tabs/search?title=One", headers=pro_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "title et artist requis"
