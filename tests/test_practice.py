"""Practice sessions, statistics and exercises."""

from datetime import date, datetime, timezone

import pytest

from app.modules.practice import stats

NOW = datetime(2026, 3, 4, 18, 0, tzinfo=timezone.utc)  # a Wednesday


def session(practiced_at, minutes=30, **extra):
    return {"practiced_at": practiced_at, "duration_minutes": minutes, **extra}


@pytest.mark.parametrize("days,current,longest", [
    ([], 0, 0),
    ([date(2026, 3, 4), date(2026, 3, 3), date(2026, 3, 2)], 3, 3),
    ([date(2026, 3, 3), date(2026, 3, 2)], 2, 2),
    ([date(2026, 3, 1), date(2026, 2, 10), date(2026, 2, 11), date(2026, 2, 12)], 0, 3),
    ([date(2026, 3, 4), date(2026, 3, 4), date(2026, 2, 20)], 1, 1),
])
def test_compute_streaks(days, current, longest):
    assert stats.compute_streaks(days, date(2026, 3, 4)) == {"current": current, "longest": longest}


def test_start_of_week_is_sunday():
    assert stats.start_of_week(NOW) == datetime(2026, 3, 1, tzinfo=timezone.utc)
    sunday = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)
    assert stats.start_of_week(sunday) == datetime(2026, 3, 1, tzinfo=timezone.utc)


def test_practice_stats():
    song = {"id": "s1", "title": "Tears in Heaven"}
    sessions = [
        session("2026-03-04T10:00:00+00:00", 40, song_id="s1", song=song),
        session("2026-03-03T10:00:00+00:00", 20, song_id="s1", song=song),
        session("2026-02-27T10:00:00Z", 15),
    ]

    result = stats.compute_practice_stats(sessions, NOW)

    assert result["totalSessions"] == 3
    assert result["totalMinutes"] == 75
    assert result["averageSessionLength"] == 25
    assert result["sessionsThisWeek"] == 2
    assert result["minutesThisWeek"] == 60
    assert result["currentStreak"] == 2
    assert result["longestStreak"] == 2
    assert result["mostPracticedSong"] == {"song": song, "count": 2}


def test_empty_practice_stats():
    result = stats.compute_practice_stats([], NOW)
    assert result["totalSessions"] == 0
    assert result["mostPracticedSong"] is None


def test_song_stats():
    sessions = [
        session("2026-03-04T10:00:00+00:00", 10, bpm_achieved=100),
        session("2026-03-02T10:00:00+00:00", 20),
        session("2026-03-01T10:00:00+00:00", 30, bpm_achieved=80),
    ]
    assert stats.compute_song_stats(sessions) == {
        "totalSessions": 3,
        "totalMinutes": 60,
        "lastPracticed": "2026-03-04T10:00:00+00:00",
        "averageBpm": 90,
        "bestBpm": 100,
    }


def test_heatmap_levels():
    sessions = [
        session("2026-03-04T10:00:00+00:00", 80),
        session("2026-03-03T10:00:00+00:00", 20),
        session("2026-03-03T18:00:00+00:00", 10),
    ]

    heatmap = stats.heatmap_data(sessions, 3, date(2026, 3, 4))

    assert heatmap["maxMinutes"] == 80
    assert heatmap["activeDays"] == 2
    assert [(d["date"], d["minutes"], d["sessions"], d["level"]) for d in heatmap["days"]] == [
        ("2026-03-02", 0, 0, 0),
        ("2026-03-03", 30, 2, 2),
        ("2026-03-04", 80, 1, 4),
    ]


def test_bpm_progress_needs_two_points():
    riff = {"title": "Riff", "artist": "A"}
    solo = {"title": "Solo", "artist": "B"}
    sessions = [
        session("2026-03-01T10:00:00+00:00", song_id="r", song=riff, bpm_achieved=80),
        session("2026-03-03T10:00:00+00:00", song_id="r", song=riff, bpm_achieved=100),
        session("2026-03-02T10:00:00+00:00", song_id="s", song=solo, bpm_achieved=120),
    ]

    progress = stats.bpm_progress_data(sessions)

    assert len(progress) == 1
    assert progress[0]["songId"] == "r"
    assert progress[0]["bestBpm"] == 100
    assert progress[0]["latestBpm"] == 100
    assert progress[0]["improvement"] == 25


def test_mood_and_song_distribution():
    song = {"title": "Riff"}
    sessions = [
        session("2026-03-01T10:00:00+00:00", 30, mood="good", song_id="r", song=song),
        session("2026-03-02T10:00:00+00:00", 10, mood="good"),
        session("2026-03-03T10:00:00+00:00", 10, mood="on_fire", song_id="r", song=song),
        session("2026-03-04T10:00:00+00:00", 10),
    ]

    moods = stats.mood_distribution(sessions)
    songs = stats.song_distribution(sessions)

    assert [(m["mood"], m["count"], m["percentage"]) for m in moods] == [("good", 2, 67), ("on_fire", 1, 33)]
    assert moods[0]["label"] == "Bien"
    assert songs == [{
        "songId": "r", "songTitle": "Riff", "songArtist": None, "coverUrl": None,
        "totalMinutes": 40, "totalSessions": 2, "percentage": 100,
    }]


def test_exercise_stats():
    rows = [
        {"sessions_count": 3, "total_practice_minutes": 30, "best_bpm": 90,
         "exercise": {"category": "technique", "starting_bpm": 60, "target_bpm": 120}},
        {"sessions_count": 1, "total_practice_minutes": 5, "best_bpm": 200,
         "exercise": {"category": "rythme", "starting_bpm": 80, "target_bpm": 160}},
    ]
    assert stats.exercise_stats(rows) == {
        "totalExercisesPracticed": 2,
        "totalExerciseMinutes": 35,
        "favoriteCategory": "technique",
        "averageBpmImprovement": 75,
    }


# API

def test_create_session_credits_challenge(client, auth_headers, db):
    challenge = db.seed("challenges", {
        "creator_id": auth_headers.user_id, "challenger_id": "rival",
        "challenge_type": "practice_time", "status": "active",
    })
    db.seed("challenge_progress", {"challenge_id": challenge["id"], "user_id": auth_headers.user_id, "practice_minutes": 10})

    response = client.post(
        "/api/v1/practice/sessions", headers=auth_headers, json={"duration_minutes": 25, "mood": "great"}
    )

    assert response.status_code == 201
    assert response.json()["practiced_at"]
    assert db.rows("challenge_progress")[0]["practice_minutes"] == 35


def test_invalid_session(client, auth_headers):
    response = client.post("/api/v1/practice/sessions", headers=auth_headers, json={"duration_minutes": 0})
    assert response.status_code == 400


def test_list_sessions_with_filters(client, auth_headers, db):
    song = db.seed("songs", {"user_id": auth_headers.user_id, "title": "Riff", "artist": "A"})
    db.seed(
        "practice_sessions",
        {"user_id": auth_headers.user_id, "song_id": song["id"], "duration_minutes": 10,
         "practiced_at": "2026-03-01T10:00:00+00:00", "mood": "good"},
        {"user_id": auth_headers.user_id, "duration_minutes": 20,
         "practiced_at": "2026-03-02T10:00:00+00:00", "mood": "neutral"},
        {"user_id": "someone-else", "duration_minutes": 5, "practiced_at": "2026-03-03T10:00:00+00:00"},
    )

    everything = client.get("/api/v1/practice/sessions", headers=auth_headers).json()
    good = client.get("/api/v1/practice/sessions?mood=good", headers=auth_headers).json()

    assert [s["duration_minutes"] for s in everything] == [20, 10]
    assert [s["song"]["title"] for s in good] == ["Riff"]


def test_session_not_found(client, auth_headers):
    assert client.get("/api/v1/practice/sessions/missing", headers=auth_headers).status_code == 404
    assert client.delete("/api/v1/practice/sessions/missing", headers=auth_headers).status_code == 404


def test_exercise_progress_accumulates(client, auth_headers, db):
    exercise = db.seed("exercises", {"name": "Spider", "category": "technique", "difficulty": "beginner"})
    url = f"/api/v1/practice/exercises/{exercise['id']}/progress"

    client.post(url, headers=auth_headers, json={"current_bpm": 80, "duration_minutes": 10})
    progress = client.post(
        url, headers=auth_headers, json={"current_bpm": 70, "bpm_achieved": 75, "duration_minutes": 5}
    ).json()

    assert progress["best_bpm"] == 80
    assert progress["current_bpm"] == 70
    assert progress["total_practice_minutes"] == 15
    assert progress["sessions_count"] == 2

    listed = client.get("/api/v1/practice/exercises?category=technique", headers=auth_headers).json()
    assert listed[0]["user_progress"]["sessions_count"] == 2
    recent = client.get("/api/v1/practice/exercises/recent", headers=auth_headers).json()
    assert recent[0]["name"] == "Spider"


def test_record_session_exercise(client, auth_headers, db):
    practice = db.seed("practice_sessions", {
        "user_id": auth_headers.user_id, "duration_minutes": 30, "practiced_at": "2026-03-01T10:00:00+00:00",
    })

    response = client.post(
        f"/api/v1/practice/sessions/{practice['id']}/exercises", headers=auth_headers,
        json={"exercise_id": "e1", "duration_minutes": 10, "bpm_achieved": 90},
    )

    assert response.status_code == 201
    assert db.rows("practice_session_exercises")[0]["practice_session_id"] == practice["id"]
