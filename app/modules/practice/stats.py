"""
In-memory reductions over practice session rows: summary stats, per-song stats
and the progress-page charts (heatmap, BPM progress, mood and song distribution).
"""

from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Dict, Any

MOOD_CONFIG = {
    "frustrated": {"label": "Frustré", "emoji": "😤", "color": "#ef4444"},
    "neutral": {"label": "Neutre", "emoji": "😐", "color": "#6b7280"},
    "good": {"label": "Bien", "emoji": "🙂", "color": "#22c55e"},
    "great": {"label": "Super", "emoji": "😊", "color": "#3b82f6"},
    "on_fire": {"label": "On fire", "emoji": "🔥", "color": "#f97316"},
}


def parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def start_of_week(now: datetime) -> datetime:
    """Midnight of the most recent Sunday"""
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight - timedelta(days=(midnight.weekday() + 1) % 7)


def compute_streaks(days: List[date], today: date) -> Dict[str, int]:
    """Current streak (run ending today or yesterday) and longest run of consecutive days"""
    unique_days = sorted(set(days), reverse=True)
    if not unique_days:
        return {"current": 0, "longest": 0}

    runs = []
    run = 1
    for previous, current in zip(unique_days, unique_days[1:]):
        if (previous - current).days == 1:
            run += 1
        else:
            runs.append(run)
            run = 1
    runs.append(run)

    current_streak = runs[0] if (today - unique_days[0]).days <= 1 else 0
    return {"current": current_streak, "longest": max(runs)}


def compute_practice_stats(sessions: List[Dict[str, Any]], now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    if not sessions:
        return {
            "totalSessions": 0,
            "totalMinutes": 0,
            "averageSessionLength": 0,
            "sessionsThisWeek": 0,
            "minutesThisWeek": 0,
            "currentStreak": 0,
            "longestStreak": 0,
            "mostPracticedSong": None,
        }

    total_minutes = sum(s["duration_minutes"] for s in sessions)
    week_start = start_of_week(now)
    this_week = [s for s in sessions if parse_timestamp(s["practiced_at"]) >= week_start]
    streaks = compute_streaks([parse_timestamp(s["practiced_at"]).date() for s in sessions], now.date())

    song_counts: Dict[str, Dict[str, Any]] = {}
    for session in sessions:
        song = session.get("song")
        if session.get("song_id") and song:
            entry = song_counts.setdefault(session["song_id"], {"song": song, "count": 0})
            entry["count"] += 1
    most_practiced = None
    for entry in song_counts.values():
        if most_practiced is None or entry["count"] > most_practiced["count"]:
            most_practiced = entry

    return {
        "totalSessions": len(sessions),
        "totalMinutes": total_minutes,
        "averageSessionLength": round(total_minutes / len(sessions)),
        "sessionsThisWeek": len(this_week),
        "minutesThisWeek": sum(s["duration_minutes"] for s in this_week),
        "currentStreak": streaks["current"],
        "longestStreak": streaks["longest"],
        "mostPracticedSong": most_practiced,
    }


def compute_song_stats(sessions: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Sessions are expected newest first"""
    if not sessions:
        return {
            "totalSessions": 0,
            "totalMinutes": 0,
            "lastPracticed": None,
            "averageBpm": None,
            "bestBpm": None,
        }
    bpms = [s["bpm_achieved"] for s in sessions if s.get("bpm_achieved") is not None]
    return {
        "totalSessions": len(sessions),
        "totalMinutes": sum(s["duration_minutes"] for s in sessions),
        "lastPracticed": sessions[0]["practiced_at"],
        "averageBpm": round(sum(bpms) / len(bpms)) if bpms else None,
        "bestBpm": max(bpms) if bpms else None,
    }


def heatmap_data(sessions: List[Dict[str, Any]], days_back: int, today: date) -> Dict[str, Any]:
    per_day: Dict[str, Dict[str, int]] = {}
    for session in sessions:
        key = parse_timestamp(session["practiced_at"]).date().isoformat()
        entry = per_day.setdefault(key, {"minutes": 0, "sessions": 0})
        entry["minutes"] += session["duration_minutes"]
        entry["sessions"] += 1

    max_minutes = max([d["minutes"] for d in per_day.values()] + [1])
    days = []
    for offset in range(days_back - 1, -1, -1):
        key = (today - timedelta(days=offset)).isoformat()
        entry = per_day.get(key, {"minutes": 0, "sessions": 0})
        level = 0
        if entry["minutes"] > 0:
            ratio = entry["minutes"] / max_minutes
            if ratio <= 0.25:
                level = 1
            elif ratio <= 0.5:
                level = 2
            elif ratio <= 0.75:
                level = 3
            else:
                level = 4
        days.append({"date": key, "minutes": entry["minutes"], "sessions": entry["sessions"], "level": level})

    return {
        "days": days,
        "maxMinutes": max_minutes,
        "totalDays": days_back,
        "activeDays": len([d for d in days if d["minutes"] > 0]),
    }


def bpm_progress_data(sessions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Per-song BPM series, only for songs with at least two measured sessions"""
    by_song: Dict[str, Dict[str, Any]] = {}
    for session in sessions:
        song = session.get("song")
        if not session.get("song_id") or not song or not session.get("bpm_achieved"):
            continue
        entry = by_song.setdefault(session["song_id"], {"song": song, "points": []})
        entry["points"].append({
            "date": parse_timestamp(session["practiced_at"]).date().isoformat(),
            "bpm": session["bpm_achieved"],
        })

    result = []
    for song_id, entry in by_song.items():
        if len(entry["points"]) < 2:
            continue
        points = sorted(entry["points"], key=lambda p: p["date"])
        bpms = [p["bpm"] for p in points]
        first_bpm, latest_bpm = bpms[0], bpms[-1]
        result.append({
            "songId": song_id,
            "songTitle": entry["song"].get("title"),
            "songArtist": entry["song"].get("artist"),
            "coverUrl": entry["song"].get("cover_url"),
            "points": [{**p, "songTitle": entry["song"].get("title")} for p in points],
            "bestBpm": max(bpms),
            "latestBpm": latest_bpm,
            "improvement": round((latest_bpm - first_bpm) / first_bpm * 100) if first_bpm > 0 else 0,
        })
    return sorted(result, key=lambda r: len(r["points"]), reverse=True)


def mood_distribution(sessions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    counts: Dict[str, int] = {}
    for session in sessions:
        if session.get("mood"):
            counts[session["mood"]] = counts.get(session["mood"], 0) + 1
    total = sum(counts.values())
    if not total:
        return []
    return [
        {"mood": mood, "count": counts[mood], "percentage": round(counts[mood] / total * 100), **config}
        for mood, config in MOOD_CONFIG.items()
        if counts.get(mood)
    ]


def song_distribution(sessions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Top 10 songs by practice time"""
    by_song: Dict[str, Dict[str, Any]] = {}
    for session in sessions:
        song = session.get("song")
        if not session.get("song_id") or not song:
            continue
        entry = by_song.setdefault(session["song_id"], {"song": song, "minutes": 0, "sessions": 0})
        entry["minutes"] += session["duration_minutes"]
        entry["sessions"] += 1
    total_minutes = sum(e["minutes"] for e in by_song.values())
    if not total_minutes:
        return []
    result = [
        {
            "songId": song_id,
            "songTitle": e["song"].get("title"),
            "songArtist": e["song"].get("artist"),
            "coverUrl": e["song"].get("cover_url"),
            "totalMinutes": e["minutes"],
            "totalSessions": e["sessions"],
            "percentage": round(e["minutes"] / total_minutes * 100),
        }
        for song_id, e in by_song.items()
    ]
    return sorted(result, key=lambda r: r["totalMinutes"], reverse=True)[:10]


def exercise_stats(user_exercises: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Summary of exercise progress rows that carry their catalogue entry under 'exercise'"""
    category_sessions: Dict[str, int] = {}
    improvements = []
    for row in user_exercises:
        exercise = row.get("exercise") or {}
        category = exercise.get("category")
        if category:
            category_sessions[category] = category_sessions.get(category, 0) + (row.get("sessions_count") or 0)
        starting, target = exercise.get("starting_bpm"), exercise.get("target_bpm")
        best = row.get("best_bpm") or 0
        if starting is not None and target and target > starting and best > starting:
            improvements.append(min((best - starting) / (target - starting) * 100, 100))

    favorite = None
    if category_sessions and max(category_sessions.values()) > 0:
        favorite = max(category_sessions.items(), key=lambda item: item[1])[0]
    return {
        "totalExercisesPracticed": len(user_exercises),
        "totalExerciseMinutes": sum(row.get("total_practice_minutes") or 0 for row in user_exercises),
        "favoriteCategory": favorite,
        "averageBpmImprovement": round(sum(improvements) / len(improvements)) if improvements else 0,
    }
