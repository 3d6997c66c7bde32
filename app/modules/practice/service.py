import logging
from datetime import datetime, timedelta, timezone
from supabase import Client
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
from app.modules.practice import stats
from app.modules.practice.schemas import (
    PracticeSessionCreate, PracticeSessionUpdate, ExerciseProgressInput, SessionExerciseInput
)

logger = logging.getLogger(__name__)


class PracticeService:
    def __init__(self, supabase: Client, challenges=None):
        self.supabase = supabase
        self.challenges = challenges

    def _attach_songs(self, sessions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        song_ids = list({s["song_id"] for s in sessions if s.get("song_id")})
        songs = {}
        if song_ids:
            result = self.supabase.table("songs").select("*").in_("id", song_ids).execute()
            songs = {s["id"]: s for s in result.data or []}
        for session in sessions:
            session["song"] = songs.get(session.get("song_id"))
        return sessions

    def list_sessions(
        self,
        user_id: str,
        song_id: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        mood: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Caller's sessions, newest first, with their song"""
        try:
            query = self.supabase.table("practice_sessions")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("practiced_at", desc=True)
            if song_id:
                query = query.eq("song_id", song_id)
            if start_date:
                query = query.gte("practiced_at", start_date)
            if end_date:
                query = query.lte("practiced_at", end_date)
            if mood:
                query = query.eq("mood", mood)
            if limit:
                query = query.limit(limit)
            result = query.execute()
            return self._attach_songs(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_session(self, session_id: str, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("practice_sessions")\
            .select("*")\
            .eq("id", session_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Session non trouvée")
        return self._attach_songs(result.data)[0]

    def create_session(self, data: PracticeSessionCreate, user_id: str) -> Dict[str, Any]:
        """Record a practice session and credit active challenges"""
        try:
            result = self.supabase.table("practice_sessions").insert({
                "user_id": user_id,
                "song_id": data.song_id,
                "duration_minutes": data.duration_minutes,
                "practiced_at": data.practiced_at or datetime.now(timezone.utc).isoformat(),
                "bpm_achieved": data.bpm_achieved,
                "mood": data.mood,
                "energy_level": data.energy_level,
                "sections_worked": data.sections_worked,
                "session_goals": data.session_goals,
                "goals_achieved": data.goals_achieved,
                "notes": data.notes,
            }).execute()
        except Exception as e:
            logger.error(f"Error creating practice session: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de l'enregistrement de la session")
        if not result.data:
            raise HTTPException(status_code=500, detail="Erreur lors de l'enregistrement de la session")

        if self.challenges is not None:
            self.challenges.record_practice(user_id, data.duration_minutes)
        return result.data[0]

    def update_session(self, session_id: str, data: PracticeSessionUpdate, user_id: str) -> Dict[str, Any]:
        update_data = data.model_dump(exclude_unset=True)
        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
        result = self.supabase.table("practice_sessions")\
            .update(update_data)\
            .eq("id", session_id)\
            .eq("user_id", user_id)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Session non trouvée")
        return result.data[0]

    def delete_session(self, session_id: str, user_id: str) -> bool:
        result = self.supabase.table("practice_sessions")\
            .delete()\
            .eq("id", session_id)\
            .eq("user_id", user_id)\
            .execute()
        return bool(result.data)

    def get_stats(self, user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        sessions = self.list_sessions(user_id)
        return stats.compute_practice_stats(sessions, now)

    def get_song_stats(self, song_id: str, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("practice_sessions")\
            .select("*")\
            .eq("user_id", user_id)\
            .eq("song_id", song_id)\
            .order("practiced_at", desc=True)\
            .execute()
        return stats.compute_song_stats(result.data or [])

    def get_chart_data(self, user_id: str, days_back: int = 365) -> Dict[str, Any]:
        """Heatmap, BPM progress, mood and song distribution over the last days_back days"""
        now = datetime.now(timezone.utc)
        since = (now - timedelta(days=days_back)).replace(hour=0, minute=0, second=0, microsecond=0)
        result = self.supabase.table("practice_sessions")\
            .select("*")\
            .eq("user_id", user_id)\
            .gte("practiced_at", since.isoformat())\
            .order("practiced_at")\
            .execute()
        sessions = self._attach_songs(result.data or [])
        return {
            "heatmap": stats.heatmap_data(sessions, days_back, now.date()),
            "bpmProgress": stats.bpm_progress_data(sessions),
            "moodDistribution": stats.mood_distribution(sessions),
            "songDistribution": stats.song_distribution(sessions),
        }

    def record_session_exercise(self, session_id: str, data: SessionExerciseInput, user_id: str) -> Dict[str, Any]:
        self.get_session(session_id, user_id)
        result = self.supabase.table("practice_session_exercises").insert({
            "practice_session_id": session_id,
            "exercise_id": data.exercise_id,
            "duration_minutes": data.duration_minutes,
            "bpm_achieved": data.bpm_achieved,
        }).execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="Erreur lors de l'enregistrement")
        return result.data[0]


class ExerciseService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _progress_by_exercise(self, user_id: str) -> Dict[str, Dict[str, Any]]:
        result = self.supabase.table("user_exercises")\
            .select("*")\
            .eq("user_id", user_id)\
            .execute()
        return {row["exercise_id"]: row for row in result.data or []}

    def list_exercises(
        self,
        user_id: str,
        category: Optional[str] = None,
        difficulty: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Exercise catalogue with the caller's progress on each"""
        query = self.supabase.table("exercises")\
            .select("*")\
            .order("category")\
            .order("difficulty")\
            .order("name")
        if category:
            query = query.eq("category", category)
        if difficulty:
            query = query.eq("difficulty", difficulty)
        exercises = query.execute().data or []
        progress = self._progress_by_exercise(user_id)
        return [{**exercise, "user_progress": progress.get(exercise["id"])} for exercise in exercises]

    def get_exercise(self, exercise_id: str, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("exercises")\
            .select("*")\
            .eq("id", exercise_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Exercice non trouvé")
        return {**result.data[0], "user_progress": self._get_progress(exercise_id, user_id)}

    def _get_progress(self, exercise_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("user_exercises")\
            .select("*")\
            .eq("user_id", user_id)\
            .eq("exercise_id", exercise_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def update_progress(self, exercise_id: str, data: ExerciseProgressInput, user_id: str) -> Dict[str, Any]:
        """Create or accumulate progress: best BPM is kept, minutes and sessions add up"""
        achieved = data.bpm_achieved or data.current_bpm
        now = datetime.now(timezone.utc).isoformat()
        existing = self._get_progress(exercise_id, user_id)
        if existing:
            result = self.supabase.table("user_exercises")\
                .update({
                    "current_bpm": data.current_bpm,
                    "best_bpm": max(existing.get("best_bpm") or 0, achieved),
                    "total_practice_minutes": (existing.get("total_practice_minutes") or 0) + data.duration_minutes,
                    "sessions_count": (existing.get("sessions_count") or 0) + 1,
                    "last_practiced_at": now,
                })\
                .eq("id", existing["id"])\
                .execute()
        else:
            result = self.supabase.table("user_exercises").insert({
                "user_id": user_id,
                "exercise_id": exercise_id,
                "current_bpm": data.current_bpm,
                "best_bpm": achieved,
                "total_practice_minutes": data.duration_minutes,
                "sessions_count": 1,
                "last_practiced_at": now,
            }).execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="Erreur lors de la mise à jour")
        return result.data[0]

    def _progress_with_exercises(self, user_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        query = self.supabase.table("user_exercises")\
            .select("*")\
            .eq("user_id", user_id)\
            .order("last_practiced_at", desc=True)
        if limit:
            query = query.limit(limit)
        rows = query.execute().data or []
        exercise_ids = [row["exercise_id"] for row in rows]
        exercises = {}
        if exercise_ids:
            result = self.supabase.table("exercises").select("*").in_("id", exercise_ids).execute()
            exercises = {e["id"]: e for e in result.data or []}
        for row in rows:
            row["exercise"] = exercises.get(row["exercise_id"])
        return rows

    def get_stats(self, user_id: str) -> Dict[str, Any]:
        return stats.exercise_stats(self._progress_with_exercises(user_id))

    def recently_practiced(self, user_id: str, limit: int = 5) -> List[Dict[str, Any]]:
        rows = self._progress_with_exercises(user_id, limit)
        recent = []
        for row in rows:
            exercise = row.pop("exercise", None)
            if exercise:
                recent.append({**exercise, "user_progress": row})
        return recent
