import logging
from supabase import Client
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
from app.config.plans_config import get_free_limit
from app.core.dependencies import is_free_plan
from app.modules.feed.service import ActivityService
from app.modules.songs.schemas import SongCreate, SongUpdate

logger = logging.getLogger(__name__)


def status_from_progress(progress_percent: int) -> str:
    if progress_percent == 100:
        return "mastered"
    if progress_percent > 0:
        return "learning"
    return "want_to_learn"


class SongService:
    def __init__(self, supabase: Client, activities: Optional[ActivityService] = None, challenges=None):
        self.supabase = supabase
        self.activities = activities or ActivityService(supabase)
        self.challenges = challenges

    def list_songs(self, user_id: str) -> List[Dict[str, Any]]:
        """Caller's library, newest first"""
        try:
            result = self.supabase.table("songs")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .execute()
            return result.data or []
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_song(self, song_id: str, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("songs")\
            .select("*")\
            .eq("id", song_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Morceau non trouvé")
        return result.data[0]

    def count_songs(self, user_id: str) -> int:
        result = self.supabase.table("songs")\
            .select("id", count="exact")\
            .eq("user_id", user_id)\
            .execute()
        return result.count or 0

    def create_song(self, song_data: SongCreate, user_id: str) -> Dict[str, Any]:
        """Add a song to the library (free plan capped)"""
        if is_free_plan(user_id, self.supabase):
            limit = get_free_limit("songs")
            if self.count_songs(user_id) >= limit:
                raise HTTPException(
                    status_code=403,
                    detail=f"Tu as atteint la limite de {limit} morceaux. Passe en Pro pour en ajouter plus !"
                )
        try:
            result = self.supabase.table("songs").insert({
                **song_data.model_dump(),
                "user_id": user_id,
            }).execute()
        except Exception as e:
            logger.error(f"Error creating song: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de l'ajout du morceau")
        if not result.data:
            raise HTTPException(status_code=500, detail="Erreur lors de l'ajout du morceau")

        song = result.data[0]
        self.activities.create_activity(
            user_id,
            "song_added",
            song["id"],
            {"title": song.get("title"), "artist": song.get("artist"), "cover_url": song.get("cover_url")}
        )
        return song

    def update_song(self, song_id: str, song_data: SongUpdate, user_id: str) -> Dict[str, Any]:
        """Partial update; a transition to mastered is announced in the feed"""
        update_data = song_data.model_dump(exclude_unset=True, exclude_none=True)
        if not update_data:
            return self.get_song(song_id, user_id)

        previous_status = None
        if update_data.get("status") == "mastered":
            previous_status = self.get_song(song_id, user_id).get("status")

        try:
            result = self.supabase.table("songs")\
                .update(update_data)\
                .eq("id", song_id)\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error updating song: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de la mise à jour")
        if not result.data:
            raise HTTPException(status_code=404, detail="Morceau non trouvé")

        song = result.data[0]
        if update_data.get("status") == "mastered" and previous_status != "mastered":
            self.activities.create_activity(
                user_id,
                "song_mastered",
                song_id,
                {"title": song.get("title"), "artist": song.get("artist"), "cover_url": song.get("cover_url")}
            )
            if self.challenges is not None:
                self.challenges.record_song_mastered(user_id, song_id)
        return song

    def update_status(self, song_id: str, status: str, user_id: str) -> Dict[str, Any]:
        update = {"status": status}
        if status == "mastered":
            update["progress_percent"] = 100
        return self.update_song(song_id, SongUpdate(**update), user_id)

    def update_progress(self, song_id: str, progress_percent: int, user_id: str) -> Dict[str, Any]:
        return self.update_song(
            song_id,
            SongUpdate(progress_percent=progress_percent, status=status_from_progress(progress_percent)),
            user_id
        )

    def delete_song(self, song_id: str, user_id: str) -> bool:
        try:
            result = self.supabase.table("songs")\
                .delete()\
                .eq("id", song_id)\
                .eq("user_id", user_id)\
                .execute()
            return bool(result.data)
        except Exception as e:
            logger.error(f"Error deleting song: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de la suppression")
