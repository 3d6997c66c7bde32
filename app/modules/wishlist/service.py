import logging
from supabase import Client
from typing import List, Dict, Any
from fastapi import HTTPException
from app.config.plans_config import get_free_limit
from app.core.dependencies import is_free_plan
from app.modules.feed.service import ActivityService
from app.modules.wishlist.schemas import WishlistSongCreate

logger = logging.getLogger(__name__)


class WishlistService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.activities = ActivityService(supabase)

    def list_wishlist(self, user_id: str) -> List[Dict[str, Any]]:
        result = self.supabase.table("wishlist_songs")\
            .select("*")\
            .eq("user_id", user_id)\
            .order("created_at", desc=True)\
            .execute()
        return result.data or []

    def count_wishlist(self, user_id: str) -> int:
        result = self.supabase.table("wishlist_songs")\
            .select("id", count="exact")\
            .eq("user_id", user_id)\
            .execute()
        return result.count or 0

    def _has_spotify_id(self, table: str, user_id: str, spotify_id: str) -> bool:
        result = self.supabase.table(table)\
            .select("id")\
            .eq("user_id", user_id)\
            .eq("spotify_id", spotify_id)\
            .limit(1)\
            .execute()
        return bool(result.data)

    def add_to_wishlist(self, data: WishlistSongCreate, user_id: str) -> Dict[str, Any]:
        """Add a song to learn later; rejects duplicates of the wishlist or library"""
        if data.spotify_id:
            if self._has_spotify_id("wishlist_songs", user_id, data.spotify_id):
                raise HTTPException(status_code=400, detail="Ce morceau est déjà dans ta wishlist")
            if self._has_spotify_id("songs", user_id, data.spotify_id):
                raise HTTPException(status_code=400, detail="Ce morceau est déjà dans ta bibliothèque")

        if is_free_plan(user_id, self.supabase):
            limit = get_free_limit("wishlist")
            if self.count_wishlist(user_id) >= limit:
                raise HTTPException(
                    status_code=403,
                    detail=f"Tu as atteint la limite de {limit} morceaux dans ta wishlist. Passe en Pro pour en ajouter plus !"
                )

        try:
            result = self.supabase.table("wishlist_songs").insert({
                **data.model_dump(),
                "user_id": user_id,
            }).execute()
        except Exception as e:
            logger.error(f"Error adding to wishlist: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de l'ajout à la wishlist")
        if not result.data:
            raise HTTPException(status_code=500, detail="Erreur lors de l'ajout à la wishlist")

        song = result.data[0]
        self.activities.create_activity(
            user_id,
            "song_wishlisted",
            song["id"],
            {"title": song.get("title"), "artist": song.get("artist"), "cover_url": song.get("cover_url")}
        )
        return song

    def remove_from_wishlist(self, wishlist_id: str, user_id: str) -> bool:
        result = self.supabase.table("wishlist_songs")\
            .delete()\
            .eq("id", wishlist_id)\
            .eq("user_id", user_id)\
            .execute()
        return bool(result.data)
